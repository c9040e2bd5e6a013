"""
HTTP client for the upstream conversion service.

The upstream exposes the same API on several hosts; each relative call picks
one at random. Every call returns an UpstreamResponse; transport failures
are captured, never raised.

Path templates (t1/t2 are fresh random hex tokens):
  submit:   /{t1}/init/{reverse_char_codes(url)}/{t2}/
  status:   /{t1}/status/{xor_encode(job_token)}/{t2}/
  download: {DOWNLOAD_BASE}/{t1}/download/{xor_encode(job_token)}/{t2}/
"""

import logging
import random
from typing import Any, Dict, Optional, Sequence

import httpx

from . import config
from .models import UpstreamResponse
from .obfuscation import random_token, reverse_char_codes, xor_encode

logger = logging.getLogger(__name__)


class UpstreamClient:
    """Stateless client over a pool of equivalent upstream endpoints."""

    def __init__(
        self,
        endpoints: Sequence[str] = config.UPSTREAM_ENDPOINTS,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = config.UPSTREAM_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoints = tuple(endpoints)
        self.headers = dict(headers or config.UPSTREAM_HEADERS)
        self.timeout = timeout
        # Tests inject httpx.MockTransport here
        self._transport = transport

    # =========================================================================
    # PATH BUILDERS
    # =========================================================================

    def pick_endpoint(self) -> str:
        return random.choice(self.endpoints)

    def resolve(self, path_or_url: str) -> str:
        """Absolute URLs pass through; relative paths get a random base."""
        if path_or_url.startswith("http"):
            return path_or_url
        return f"{self.pick_endpoint()}{path_or_url}"

    @staticmethod
    def submit_path(source_url: str) -> str:
        return f"/{random_token()}/init/{reverse_char_codes(source_url)}/{random_token()}/"

    @staticmethod
    def status_path(job_token: str) -> str:
        return f"/{random_token()}/status/{xor_encode(job_token)}/{random_token()}/"

    @staticmethod
    def download_url(job_token: str) -> str:
        return f"{config.DOWNLOAD_BASE}/{random_token()}/download/{xor_encode(job_token)}/{random_token()}/"

    # =========================================================================
    # CALLS
    # =========================================================================

    async def call(
        self,
        path_or_url: str,
        body: Optional[Dict[str, Any]] = None,
        method: str = "POST",
    ) -> UpstreamResponse:
        """
        Send one request to the upstream.

        Returns status=True/code=200 with the parsed body on any 2xx answer,
        otherwise status=False with the upstream status code (or 500 when no
        response was received).
        """
        method = method.upper()
        try:
            url = self.resolve(path_or_url)
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.request(
                    method,
                    url,
                    json=(body if body is not None else {}) if method == "POST" else None,
                    headers=self.headers,
                )
        except Exception as e:
            logger.warning(f"⚠️ Upstream request failed: {e}")
            return UpstreamResponse(status=False, code=500, error=str(e) or type(e).__name__)

        if not resp.is_success:
            logger.warning(f"⚠️ Upstream returned HTTP {resp.status_code}: {resp.text[:200]}")
            return UpstreamResponse(
                status=False,
                code=resp.status_code,
                error=f"Request failed with status code {resp.status_code}",
            )

        try:
            data = resp.json()
        except ValueError:
            data = resp.text

        return UpstreamResponse(status=True, code=200, data=data)

    async def fetch_status(self, job_token: str) -> UpstreamResponse:
        """Ask the upstream for the current state of a submitted job."""
        try:
            return await self.call(self.status_path(job_token), {"data": job_token})
        except Exception as e:
            return UpstreamResponse(status=False, code=500, error=str(e) or type(e).__name__)
