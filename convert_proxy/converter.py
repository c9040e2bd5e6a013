"""
Conversion orchestrator.

Validates the request, submits a conversion job to the upstream and polls it
until it completes, fails terminally, or the retry budgets run out:

  - up to MAX_SUBMIT_ATTEMPTS submissions; a transport failure or an aborted
    poll sends the loop back for a fresh submission (job tokens are never
    reused across submissions)
  - up to MAX_POLL_ATTEMPTS status checks per submission, POLL_INTERVAL_SECONDS
    apart

download() always returns a ConversionResult; nothing is raised to callers.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional

from . import config
from .errors import (
    ContentRestrictedError,
    ConversionError,
    DurationExceededError,
    EmptyUpstreamResponseError,
    ExhaustionError,
    QuotaExceededError,
    UnsupportedFormatError,
    ValidationError,
)
from .models import (
    ConversionPayload,
    ConversionResult,
    ErrorCode,
    JobState,
    MediaType,
    UpstreamJobStatus,
    UpstreamResponse,
)
from .obfuscation import xor_encode
from .upstream import UpstreamClient
from .url_classifier import extract_video_id, is_supported_url

logger = logging.getLogger(__name__)


def timezone_offset() -> str:
    """
    Local UTC offset in minutes, signed the way browsers report it
    (UTC minus local: UTC+05:30 -> "-330").
    """
    offset = datetime.now().astimezone().utcoffset()
    minutes = int(offset.total_seconds() // 60) if offset else 0
    return str(-minutes)


def daily_limit(tz_offset: str) -> int:
    if tz_offset in config.RESTRICTED_TIMEZONES:
        return config.RESTRICTED_DAILY_LIMIT
    return config.DEFAULT_DAILY_LIMIT


class MediaConverter:
    """Drives one conversion per download() call; holds no per-request state."""

    def __init__(
        self,
        client: Optional[UpstreamClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        max_attempts: int = config.MAX_SUBMIT_ATTEMPTS,
        max_polls: int = config.MAX_POLL_ATTEMPTS,
        poll_interval: float = config.POLL_INTERVAL_SECONDS,
    ) -> None:
        self.client = client or UpstreamClient()
        self.sleep = sleep
        self.max_attempts = max_attempts
        self.max_polls = max_polls
        self.poll_interval = poll_interval

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def _validate(self, source_url: str, fmt: Optional[str], media_type: str) -> tuple[str, str]:
        """Return (format, video_id) or raise a ConversionError."""
        if not source_url:
            raise ValidationError("URL is required")

        if not is_supported_url(source_url):
            raise ValidationError("Invalid YouTube URL")

        if media_type not in (MediaType.VIDEO.value, MediaType.AUDIO.value):
            raise ValidationError("Type must be either 'video' or 'audio'")

        if not fmt:
            fmt = config.DEFAULT_FORMATS[media_type]

        allowed = config.FORMATS[media_type]
        if fmt not in allowed:
            raise UnsupportedFormatError(fmt, media_type, allowed)

        video_id = extract_video_id(source_url)
        if not video_id:
            raise ValidationError("Could not extract YouTube video ID")

        return fmt, video_id

    # =========================================================================
    # REQUEST BUILDING
    # =========================================================================

    def _build_submission(self, source_url: str, fmt: str, media_type: str, tz_offset: str) -> Dict[str, Any]:
        is_audio = media_type == MediaType.AUDIO.value
        return {
            "data": xor_encode(source_url),
            "format": "0" if is_audio else "1",
            "referer": config.SUBMIT_REFERER,
            "mp3Quality": fmt if is_audio else None,
            "mp4Quality": fmt if not is_audio else None,
            "userTimeZone": tz_offset,
        }

    def _build_payload(
        self,
        status: UpstreamJobStatus,
        fmt: str,
        media_type: str,
        video_id: str,
    ) -> ConversionPayload:
        return ConversionPayload(
            title=status.title or "Unknown",
            type=media_type,
            format=fmt,
            thumbnail=config.THUMBNAIL_TEMPLATE.format(video_id=video_id),
            download=self.client.download_url(status.job_token),
            id=video_id,
            quality=fmt,
        )

    # =========================================================================
    # POLLING
    # =========================================================================

    async def _wait_for_completion(self, job_token: Optional[str]) -> Optional[UpstreamJobStatus]:
        """
        Poll a submitted job. Returns the completed status, or None when the
        upstream reports anything other than pending/complete or the poll
        budget runs out.
        """
        for attempt in range(1, self.max_polls + 1):
            res = await self.client.fetch_status(job_token)
            if not res.status:
                logger.debug(f"Status check {attempt}/{self.max_polls} failed: {res.error}")
                await self.sleep(self.poll_interval)
                continue

            status = UpstreamJobStatus.from_payload(res.data)
            if status.is_complete:
                logger.info(f"✅ Job completed after {attempt} status check(s)")
                return status

            if status.is_pending:
                await self.sleep(self.poll_interval)
                continue

            logger.warning(f"⚠️ Job left pending state with status {status.status_code!r}, resubmitting")
            return None

        logger.warning(f"⚠️ Job still pending after {self.max_polls} status checks")
        return None

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def download(
        self,
        source_url: str,
        format: Optional[str] = None,
        type: str = "video",
    ) -> ConversionResult:
        """
        Convert ``source_url`` to ``type`` at ``format`` quality.

        Returns a success result with the download link, or a failure result
        carrying the HTTP-style code and message.
        """
        media_type = type
        try:
            fmt, video_id = self._validate(source_url, format, media_type)
            return await self._convert(source_url, fmt, media_type, video_id)
        except ConversionError as e:
            log = logger.error if e.code >= 500 else logger.info
            log(f"❌ Conversion rejected ({e.code}): {e.message}")
            return e.to_result()
        except Exception as e:
            logger.exception(f"💥 Unexpected error during conversion: {e}")
            return ConversionResult.failure(500, str(e), ErrorCode.SERVER_ERROR)

    async def _convert(self, source_url: str, fmt: str, media_type: str, video_id: str) -> ConversionResult:
        logger.info(f"🚀 Converting {video_id} to {media_type} ({fmt})")

        for attempt in range(1, self.max_attempts + 1):
            tz_offset = timezone_offset()
            res = await self.client.call(
                self.client.submit_path(source_url),
                self._build_submission(source_url, fmt, media_type, tz_offset),
            )

            if not res.status:
                logger.warning(f"⚠️ Submission {attempt}/{self.max_attempts} failed ({res.code}): {res.error}")
                if attempt == self.max_attempts:
                    return self._transport_failure(res)
                continue

            if res.data is None:
                raise EmptyUpstreamResponseError()

            job = UpstreamJobStatus.from_payload(res.data)

            if job.duration_exceeded:
                raise DurationExceededError()

            if job.state is JobState.BLACKLISTED:
                raise QuotaExceededError(daily_limit(tz_offset))

            if job.state is JobState.INVALID:
                raise ContentRestrictedError()

            if job.is_complete:
                logger.info(f"✅ {video_id} already converted upstream")
                return ConversionResult.success(self._build_payload(job, fmt, media_type, video_id))

            completed = await self._wait_for_completion(job.job_token)
            if completed is not None:
                return ConversionResult.success(self._build_payload(completed, fmt, media_type, video_id))

            logger.info(f"🔄 Submission {attempt}/{self.max_attempts} did not complete, retrying")

        raise ExhaustionError()

    @staticmethod
    def _transport_failure(res: UpstreamResponse) -> ConversionResult:
        return ConversionResult.failure(
            res.code,
            res.error or "Upstream request failed",
            ErrorCode.UPSTREAM_TRANSPORT,
        )


# Global singleton
converter = MediaConverter()
