"""
Shared fixtures and helpers for conversion proxy tests.

The upstream service is never contacted: converter tests use a scripted
client and upstream tests use httpx.MockTransport.
"""

import pathlib
import sys
from typing import Any, Dict, List, Optional

import pytest

# ─── Path setup (must happen before any package import) ─────────────────────

_ROOT = pathlib.Path(__file__).parent.parent
sys.path.insert(0, str(_ROOT))

from convert_proxy.converter import MediaConverter  # noqa: E402
from convert_proxy.models import UpstreamResponse  # noqa: E402
from convert_proxy.upstream import UpstreamClient  # noqa: E402

# ─── Constants ───────────────────────────────────────────────────────────────

TEST_VIDEO_ID = "dQw4w9WgXcQ"
TEST_VIDEO_URL = f"https://www.youtube.com/watch?v={TEST_VIDEO_ID}"


# ─── Helpers ─────────────────────────────────────────────────────────────────

def ok(data: Any) -> UpstreamResponse:
    return UpstreamResponse(status=True, code=200, data=data)


def fail(code: int = 500, error: str = "boom") -> UpstreamResponse:
    return UpstreamResponse(status=False, code=code, error=error)


class ScriptedClient(UpstreamClient):
    """
    UpstreamClient whose calls replay canned responses.

    The last response of each script is repeated once the script runs out.
    Path builders are inherited, so submitted paths look real.
    """

    def __init__(
        self,
        submissions: Optional[List[UpstreamResponse]] = None,
        statuses: Optional[List[UpstreamResponse]] = None,
    ) -> None:
        super().__init__()
        self.submissions = list(submissions or [fail()])
        self.statuses = list(statuses or [fail()])
        self.submit_calls: List[Dict[str, Any]] = []
        self.status_calls: List[Optional[str]] = []

    @staticmethod
    def _next(script: List[UpstreamResponse], index: int) -> UpstreamResponse:
        return script[min(index, len(script) - 1)]

    async def call(self, path_or_url, body=None, method="POST"):
        self.submit_calls.append({"path": path_or_url, "body": body, "method": method})
        return self._next(self.submissions, len(self.submit_calls) - 1)

    async def fetch_status(self, job_token):
        self.status_calls.append(job_token)
        return self._next(self.statuses, len(self.status_calls) - 1)


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


# ─── Fixtures ────────────────────────────────────────────────────────────────

@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def make_converter(sleeper):
    """Build a MediaConverter around a ScriptedClient with real retry budgets."""
    def _make(submissions=None, statuses=None, **kwargs):
        client = ScriptedClient(submissions=submissions, statuses=statuses)
        kwargs.setdefault("max_attempts", 20)
        kwargs.setdefault("max_polls", 300)
        kwargs.setdefault("poll_interval", 2)
        conv = MediaConverter(client=client, sleep=sleeper, **kwargs)
        return conv, client
    return _make
