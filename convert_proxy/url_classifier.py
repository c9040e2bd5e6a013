"""
YouTube URL validation and video ID extraction.
"""

import re
from typing import Optional
from urllib.parse import parse_qs, urlsplit

SUPPORTED_HOSTS = (
    re.compile(r"^(.+\.)?youtube\.com$"),
    re.compile(r"^(.+\.)?youtube-nocookie\.com$"),
    re.compile(r"^youtu\.be$"),
)

# watch, embed, v-path, shorts, short domain
VIDEO_ID_PATTERNS = (
    re.compile(r"youtube\.com/watch\?v=([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtube\.com/embed/([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtube\.com/v/([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtube\.com/shorts/([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtu\.be/([a-zA-Z0-9_-]{11})"),
)


def is_supported_url(candidate: str) -> bool:
    """
    True if ``candidate`` is an absolute URL on a YouTube host and is not a
    playlist link. Anything that fails to parse is rejected.
    """
    if not isinstance(candidate, str) or not candidate:
        return False
    try:
        parts = urlsplit(candidate.strip())
        hostname = parts.hostname
    except ValueError:
        return False

    if not parts.scheme or not hostname:
        return False

    hostname = hostname.lower()
    if not any(pattern.match(hostname) for pattern in SUPPORTED_HOSTS):
        return False

    return "playlist" not in parse_qs(parts.query, keep_blank_values=True)


def extract_video_id(candidate: str) -> Optional[str]:
    """Return the 11-character video ID from any supported URL shape, else None."""
    if not candidate:
        return None
    for pattern in VIDEO_ID_PATTERNS:
        match = pattern.search(candidate)
        if match:
            return match.group(1)
    return None
