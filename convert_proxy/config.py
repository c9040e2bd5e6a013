"""
Process-wide configuration for the conversion proxy.

Upstream constants (endpoint pool, headers, format tables) are literal values
the upstream service expects. Retry budgets and timeouts can be tuned through
environment variables.
"""

import os
from typing import Dict, FrozenSet, Tuple

# Upstream endpoint pool; any base is equivalent, one is picked per call
UPSTREAM_ENDPOINTS: Tuple[str, ...] = (
    "https://api5.apiapi.lat",
    "https://api.apiapi.lat",
    "https://api3.apiapi.lat",
)

# Download links are always built on this base
DOWNLOAD_BASE = "https://api3.apiapi.lat"

UPSTREAM_HEADERS: Dict[str, str] = {
    "authority": "api.apiapi.lat",
    "content-type": "application/json",
    "origin": "https://ogmp3.lat",
    "referer": "https://ogmp3.lat/",
    "user-agent": "Postify/1.0.0",
}

# Referer placed inside the submission payload (differs from the header one)
SUBMIT_REFERER = "https://ogmp3.cc"

THUMBNAIL_TEMPLATE = "https://i.ytimg.com/vi/{video_id}/maxresdefault.jpg"

# Allowed quality values per media type
FORMATS: Dict[str, Tuple[str, ...]] = {
    "video": ("240", "360", "480", "720", "1080"),
    "audio": ("64", "96", "128", "192", "256", "320"),
}

DEFAULT_FORMATS: Dict[str, str] = {
    "video": "720",
    "audio": "320",
}

# Timezone offsets (JS getTimezoneOffset minutes) that get the lower daily quota
RESTRICTED_TIMEZONES: FrozenSet[str] = frozenset({"-330", "-420", "-480", "-540"})
RESTRICTED_DAILY_LIMIT = 5
DEFAULT_DAILY_LIMIT = 100

# Retry budgets
MAX_SUBMIT_ATTEMPTS = int(os.getenv("CONVERT_MAX_ATTEMPTS", "20"))
MAX_POLL_ATTEMPTS = int(os.getenv("CONVERT_MAX_POLLS", "300"))
POLL_INTERVAL_SECONDS = float(os.getenv("CONVERT_POLL_INTERVAL_SECONDS", "2"))

UPSTREAM_TIMEOUT_SECONDS = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "30"))

# HTTP layer
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
