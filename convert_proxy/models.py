"""
Pydantic models for request/response schemas and upstream payloads
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any, List
from enum import Enum


class MediaType(str, Enum):
    """Output media kinds the upstream can produce"""
    VIDEO = "video"
    AUDIO = "audio"


class ErrorCode(str, Enum):
    """Error code classifications"""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    CONTENT_RESTRICTED = "CONTENT_RESTRICTED"
    DURATION_EXCEEDED = "DURATION_EXCEEDED"
    UPSTREAM_TRANSPORT = "UPSTREAM_TRANSPORT"
    RETRIES_EXHAUSTED = "RETRIES_EXHAUSTED"
    SERVER_ERROR = "SERVER_ERROR"


class JobState(str, Enum):
    """Upstream job state as derived from a status payload"""
    PENDING = "Pending"
    COMPLETE = "Complete"
    ERROR = "Error"
    BLACKLISTED = "Blacklisted"
    INVALID = "Invalid"


class ConversionRequest(BaseModel):
    """Request schema for /api"""
    url: Optional[str] = Field(None, description="YouTube video URL")
    format: Optional[str] = Field(None, description="Quality: 240-1080 for video, 64-320 for audio")
    type: str = Field("video", description="Output type: video or audio")

    class Config:
        json_schema_extra = {
            "example": {
                "url": "https://youtube.com/watch?v=dQw4w9WgXcQ",
                "format": "320",
                "type": "audio",
            }
        }

    @field_validator("format", mode="before")
    @classmethod
    def _numeric_format(cls, value: Any) -> Any:
        # numeric qualities (720) read as their string form
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value)) if float(value).is_integer() else str(value)
        return value


class UpstreamResponse(BaseModel):
    """Normalized outcome of a single upstream HTTP call"""
    status: bool
    code: int
    data: Any = None
    error: Optional[str] = None


class UpstreamJobStatus(BaseModel):
    """
    Job payload returned by the upstream on submission and on status checks.

    The upstream uses single-letter keys: i (job token), t (title),
    s (status letter, "C" complete / "P" pending), e (error flag),
    le (length exceeded).
    """
    job_token: Optional[str] = Field(None, alias="i")
    title: Optional[str] = Field(None, alias="t")
    status_code: Optional[str] = Field(None, alias="s")
    error: Any = Field(None, alias="e")
    duration_exceeded: bool = Field(False, alias="le")

    class Config:
        populate_by_name = True

    @field_validator("job_token", "title", "status_code", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value)

    @field_validator("duration_exceeded", mode="before")
    @classmethod
    def _truthy(cls, value: Any) -> bool:
        return bool(value)

    @classmethod
    def from_payload(cls, data: Any) -> "UpstreamJobStatus":
        """Parse a raw upstream body; anything that isn't an object reads as empty."""
        if not isinstance(data, dict):
            data = {}
        return cls.model_validate(data)

    @property
    def is_complete(self) -> bool:
        return self.status_code == "C"

    @property
    def is_pending(self) -> bool:
        return self.status_code == "P"

    @property
    def state(self) -> JobState:
        if self.job_token == "blacklisted":
            return JobState.BLACKLISTED
        if self.error or self.job_token == "invalid":
            return JobState.INVALID
        if self.is_complete:
            return JobState.COMPLETE
        if self.is_pending:
            return JobState.PENDING
        return JobState.ERROR


class ConversionPayload(BaseModel):
    """Download details returned on success"""
    title: str
    type: str
    format: str
    thumbnail: str
    download: str
    id: str
    quality: str

    class Config:
        frozen = True


class ConversionResult(BaseModel):
    """Final outcome of a conversion; the only value handed back to callers"""
    status: bool
    code: int
    message: Optional[str] = None
    result: Optional[ConversionPayload] = None
    error_code: Optional[ErrorCode] = None

    class Config:
        frozen = True

    @classmethod
    def failure(cls, code: int, message: str, error_code: ErrorCode) -> "ConversionResult":
        return cls(status=False, code=code, message=message, error_code=error_code)

    @classmethod
    def success(cls, payload: ConversionPayload) -> "ConversionResult":
        return cls(status=True, code=200, result=payload)

    def to_response(self) -> Dict[str, Any]:
        """JSON body for the HTTP layer; unset fields are omitted."""
        return self.model_dump(mode="json", exclude_none=True)


class FormatsResponse(BaseModel):
    """Response schema for /api/formats"""
    formats: Dict[str, List[str]]
    defaults: Dict[str, str]


class HealthStats(BaseModel):
    """Request counters for health check"""
    total_requests: int
    active_requests: int
    failed_requests: int


class HealthResponse(BaseModel):
    """Response schema for /api/health"""
    status: str
    version: str
    uptime_seconds: float
    stats: HealthStats
