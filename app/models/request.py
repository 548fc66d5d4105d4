from pydantic import BaseModel, Field, HttpUrl

DEFAULT_MAX_SIZE = 5 * 1024 * 1024  # 5 MiB
DEFAULT_TIMEOUT_MS = 10_000


class AnalyzeRequest(BaseModel):
    url: HttpUrl
    max_size: int = Field(
        default=DEFAULT_MAX_SIZE,
        gt=0,
        le=25 * 1024 * 1024,
        description="Maximum response body size in bytes (up to 25 MiB).",
    )
    timeout: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        gt=0,
        le=60_000,
        description="Wall-clock budget for the whole fetch, in milliseconds (up to 60 000).",
    )
