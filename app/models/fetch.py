from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field


class FetchFailureReason(str, Enum):
    INVALID_SCHEME = "InvalidScheme"
    BLOCKED_ADDRESS = "BlockedAddress"
    HTTP_ERROR = "HttpError"
    TOO_LARGE = "TooLarge"
    TIMEOUT = "Timeout"
    NETWORK_ERROR = "NetworkError"


class FetchRequest(BaseModel):
    """A single bounded GET.

    ``url`` is deliberately a plain string: scheme validation happens in the
    fetcher so that a bad scheme surfaces as an ``InvalidScheme`` outcome.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    max_bytes: int = Field(gt=0)
    timeout_ms: int = Field(gt=0)


class FetchedContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    raw_text: str
    declared_content_type: str
    byte_length: int
    final_url: str


class FetchFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: FetchFailureReason
    message: str


FetchOutcome = Union[FetchedContent, FetchFailure]
