from typing import Literal

from pydantic import BaseModel, ConfigDict

Language = Literal["HTML", "JavaScript", "CSS", "JSON", "Text"]


class SyntheticFile(BaseModel):
    """A generated file record derived from a fetched URL."""

    model_config = ConfigDict(frozen=True)

    filename: str
    filepath: str  # "/" + hostname with dots replaced by underscores
    content: str
    size_bytes: int  # UTF-8 length of content
    language: Language
