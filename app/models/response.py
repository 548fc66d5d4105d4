from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict

from app.models.analysis import ContentAnalysis
from app.models.files import SyntheticFile


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: Literal[True] = True
    url: str
    content_type: str
    content_length: int
    analysis: ContentAnalysis
    files: List[SyntheticFile]
    """Synthesized files; the last entry is always ``_analysis.json``."""


class AnalysisFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: Literal[False] = False
    error: str
    reason: Optional[str] = None
    """``FetchFailureReason`` value, or ``"InvalidRequest"`` for bad budgets."""
    url: str
