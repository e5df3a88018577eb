"""Pydantic schemas for feedback records, analysis results and API payloads."""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

SentimentLabel = Literal["Positive", "Neutral", "Negative"]
FeedbackStatus = Literal["processing", "analyzed", "error"]
View = Literal["patient", "therapist"]
NotificationType = Literal["success", "error"]

SENTIMENT_LABELS: List[str] = ["Positive", "Neutral", "Negative"]

PROCESSING = "processing"
ANALYZED = "analyzed"
ERROR = "error"


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalysisResult(CamelModel):
    """Structured analysis returned by the language model."""

    sentiment_score: float = Field(..., ge=0, le=100, description="0 to 100, where 100 is extremely positive")
    sentiment_label: SentimentLabel
    key_themes: List[str] = Field(..., description="Key topics mentioned, e.g. 'Pain Management'")
    summary: str = Field(..., description="Concise one-sentence summary")
    actionable_insights: List[str] = Field(..., description="Actions the clinic or therapist can take")
    clinical_flags: bool = Field(
        ..., description="True if severe unexpected pain, regression or complications are mentioned"
    )


class FeedbackRecord(CamelModel):
    """A single piece of patient feedback and its analysis lifecycle."""

    id: str
    patient_name: str = "Anonymous"
    date: datetime
    rating: int = Field(..., ge=1, le=5)
    text: str
    status: FeedbackStatus = PROCESSING
    analysis: Optional[AnalysisResult] = None

    @model_validator(mode="after")
    def _analysis_matches_status(self) -> "FeedbackRecord":
        if (self.status == ANALYZED) != (self.analysis is not None):
            raise ValueError("analysis must be present exactly when status is 'analyzed'")
        return self


class FeedbackRequest(CamelModel):
    """Request schema for feedback submission."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "text": "The new exercises have really helped my lower back pain.",
                "rating": 5,
                "name": "Sarah M."
            }
        }
    )

    text: str = Field(..., max_length=5000, description="Free-text patient feedback")
    rating: int = Field(..., ge=1, le=5, description="Overall rating, 1 to 5 stars")
    name: Optional[str] = Field(None, max_length=200, description="Optional display name")

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("feedback text cannot be empty")
        return value


class SentimentSlice(BaseModel):
    """One bar of the sentiment distribution."""

    name: SentimentLabel
    value: int


class ThemeCount(BaseModel):
    """Frequency of one theme across analyzed feedback."""

    name: str
    value: int


class DashboardStats(CamelModel):
    """Derived statistics for the analytics dashboard."""

    total: int
    average_rating: str
    net_sentiment: int
    clinical_flags: int
    sentiment_distribution: List[SentimentSlice]
    top_themes: List[ThemeCount]


class Notification(CamelModel):
    """Transient message describing the outcome of the last submission."""

    message: str
    type: NotificationType
    created_at: datetime


class ViewRequest(BaseModel):
    """Request schema for switching the active view."""

    view: View
