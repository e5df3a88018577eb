"""In-memory application state: feedback records, active view and notification."""
import logging
import time
from datetime import UTC, datetime, timedelta
from typing import List, Optional

from physio_insight.config import config
from physio_insight.schemas import (
    ANALYZED,
    ERROR,
    PROCESSING,
    AnalysisResult,
    FeedbackRecord,
    Notification,
    NotificationType,
    View,
)

logger = logging.getLogger(__name__)


class RecordNotFoundError(KeyError):
    """No feedback record with the requested id."""


class RecordStateError(Exception):
    """A record left the processing state more than once."""


class AppStore:
    """State container owned by the top-level application.

    Records are kept newest first. The list only grows at the head; the one
    permitted change to an existing record is its transition out of
    ``processing``. Nothing is persisted.
    """

    def __init__(self, notification_ttl_seconds: Optional[float] = None):
        self._records: List[FeedbackRecord] = []
        self._view: View = "therapist"
        self._notification: Optional[Notification] = None
        self._notification_ttl = (
            notification_ttl_seconds
            if notification_ttl_seconds is not None
            else config.NOTIFICATION_TTL_SECONDS
        )
        self._last_id = 0

    # Records

    def records(self) -> List[FeedbackRecord]:
        """Return a snapshot of all records, newest first."""
        return list(self._records)

    def get(self, record_id: str) -> FeedbackRecord:
        for record in self._records:
            if record.id == record_id:
                return record
        raise RecordNotFoundError(record_id)

    def new_id(self) -> str:
        """Time-derived id (epoch milliseconds), bumped if the clock repeats."""
        candidate = int(time.time() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return str(candidate)

    def add(self, record: FeedbackRecord) -> FeedbackRecord:
        """Insert a record at the head of the list."""
        self._records.insert(0, record)
        return record

    def complete(self, record_id: str, analysis: AnalysisResult) -> FeedbackRecord:
        """Attach an analysis and move the record to ``analyzed``."""
        return self._transition(record_id, ANALYZED, analysis)

    def fail(self, record_id: str) -> FeedbackRecord:
        """Move the record to ``error`` without an analysis."""
        return self._transition(record_id, ERROR, None)

    def _transition(
        self,
        record_id: str,
        status: str,
        analysis: Optional[AnalysisResult]
    ) -> FeedbackRecord:
        for index, record in enumerate(self._records):
            if record.id != record_id:
                continue
            if record.status != PROCESSING:
                raise RecordStateError(
                    f"Record {record_id} is already {record.status}"
                )
            updated = FeedbackRecord(**{**dict(record), "status": status, "analysis": analysis})
            self._records[index] = updated
            return updated
        raise RecordNotFoundError(record_id)

    # View selector

    @property
    def view(self) -> View:
        return self._view

    def set_view(self, view: View) -> None:
        self._view = view

    # Transient notification

    def notify(self, message: str, type_: NotificationType) -> Notification:
        self._notification = Notification(
            message=message,
            type=type_,
            created_at=datetime.now(UTC)
        )
        return self._notification

    def current_notification(self) -> Optional[Notification]:
        """Return the notification unless it has expired."""
        if self._notification is None:
            return None
        age = datetime.now(UTC) - self._notification.created_at
        if age > timedelta(seconds=self._notification_ttl):
            self._notification = None
        return self._notification

    def clear_notification(self) -> None:
        self._notification = None

    # Demo data

    def seed_example_records(self) -> None:
        """Load the three demo records shown on a fresh dashboard."""
        now = datetime.now(UTC)
        self._records = [
            FeedbackRecord(
                id="1",
                patient_name="Sarah M.",
                date=now - timedelta(days=2),
                rating=5,
                text=(
                    "The new exercises have really helped my lower back pain. "
                    "I feel much more mobile in the mornings now."
                ),
                status=ANALYZED,
                analysis=AnalysisResult(
                    sentiment_score=92,
                    sentiment_label="Positive",
                    key_themes=["Mobility", "Back Pain", "Exercises"],
                    summary=(
                        "Patient reports significant improvement in mobility and pain "
                        "reduction due to new exercise regimen."
                    ),
                    actionable_insights=[
                        "Continue current progression",
                        "Ask about morning stiffness levels in next session"
                    ],
                    clinical_flags=False
                )
            ),
            FeedbackRecord(
                id="2",
                patient_name="John D.",
                date=now - timedelta(days=5),
                rating=3,
                text=(
                    "The session was okay, but I felt a sharp pain in my knee during the squats. "
                    "The therapist was busy with another patient so I couldn't ask about it."
                ),
                status=ANALYZED,
                analysis=AnalysisResult(
                    sentiment_score=40,
                    sentiment_label="Negative",
                    key_themes=["Knee Pain", "Staff Availability", "Safety"],
                    summary=(
                        "Patient experienced knee pain during squats and could not "
                        "communicate it due to therapist unavailability."
                    ),
                    actionable_insights=[
                        "Review squat form immediately",
                        "Ensure supervision during high-risk exercises"
                    ],
                    clinical_flags=True
                )
            ),
            FeedbackRecord(
                id="3",
                patient_name="Anonymous",
                date=now - timedelta(days=1),
                rating=4,
                text=(
                    "Great facility, very clean. The receptionist was very friendly. "
                    "Waiting time was a bit long though."
                ),
                status=ANALYZED,
                analysis=AnalysisResult(
                    sentiment_score=75,
                    sentiment_label="Positive",
                    key_themes=["Facility Hygiene", "Staff Courtesy", "Wait Times"],
                    summary=(
                        "Positive feedback on facility and staff, with a minor "
                        "complaint about wait times."
                    ),
                    actionable_insights=["Monitor scheduling gaps", "Pass praise to reception team"],
                    clinical_flags=False
                )
            )
        ]
        logger.info(f"Seeded {len(self._records)} example feedback records")
