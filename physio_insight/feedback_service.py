"""Submission flow: validate, record, analyze, transition, notify."""
import asyncio
import logging
from datetime import UTC, datetime
from typing import Optional

from physio_insight.ai_analyzer import FALLBACK_ANALYSIS, AIAnalyzer, AnalysisError
from physio_insight.config import config
from physio_insight.schemas import PROCESSING, FeedbackRecord
from physio_insight.store import AppStore

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Feedback received and analyzed successfully!"
ERROR_MESSAGE = "Error processing feedback. Please try again."


class InvalidFeedbackError(ValueError):
    """Submission rejected before any state was touched."""


class FeedbackService:
    """Turns raw patient input into an analyzed feedback record.

    Each submission is an independent one-shot call: no queueing, no mutual
    exclusion, no retry. Whether a failed analysis is masked by the fallback
    or surfaced as the ``error`` status is decided here, not in the analyzer.
    """

    def __init__(
        self,
        store: AppStore,
        analyzer: AIAnalyzer,
        mask_errors: Optional[bool] = None
    ):
        self.store = store
        self.analyzer = analyzer
        self.mask_errors = config.MASK_ANALYSIS_ERRORS if mask_errors is None else mask_errors
        self.in_flight = 0

    @property
    def is_analyzing(self) -> bool:
        return self.in_flight > 0

    def validate(self, text: str, rating: int) -> None:
        """Reject blank text and ratings outside the star range.

        Raises:
            InvalidFeedbackError: If the submission cannot be accepted
        """
        # bool is an int subclass; True is not a one-star rating
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise InvalidFeedbackError("Rating must be a whole number of stars")
        if not config.MIN_RATING <= rating <= config.MAX_RATING:
            raise InvalidFeedbackError(
                f"Rating must be between {config.MIN_RATING} and {config.MAX_RATING}"
            )
        if not text or not text.strip():
            raise InvalidFeedbackError("Feedback text cannot be empty")

    async def submit(self, text: str, rating: int, name: Optional[str] = None) -> FeedbackRecord:
        """Record feedback and analyze it.

        The record enters the store as ``processing`` before the analyzer is
        awaited and leaves that state exactly once.

        Args:
            text: Free-text feedback
            rating: Star rating, 1 to 5
            name: Optional display name, "Anonymous" when blank

        Returns:
            The record in its terminal state

        Raises:
            InvalidFeedbackError: Nothing is stored and the analyzer is not called
        """
        self.validate(text, rating)

        record = self.store.add(FeedbackRecord(
            id=self.store.new_id(),
            patient_name=(name or "").strip() or "Anonymous",
            date=datetime.now(UTC),
            rating=rating,
            text=text,
            status=PROCESSING
        ))
        logger.info(f"Feedback {record.id} received (rating {rating}/5), requesting analysis")

        self.in_flight += 1
        self.store.clear_notification()
        try:
            try:
                analysis = await self.analyzer.analyze(text, rating)
            except AnalysisError as e:
                if not self.mask_errors:
                    logger.warning(f"Analysis failed for feedback {record.id}: {e}")
                    record = self.store.fail(record.id)
                    self.store.notify(ERROR_MESSAGE, "error")
                    return record
                logger.warning(f"Analysis failed for feedback {record.id}: {e}. Using fallback analysis")
                analysis = FALLBACK_ANALYSIS.model_copy(deep=True)

            record = self.store.complete(record.id, analysis)
            self.store.notify(SUCCESS_MESSAGE, "success")
            self.store.set_view("therapist")
            return record

        except asyncio.CancelledError:
            logger.warning(f"Submission of feedback {record.id} was cancelled")
            if record.status == PROCESSING:
                self.store.fail(record.id)
            self.store.notify(ERROR_MESSAGE, "error")
            raise
        except Exception:
            logger.error(f"Submission of feedback {record.id} failed", exc_info=True)
            if record.status == PROCESSING:
                self.store.fail(record.id)
            self.store.notify(ERROR_MESSAGE, "error")
            raise
        finally:
            self.in_flight -= 1
