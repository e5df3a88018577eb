"""AI-powered patient feedback analyzer using OpenAI structured outputs."""
import asyncio
import json
import logging
from typing import Any, Dict, Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from physio_insight.config import config
from physio_insight.schemas import SENTIMENT_LABELS, AnalysisResult

logger = logging.getLogger(__name__)


class AnalysisError(Exception):
    """The analysis call failed or returned unusable data."""


# Returned in place of a real analysis when the call fails and errors are masked
FALLBACK_ANALYSIS = AnalysisResult(
    sentiment_score=50,
    sentiment_label="Neutral",
    key_themes=["Error analyzing"],
    summary="Could not analyze text at this time.",
    actionable_insights=["Check system logs."],
    clinical_flags=False
)

ANALYSIS_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "sentimentScore": {
            "type": "number",
            "description": "A score from 0 to 100 where 100 is extremely positive."
        },
        "sentimentLabel": {
            "type": "string",
            "enum": SENTIMENT_LABELS
        },
        "keyThemes": {
            "type": "array",
            "items": {"type": "string"},
            "description": "List of 3-5 key topics mentioned (e.g., 'Pain Management', 'Staff', 'Exercises')."
        },
        "summary": {
            "type": "string",
            "description": "A concise 1-sentence summary of the feedback."
        },
        "actionableInsights": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Specific actions the clinic or therapist can take to improve."
        },
        "clinicalFlags": {
            "type": "boolean",
            "description": "True if the patient mentions severe unexpected pain, regression, or medical complications."
        }
    },
    "required": [
        "sentimentScore",
        "sentimentLabel",
        "keyThemes",
        "summary",
        "actionableInsights",
        "clinicalFlags"
    ],
    "additionalProperties": False
}


class AIAnalyzer:
    """Sends patient feedback to the language model and validates the reply."""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        """Initialize the AI analyzer.

        Args:
            client: Pre-built OpenAI client; one is created from config when omitted
        """
        if client is None and config.OPENAI_API_KEY:
            # One attempt per submission, never retried
            client = AsyncOpenAI(api_key=config.OPENAI_API_KEY, max_retries=0)
        self.client = client
        self.model = config.AI_MODEL
        self.timeout = config.AI_TIMEOUT_SECONDS

    @property
    def available(self) -> bool:
        return self.client is not None and config.AI_PROVIDER_ENABLED

    def _build_prompt(self, feedback_text: str, rating: int) -> str:
        """Build the prompt embedding the rating and the raw feedback text."""
        return (
            "Analyze the following physiotherapy patient feedback. "
            f"Rating provided: {rating}/5. Text: \"{feedback_text}\""
        )

    async def analyze(self, feedback_text: str, rating: int) -> AnalysisResult:
        """Analyze feedback using the OpenAI chat completions API.

        Args:
            feedback_text: The patient feedback to analyze
            rating: Star rating given with the feedback

        Returns:
            AnalysisResult parsed from the model's JSON reply

        Raises:
            AnalysisError: If the provider fails or the reply is unusable
                (caller decides whether to substitute the fallback)
        """
        if not config.AI_PROVIDER_ENABLED:
            raise AnalysisError("AI provider disabled in config")
        if not self.client:
            raise AnalysisError("OpenAI client not configured")

        prompt = self._build_prompt(feedback_text, rating)

        try:
            async with asyncio.timeout(self.timeout):
                response = await self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {
                            "role": "system",
                            "content": "You analyze patient feedback for a physiotherapy clinic. Respond with JSON only."
                        },
                        {"role": "user", "content": prompt}
                    ],
                    response_format={
                        "type": "json_schema",
                        "json_schema": {
                            "name": "feedback_analysis",
                            "strict": True,
                            "schema": ANALYSIS_RESPONSE_SCHEMA
                        }
                    }
                )
            content = response.choices[0].message.content if response.choices else None

        except asyncio.TimeoutError as e:
            raise AnalysisError(f"AI provider timeout after {self.timeout}s") from e
        except OpenAIError as e:
            raise AnalysisError(f"AI provider error: {e}") from e
        except Exception as e:
            raise AnalysisError(f"Unexpected AI provider failure: {e}") from e

        result = self._parse_ai_response(content)
        logger.info(f"AI analysis complete: {result.sentiment_label} ({result.sentiment_score:g})")
        return result

    def _parse_ai_response(self, response_text: Optional[str]) -> AnalysisResult:
        """Parse and validate the model's JSON reply.

        Raises:
            AnalysisError: On empty content, malformed JSON or a schema violation
        """
        if not response_text or not response_text.strip():
            raise AnalysisError("No response from AI")

        response_text = response_text.strip()
        if response_text.startswith("```"):
            response_text = response_text.removeprefix("```json").strip("`").strip()

        try:
            data = json.loads(response_text)
        except json.JSONDecodeError as e:
            raise AnalysisError(f"Failed to parse AI response: {e}") from e

        try:
            return AnalysisResult.model_validate(data)
        except ValidationError as e:
            raise AnalysisError(f"AI response does not match schema: {e.error_count()} error(s)") from e
