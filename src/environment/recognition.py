import base64
import logging
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict
import litellm

from .prompts import RECOGNITION_PROMPT


logger = logging.getLogger(__name__)

Payload = Union[bytes, str]


class RecognitionError(Exception):
    """Base class for recognition failures. No attempt is consumed."""

    code = "RECOGNITION_FAILED"
    user_message = "Failed to check your answer. Please try again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)


class RateLimited(RecognitionError):
    """The service is throttling requests; back off before trying again."""

    code = "RATE_LIMITED"
    user_message = "Too many attempts! Please wait a moment."


class QuotaExceeded(RecognitionError):
    """The usage allowance is spent; stop sending requests."""

    code = "QUOTA_EXCEEDED"
    user_message = "AI usage limit reached. Please contact your teacher."


class RecognitionFailed(RecognitionError):
    """Generic or network failure; the user may retry."""


class Recognition(BaseModel):
    """Text read from a submission, verbatim."""
    text: str


class RecognitionClient(BaseModel):
    """
    Converts an answer submission into text.

    Subclasses make at most one call per submission and never retry.
    """

    async def recognize(self, payload: Payload) -> Recognition:
        raise NotImplementedError


class TypedAnswerClient(RecognitionClient):
    """Passes through text that was already recognized upstream (typed or device-read)."""

    async def recognize(self, payload: Payload) -> Recognition:
        if isinstance(payload, bytes):
            try:
                payload = payload.decode("utf-8")
            except UnicodeDecodeError as e:
                raise RecognitionFailed(f"{RecognitionFailed.user_message} (answer is not UTF-8 text)") from e
        return Recognition(text=payload)


def to_data_url(payload: Payload, mime_type: str = "image/png") -> str:
    """
    Normalize an image payload to a base64 data URL.

    Accepts raw image bytes, a bare base64 string, or an existing data URL.
    """
    if isinstance(payload, bytes):
        return f"data:{mime_type};base64,{base64.b64encode(payload).decode('ascii')}"
    payload = payload.strip()
    if payload.startswith("data:"):
        return payload
    return f"data:{mime_type};base64,{payload}"


def classify_error(error: Exception) -> RecognitionError:
    """Map a LiteLLM/provider exception onto the recognition error taxonomy."""
    status = getattr(error, "status_code", None)

    if isinstance(error, litellm.RateLimitError) or status == 429:
        return RateLimited(RateLimited.user_message)

    if isinstance(error, litellm.BudgetExceededError) or status == 402:
        return QuotaExceeded(QuotaExceeded.user_message)

    return RecognitionFailed(f"{RecognitionFailed.user_message} ({error})")


class HandwritingRecognitionClient(RecognitionClient):
    """
    Reads handwritten answers with a vision model via LiteLLM.

    Extra fields given at construction are passed straight to LiteLLM
    (api_base, api_key, timeout, ...).
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra='allow')

    model: str = "gemini/gemini-2.5-flash-lite"
    temperature: float = 0.1
    max_tokens: Optional[int] = 200
    prompt: str = RECOGNITION_PROMPT

    @property
    def additional_params(self) -> Dict[str, Any]:
        """Get additional parameters passed during initialization."""
        return self.__pydantic_extra__ if hasattr(self, '__pydantic_extra__') and self.__pydantic_extra__ else {}

    def build_messages(self, payload: Payload) -> List[Dict[str, Any]]:
        """Build the single user message carrying the prompt and the image."""
        return [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": self.prompt},
                    {"type": "image_url", "image_url": {"url": to_data_url(payload)}},
                ],
            }
        ]

    async def recognize(self, payload: Payload) -> Recognition:
        """
        Read the text written in an image.

        Args:
            payload: PNG bytes, base64 string, or data URL

        Returns:
            Recognition with the model's text, stripped; may be empty if unreadable

        Raises:
            RateLimited: Provider returned 429
            QuotaExceeded: Provider returned 402 or the budget is spent
            RecognitionFailed: Empty payload or any other failure
        """
        if not payload:
            raise RecognitionFailed("No image data provided")

        params = {
            "model": self.model,
            "messages": self.build_messages(payload),
            "temperature": self.temperature,
            **self.additional_params,
        }
        if self.max_tokens is not None:
            params["max_tokens"] = self.max_tokens

        try:
            response = await litellm.acompletion(**params)
            text = response.choices[0].message.content or ""
        except Exception as e:
            error = classify_error(e)
            logger.warning(f"Recognition call failed ({error.code}): {e}")
            raise error from e

        logger.debug(f"Recognized text: {text!r}")
        return Recognition(text=text.strip())
