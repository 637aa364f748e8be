"""Gemini generateContent client for multimodal text/image exchanges."""

import logging
from enum import Enum
from typing import Any, Sequence

import httpx
from pydantic import BaseModel, ValidationError
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from ..config import InferenceConfig, RetryConfig
from ..errors import MalformedResponse, TransportFailure
from ..models import EncodedImage

logger = logging.getLogger("fit_mapper.inference")


class Modality(str, Enum):
    TEXT = "TEXT"
    IMAGE = "IMAGE"


class InferenceResponse(BaseModel):
    """The parts of the first candidate the pipeline reads.

    Either field may be None: absence is a valid state, not an error.
    """
    text: str | None = None
    image: EncodedImage | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "InferenceResponse":
        """Pick the first text part and the first inline-image part.

        Raises MalformedResponse when the candidate/content/parts shape is missing.
        """
        if not isinstance(payload, dict):
            raise MalformedResponse("Response body is not a JSON object")

        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            feedback = payload.get("promptFeedback")
            raise MalformedResponse(f"Response has no candidates (promptFeedback={feedback})")

        first = candidates[0] if isinstance(candidates[0], dict) else {}
        content = first.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            raise MalformedResponse(
                f"First candidate has no content parts (finishReason={first.get('finishReason')})"
            )

        text = None
        image = None
        for part in parts:
            if not isinstance(part, dict):
                continue
            if text is None and isinstance(part.get("text"), str):
                text = part["text"]
            inline = part.get("inlineData")
            if image is None and isinstance(inline, dict) and inline.get("data"):
                image = _inline_image(inline)

        return cls(text=text, image=image)


def _inline_image(inline: dict[str, Any]) -> EncodedImage | None:
    """Build an image from an inlineData part; unusable parts count as absent."""
    try:
        return EncodedImage(
            data=inline["data"],
            media_type=inline.get("mimeType") or "image/png",
        )
    except ValidationError as e:
        logger.warning("Ignoring unusable inlineData part: %s", e.errors()[0]["msg"])
        return None


def build_request_body(
    prompt: str | None,
    images: Sequence[EncodedImage] = (),
    modalities: Sequence[Modality] = (Modality.TEXT,),
    temperature: float | None = None,
) -> dict[str, Any]:
    """Build a generateContent JSON body: text first, then images in order."""
    parts: list[dict[str, Any]] = []
    if prompt:
        parts.append({"text": prompt})
    for image in images:
        parts.append({"inlineData": {"mimeType": image.media_type, "data": image.data}})

    if not parts:
        raise ValueError("An inference request needs at least one text or image part")

    body: dict[str, Any] = {"contents": [{"parts": parts}]}

    # Plain text requests go out without generationConfig, like the service default
    if Modality.IMAGE in modalities or temperature is not None:
        generation_config: dict[str, Any] = {"responseModalities": [m.value for m in modalities]}
        if temperature is not None:
            generation_config["temperature"] = temperature
        body["generationConfig"] = generation_config

    return body


def _is_retryable(error: BaseException) -> bool:
    """Network errors, rate limits and server errors are worth another attempt."""
    if not isinstance(error, TransportFailure):
        return False
    return error.status_code is None or error.status_code == 429 or error.status_code >= 500


class InferenceClient:
    """Client for one-shot multimodal requests to the Gemini REST API."""

    def __init__(
        self,
        api_key: str,
        config: InferenceConfig | None = None,
        retry: RetryConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        if not api_key:
            raise ValueError("A Gemini API key is required (set GEMINI_API_KEY)")
        self.api_key = api_key
        self.config = config or InferenceConfig()
        self.retry = retry or RetryConfig()
        self._client = http_client

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
        return self._client

    async def generate(
        self,
        prompt: str | None,
        images: Sequence[EncodedImage] = (),
        *,
        model: str,
        modalities: Sequence[Modality] = (Modality.TEXT,),
        temperature: float | None = None,
    ) -> InferenceResponse:
        """Send one generateContent request and parse the first candidate.

        Args:
            prompt: Instruction text (sent as the first part)
            images: Inline images, already base64-encoded, in part order
            model: Model name, e.g. "gemini-2.5-flash-image-preview"
            modalities: Requested response modalities
            temperature: Sampling temperature, omitted when None

        Returns:
            InferenceResponse with optional text and image

        Raises:
            TransportFailure: network error or non-success status
            MalformedResponse: body missing the candidate/part shape
        """
        body = build_request_body(prompt, images, modalities, temperature)
        url = self.config.endpoint(model)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential(min=self.retry.backoff_min, max=self.retry.backoff_max),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.info("Retrying %s (attempt %d)", model, attempt.retry_state.attempt_number)
                payload = await self._post(url, body, model)

        return InferenceResponse.from_payload(payload)

    async def _post(self, url: str, body: dict[str, Any], model: str) -> Any:
        try:
            response = await self.client.post(
                url,
                json=body,
                headers={"x-goog-api-key": self.api_key},
            )
        except httpx.HTTPError as e:
            raise TransportFailure(f"Request to {model} failed: {type(e).__name__}: {e}") from e

        if not response.is_success:
            raise TransportFailure(
                f"{model} rejected request ({response.status_code}): {response.text[:500]}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponse(f"{model} returned a non-JSON body") from e

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
