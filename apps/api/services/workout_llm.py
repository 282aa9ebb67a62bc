"""
Language model seam for workout generation.

The pipeline only depends on `generate_text(request) -> str`. The Gemini
implementation lives here; tests pass any object with the same method.

The time bound is enforced by `call_with_timeout`, not by the client: the
call runs on a single worker thread and is abandoned (not awaited) when the
bound expires.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from typing import Any, Optional

from core.config import settings
from services.workout_errors import GenerationTimeoutError, UnknownGenerationError
from services.workout_prompt import GenerationRequest

logger = logging.getLogger(__name__)


class GeminiWorkoutGenerator:
    """generate_text() backed by google-genai."""

    def __init__(
        self,
        client: Any = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ):
        self.model = model or settings.WORKOUT_GENERATION_MODEL
        self.temperature = settings.WORKOUT_GENERATION_TEMPERATURE if temperature is None else temperature
        self.max_output_tokens = max_output_tokens or settings.WORKOUT_GENERATION_MAX_TOKENS
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            if not settings.GOOGLE_AI_API_KEY:
                raise UnknownGenerationError("GOOGLE_AI_API_KEY not set, cannot generate workout")
            from google import genai
            self._client = genai.Client(api_key=settings.GOOGLE_AI_API_KEY)
        return self._client

    def generate_text(self, request: GenerationRequest) -> str:
        from google.genai import types as genai_types

        start = time.monotonic()
        response = self.client.models.generate_content(
            model=self.model,
            contents=[
                genai_types.Content(
                    role="user",
                    parts=[genai_types.Part(text=request.user_prompt)],
                ),
            ],
            config=genai_types.GenerateContentConfig(
                system_instruction=request.system_prompt,
                max_output_tokens=self.max_output_tokens,
                temperature=self.temperature,
                response_mime_type="application/json",
            ),
        )
        latency_ms = int((time.monotonic() - start) * 1000)

        text = ""
        if response.candidates:
            candidate = response.candidates[0]
            if candidate.content and candidate.content.parts:
                text = candidate.content.parts[0].text or ""

        output_tokens = 0
        if getattr(response, "usage_metadata", None):
            output_tokens = getattr(response.usage_metadata, "candidates_token_count", 0) or 0
        logger.info(
            f"Workout generation call for {request.day}: model={self.model} "
            f"latency_ms={latency_ms} output_tokens={output_tokens}"
        )
        return text


def call_with_timeout(generator: Any, request: GenerationRequest, timeout_s: float) -> str:
    """
    Run generator.generate_text(request) with a hard time bound.

    Raises GenerationTimeoutError on expiry; the worker thread is left to
    finish on its own and its result is discarded.
    """
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="workout-gen")
    future = pool.submit(generator.generate_text, request)
    try:
        return future.result(timeout=timeout_s)
    except FuturesTimeout:
        logger.warning(f"Workout generation timed out after {timeout_s}s for {request.day}")
        future.cancel()
        raise GenerationTimeoutError(timeout_s)
    finally:
        pool.shutdown(wait=False)
