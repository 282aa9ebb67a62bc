"""
Tests for the Gemini generator and the hard time bound around it.

The google-genai client is replaced with a MagicMock; no network calls.
"""
from datetime import date
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from conftest import SlowGenerator
from services.workout_errors import GenerationTimeoutError, UnknownGenerationError
from services.workout_llm import GeminiWorkoutGenerator, call_with_timeout
from services.workout_prompt import GenerationRequest


def _request():
    return GenerationRequest(
        day=date(2025, 1, 8).isoformat(),
        system_prompt="system",
        user_prompt="user",
        vocabulary={},
    )


def _response(text):
    part = SimpleNamespace(text=text)
    candidate = SimpleNamespace(content=SimpleNamespace(parts=[part]))
    return SimpleNamespace(
        candidates=[candidate],
        usage_metadata=SimpleNamespace(candidates_token_count=42),
    )


class TestGeminiWorkoutGenerator:
    def test_returns_first_candidate_text(self):
        client = MagicMock()
        client.models.generate_content.return_value = _response('{"title": "x"}')

        generator = GeminiWorkoutGenerator(client=client, model="test-model", temperature=0.2)
        assert generator.generate_text(_request()) == '{"title": "x"}'

        kwargs = client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["config"].system_instruction == "system"
        assert kwargs["config"].temperature == 0.2
        assert kwargs["config"].response_mime_type == "application/json"

    def test_empty_candidates_give_empty_text(self):
        client = MagicMock()
        client.models.generate_content.return_value = SimpleNamespace(candidates=[], usage_metadata=None)
        assert GeminiWorkoutGenerator(client=client).generate_text(_request()) == ""

    def test_missing_api_key(self):
        with patch("services.workout_llm.settings.GOOGLE_AI_API_KEY", None):
            generator = GeminiWorkoutGenerator()
            with pytest.raises(UnknownGenerationError) as exc_info:
                generator.generate_text(_request())
        assert "GOOGLE_AI_API_KEY" in exc_info.value.error_reason


class TestCallWithTimeout:
    def test_returns_result_within_bound(self):
        client = MagicMock()
        client.models.generate_content.return_value = _response("ok")
        assert call_with_timeout(GeminiWorkoutGenerator(client=client), _request(), timeout_s=2.0) == "ok"

    def test_timeout_raises(self):
        generator = SlowGenerator()
        try:
            with pytest.raises(GenerationTimeoutError) as exc_info:
                call_with_timeout(generator, _request(), timeout_s=0.05)
        finally:
            generator.release.set()
        assert "timeout" in exc_info.value.error_reason

    def test_generator_errors_propagate(self):
        client = MagicMock()
        client.models.generate_content.side_effect = RuntimeError("quota exceeded")
        with pytest.raises(RuntimeError):
            call_with_timeout(GeminiWorkoutGenerator(client=client), _request(), timeout_s=2.0)
