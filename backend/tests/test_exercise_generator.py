"""
Tests for LLMExerciseGenerator and prompt assembly.

The chat-completions client is a MagicMock; no network calls.
"""
import asyncio
import json
import sys
import os
from unittest.mock import MagicMock, patch

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from hablaconmigo.core.config import Settings
from hablaconmigo.core.deps import GeminiClientAdapter, get_llm_client
from hablaconmigo.core.exceptions import GenerationServiceFailure
from hablaconmigo.models.exercise import CompleteWordsExercise
from hablaconmigo.services.exercise_generator import (
    GenerationRequest,
    LLMExerciseGenerator,
    _clean_json,
    build_messages,
)

PASSAGE = "El gato come pescado. El gato es negro."

VALID = {"kind": "complete_words", "title": "Completa", "sentence": "El gato___pescado.", "correct": "come"}


def _make_client(content=None, raises=None):
    client = MagicMock()
    if raises is not None:
        client.chat.completions.create.side_effect = raises
    else:
        response = MagicMock()
        response.choices = [MagicMock(message=MagicMock(content=content))]
        client.chat.completions.create.return_value = response
    return client


def _make_request(**kwargs):
    base = dict(kind="complete_words", level=1, passage=PASSAGE)
    base.update(kwargs)
    return GenerationRequest(**base)


def _generate(client, request=None):
    return asyncio.run(LLMExerciseGenerator(client).generate(request or _make_request()))


# ---------------------------------------------------------------------------
# Successful generation
# ---------------------------------------------------------------------------

class TestGenerate:
    def test_plain_json(self):
        c = _generate(_make_client(json.dumps(VALID)))
        assert isinstance(c, CompleteWordsExercise)
        assert c.correct == "come"

    def test_fenced_json(self):
        c = _generate(_make_client("```json\n" + json.dumps(VALID) + "\n```"))
        assert c.title == "Completa"

    def test_nested_payload_shape(self):
        content = json.dumps({
            "type": "complete_words",
            "payload": {"sentence": "El gato___pescado.", "correct": "come"},
        })
        assert _generate(_make_client(content)).kind == "complete_words"

    def test_passes_model_settings(self):
        client = _make_client(json.dumps(VALID))
        generator = LLMExerciseGenerator(client, model="m", temperature=0.1, max_tokens=99, timeout=7.5)
        asyncio.run(generator.generate(_make_request()))
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "m"
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 99
        assert kwargs["timeout"] == 7.5

    def test_no_timeout_leaves_client_default(self):
        client = _make_client(json.dumps(VALID))
        _generate(client)
        assert "timeout" not in client.chat.completions.create.call_args.kwargs


# ---------------------------------------------------------------------------
# Failure modes
# ---------------------------------------------------------------------------

class TestFailures:
    def test_transport_error(self):
        with pytest.raises(GenerationServiceFailure) as exc_info:
            _generate(_make_client(raises=RuntimeError("connection reset")))
        assert exc_info.value.reason == "transport"

    def test_empty_response(self):
        with pytest.raises(GenerationServiceFailure) as exc_info:
            _generate(_make_client("   "))
        assert exc_info.value.reason == "empty"

    def test_none_content(self):
        with pytest.raises(GenerationServiceFailure) as exc_info:
            _generate(_make_client(None))
        assert exc_info.value.reason == "empty"

    def test_malformed_json(self):
        with pytest.raises(GenerationServiceFailure) as exc_info:
            _generate(_make_client("{not json"))
        assert exc_info.value.reason == "malformed"

    def test_schema_mismatch(self):
        with pytest.raises(GenerationServiceFailure) as exc_info:
            _generate(_make_client(json.dumps({"kind": "complete_words", "sentence": "x"})))
        assert exc_info.value.reason == "schema"

    def test_wrong_kind(self):
        content = json.dumps({"kind": "free_writing", "prompt": "¿Qué harías?"})
        with pytest.raises(GenerationServiceFailure) as exc_info:
            _generate(_make_client(content))
        assert exc_info.value.reason == "schema"
        assert "free_writing" in str(exc_info.value)


# ---------------------------------------------------------------------------
# Prompt assembly
# ---------------------------------------------------------------------------

class TestBuildMessages:
    def test_clean_json_strips_fences(self):
        assert _clean_json("```\n{}\n```") == "{}"
        assert _clean_json('```json{"a": 1}```') == '{"a": 1}'

    def test_first_generation_prompt(self):
        messages = build_messages(_make_request())
        assert [m["role"] for m in messages] == ["system", "user"]
        assert "Create one complete_words exercise" in messages[1]["content"]
        assert PASSAGE in messages[1]["content"]

    def test_regeneration_prompt_carries_feedback_and_previous(self):
        previous = CompleteWordsExercise(sentence="El perro___grande.", correct="es")
        messages = build_messages(_make_request(
            previous_attempt=previous,
            feedback=("[FAITHFULNESS] error: NOT_IN_STORY: words absent from the story: perro",),
            suitable_sentences=("El gato come pescado",),
        ))
        user = messages[1]["content"]
        assert "failed validation" in user
        assert "El perro___grande." in user
        assert "  - [FAITHFULNESS] error: NOT_IN_STORY" in user
        assert "  - El gato come pescado." in user

    def test_schema_defaults_to_kind(self):
        user = build_messages(_make_request(kind="multi_choice"))[1]["content"]
        assert '"correctIndex": 0' in user


# ---------------------------------------------------------------------------
# Client wiring
# ---------------------------------------------------------------------------

class TestLLMClient:
    def test_openai_provider(self):
        from openai import OpenAI

        client = get_llm_client(Settings(
            llm_provider="openai", openai_api_key="sk-test", generation_timeout_seconds=12.0,
        ))
        assert isinstance(client, OpenAI)
        assert client.timeout == 12.0

    def test_gemini_adapter_exposes_chat_interface(self):
        client = get_llm_client(Settings(llm_provider="gemini", gemini_api_key="g-test", gemini_model="gemini-x"))
        assert isinstance(client, GeminiClientAdapter)

        fake = MagicMock()
        fake.models.generate_content.return_value = MagicMock(text=json.dumps(VALID))
        with patch("google.genai.Client", return_value=fake) as genai_client:
            c = asyncio.run(LLMExerciseGenerator(client, timeout=5.0).generate(_make_request()))
            http_options = genai_client.call_args.kwargs["http_options"]

        assert c.correct == "come"
        kwargs = fake.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-x"
        assert "El gato come pescado." in kwargs["contents"]
        assert http_options.timeout == 5000
