import logging
import os
from functools import lru_cache
from openai import OpenAI
from hablaconmigo.core.config import Settings, get_settings

_prompt_logger = logging.getLogger("hablaconmigo.llm_prompts")


# ── Gemini behind the chat-completions interface ─────────────────────────────
# LLMExerciseGenerator only calls client.chat.completions.create(...) and reads
# response.choices[0].message.content; these wrappers give Gemini that shape.

class _Message:
    def __init__(self, content: str):
        self.content = content


class _Choice:
    def __init__(self, content: str):
        self.message = _Message(content)


class _Completion:
    def __init__(self, text: str):
        self.choices = [_Choice(text)]


class _GeminiCompletions:
    def __init__(self, api_key: str, model: str):
        self._api_key = api_key
        self._model = model

    def create(self, model=None, messages=None, temperature=0.5, max_tokens=None, timeout=None, **kwargs):
        from google import genai
        from google.genai import types

        messages = messages or []
        system_instruction = "\n\n".join(m["content"] for m in messages if m.get("role") == "system") or None
        prompt = "\n\n".join(m["content"] for m in messages if m.get("role") != "system")
        max_output_tokens = max_tokens or 2048

        if os.environ.get("DEBUG_LLM_PROMPTS", "").lower() in ("1", "true"):
            _prompt_logger.warning(
                "[gemini] model=%s temp=%s max_tokens=%s\n── SYSTEM ──\n%s\n── USER ──\n%s",
                self._model, temperature, max_output_tokens, system_instruction or "(none)", prompt,
            )

        http_options = types.HttpOptions(timeout=int(timeout * 1000)) if timeout else None  # milliseconds
        client = genai.Client(api_key=self._api_key, http_options=http_options)
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            response_mime_type="application/json",
            # no thinking budget, so the reply starts with the JSON object
            thinking_config=types.ThinkingConfig(thinking_budget=0),
        )
        response = client.models.generate_content(model=self._model, contents=prompt, config=config)
        return _Completion(response.text or "")


class _GeminiChat:
    def __init__(self, api_key: str, model: str):
        self.completions = _GeminiCompletions(api_key, model)


class GeminiClientAdapter:
    def __init__(self, api_key: str, model: str = "gemini-2.5-flash"):
        self.chat = _GeminiChat(api_key, model)


def get_llm_client(settings: Settings | None = None):
    """Return the active LLM client based on llm_provider setting."""
    if settings is None:
        settings = get_settings()
    if settings.llm_provider == "openai":
        return OpenAI(api_key=settings.openai_api_key, timeout=settings.generation_timeout_seconds)
    return GeminiClientAdapter(api_key=settings.gemini_api_key, model=settings.gemini_model)


@lru_cache
def get_exercise_generator():
    """LLM-backed generation service used by the regeneration loop."""
    from hablaconmigo.services.exercise_generator import LLMExerciseGenerator

    settings = get_settings()
    return LLMExerciseGenerator(
        client=get_llm_client(settings),
        model=settings.generation_model,
        temperature=settings.generation_temperature,
        max_tokens=settings.generation_max_tokens,
        timeout=settings.generation_timeout_seconds,
    )


@lru_cache
def get_rate_limiter():
    from hablaconmigo.services.rate_limiter import RateLimiter

    settings = get_settings()
    return RateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
