from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_name: str = "HablaConmigo Exercise Service"
    debug: bool = False

    # LLM provider
    llm_provider: str = "gemini"
    openai_api_key: str = ""
    gemini_api_key: str = ""
    generation_model: str = "gpt-4o-mini"  # used when llm_provider == "openai"
    gemini_model: str = "gemini-2.5-flash"
    generation_temperature: float = 0.5  # lower than story generation, favours precision
    generation_max_tokens: int = 2000

    # Validation / regeneration pipeline
    gate_threshold: float = 70.0
    max_generation_attempts: int = 3      # includes the original candidate
    generation_timeout_seconds: float = 45.0
    max_concurrent_generations: int = 2

    # Rate limiting for /finalize
    rate_limit_requests: int = 10
    rate_limit_window_seconds: float = 60.0

    # CORS
    frontend_url: str = "http://localhost:5173"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
