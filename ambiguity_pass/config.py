from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    OPENAI_API_KEY: str = Field("")
    OPENAI_BASE_URL: str = Field("https://api.openai.com/v1/chat/completions")
    AMBIGUITY_MODEL: str = Field("gpt-4o-mini")
    AMBIGUITY_TIMEOUT_MS: int = Field(60000)
    AMBIGUITY_MAX_TOKENS: int = Field(2048)
    AMBIGUITY_TEMPERATURE: float = Field(0.2)
    # tenacity attempts per oracle call (1 = no retry)
    AMBIGUITY_MAX_ATTEMPTS: int = Field(2, ge=1)
    LOG_DIR: str = Field("logs")
    LOG_LEVEL: str = Field("INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
