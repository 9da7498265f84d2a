"""Application configuration with comprehensive validation."""
from typing import Optional, Literal, List
from functools import lru_cache
from pydantic import Field, field_validator, model_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# ANSWER TOKENS
# =============================================================================
# Strings a yes/no field accepts as an affirmative answer. Compared after
# trimming and lower-casing, so "Yes", " TRUE " and "Sí" all count.
# =============================================================================

DEFAULT_AFFIRMATIVE_TOKENS: List[str] = ["true", "yes", "sí", "si"]


class Settings(BaseSettings):
    """Application settings with production-grade validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Form Scoring & Access Engine"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    # API
    API_V1_PREFIX: str = "/api/v1"
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # Snowflake (remote store)
    SNOWFLAKE_ACCOUNT: Optional[str] = None
    SNOWFLAKE_USER: Optional[str] = None
    SNOWFLAKE_PASSWORD: Optional[SecretStr] = None
    SNOWFLAKE_DATABASE: Optional[str] = None
    SNOWFLAKE_SCHEMA: Optional[str] = None
    SNOWFLAKE_WAREHOUSE: Optional[str] = None
    SNOWFLAKE_ROLE: Optional[str] = None
    FORMS_TABLE: str = Field(default="FORM_DEFINITIONS", pattern=r"^[A-Z_][A-Z0-9_]*$")
    RESPONSES_TABLE: str = Field(default="FORM_RESPONSES", pattern=r"^[A-Z_][A-Z0-9_]*$")

    # Redis (local durable cache)
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_KEY_PREFIX: str = "formengine"
    RESPONSE_CACHE_LIMIT: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Most recent responses kept when the response cache hits its quota",
    )

    # Scoring
    AFFIRMATIVE_TOKENS: List[str] = Field(default_factory=lambda: list(DEFAULT_AFFIRMATIVE_TOKENS))

    # Webhooks
    WEBHOOK_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0, le=120)

    @field_validator("AFFIRMATIVE_TOKENS")
    @classmethod
    def normalize_affirmative_tokens(cls, v: List[str]) -> List[str]:
        tokens = [t.strip().lower() for t in v if t and t.strip()]
        if not tokens:
            raise ValueError("At least one affirmative token is required")
        return tokens

    @field_validator("PUBLIC_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure production has a reachable remote store configured."""
        if self.APP_ENV == "production":
            if self.DEBUG:
                raise ValueError("DEBUG must be False in production")
            if not all([self.SNOWFLAKE_ACCOUNT, self.SNOWFLAKE_USER, self.SNOWFLAKE_PASSWORD]):
                raise ValueError("Snowflake credentials are required in production")
        return self

    @property
    def snowflake_configured(self) -> bool:
        """True when enough Snowflake credentials are present to connect."""
        return all([self.SNOWFLAKE_ACCOUNT, self.SNOWFLAKE_USER, self.SNOWFLAKE_PASSWORD])


@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
