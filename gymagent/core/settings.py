from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    fast_model: str = Field(
        default="gpt-4o-mini",
        validation_alias="FAST_MODEL",
        description="Model used for the fast/cheap tier",
    )
    capable_model: str = Field(
        default="gpt-4o",
        validation_alias="CAPABLE_MODEL",
        description="Model used for the slow/capable tier",
    )
    backend_timeout_seconds: float = Field(
        default=30.0,
        validation_alias="BACKEND_TIMEOUT_SECONDS",
        description="Upper bound for a single backend call, streaming included",
    )
    backend_max_output_tokens: int = Field(default=1024, validation_alias="BACKEND_MAX_OUTPUT_TOKENS")
    backend_temperature: float = Field(default=0.2, validation_alias="BACKEND_TEMPERATURE")
    max_clarification_retries: int = Field(
        default=3,
        validation_alias="MAX_CLARIFICATION_RETRIES",
        description="Mismatched answers tolerated before a clarification is abandoned",
    )
    episodic_memory_max_turns: int = Field(
        default=50,
        validation_alias="EPISODIC_MEMORY_MAX_TURNS",
        description="Most recent conversation turns kept per session",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("max_clarification_retries", "episodic_memory_max_turns")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError(f"Expected a positive integer, got {value}")
        return value

    @field_validator("backend_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"BACKEND_TIMEOUT_SECONDS must be positive, got {value}")
        return value


settings = Settings()
