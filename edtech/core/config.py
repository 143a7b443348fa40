from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application Information
    app_name: str = Field(default="E-Learning Platform")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)

    # Remote Store (PostgREST-compatible backend)
    remote_url: str = Field(default="http://localhost:54321")
    remote_api_key: str = Field(default="")
    remote_access_token: str = Field(default="")
    remote_timeout: float = Field(default=10.0)

    # Logging
    log_level: str = Field(default="info")
    log_file: str = Field(default="")

    # Display Defaults
    fallback_user_name: str = Field(default="Usuário")
    recent_courses_limit: int = Field(default=5)

    # Profile Rules
    profile_name_min_length: int = Field(default=2)
    profile_name_max_length: int = Field(default=100)

    @field_validator("remote_url", mode="before")
    def strip_trailing_slash(cls, v):
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("log_level", mode="before")
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().lower() or "info"
        return v

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "EDTECH_",
        "case_sensitive": False,
        "extra": "ignore",
    }


def load_settings():
    try:
        settings = Settings()
        return settings
    except ValidationError as e:
        print("❌ Validation Error:", e)
        raise


settings = load_settings()
