from functools import lru_cache

from pydantic import Field, HttpUrl, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised when the environment does not describe a usable object store."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = Field(default=False, alias="DEBUG")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    log_level: str = Field(default="info", alias="LOG_LEVEL")

    r2_endpoint: HttpUrl = Field(alias="R2_ENDPOINT")
    r2_account_id: str = Field(min_length=1, alias="R2_ACCOUNT_ID")
    r2_access_key_id: str = Field(min_length=1, alias="R2_ACCESS_KEY_ID")
    r2_secret_access_key: str = Field(min_length=1, alias="R2_SECRET_ACCESS_KEY")
    r2_bucket: str = Field(min_length=1, alias="R2_BUCKET")
    r2_region: str = Field(default="auto", alias="R2_REGION")

    static_dir: str = Field(default="public", alias="STATIC_DIR")
    cors_allow_origins: str = Field(default="*", alias="CORS_ALLOW_ORIGINS")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]


def _invalid_variables(exc: ValidationError) -> list[str]:
    names = []
    for error in exc.errors():
        loc = error.get("loc") or ()
        if loc:
            names.append(str(loc[0]).upper())
    return sorted(set(names))


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as exc:
        missing = ", ".join(_invalid_variables(exc)) or "unknown"
        raise ConfigurationError(
            f"Missing R2 configuration in environment variables: {missing}"
        ) from exc
