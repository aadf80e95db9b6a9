"""Localization engine configuration settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LocalizationSettings(BaseSettings):
    """Template engine and catalog settings.

    Environment Variables:
        LOCALIZATION_DEFAULT_LOCALE: Locale used when a catalog does not name one
            (default: "" meaning the invariant locale)
        LOCALIZATION_COMPILE_ON_LOAD: Compile every templated text when a catalog
            is frozen so syntax errors surface at load time (default: True)
        LOCALIZATION_MAX_NESTING_DEPTH: Deepest allowed nesting of sub-messages
            (default: 64)
        LOCALIZATION_USE_LIKELY_REGION: Try the language's most likely regional
            locale during fallback, e.g. "de" -> "de-DE" (default: True)
        LOCALIZATION_FALLBACK_NUMBER_LOCALE: Locale used to format numbers when
            the requested locale is invariant or unknown (default: "en")

    Example:
        ```python
        from core.config import settings

        depth = settings.localization.MAX_NESTING_DEPTH
        ```
    """

    DEFAULT_LOCALE: str = Field(default="")
    COMPILE_ON_LOAD: bool = Field(default=True)
    MAX_NESTING_DEPTH: int = Field(default=64, ge=1)
    USE_LIKELY_REGION: bool = Field(default=True)
    FALLBACK_NUMBER_LOCALE: str = Field(default="en")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="LOCALIZATION_",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("DEFAULT_LOCALE", "FALLBACK_NUMBER_LOCALE", mode="before")
    @classmethod
    def _strip_locale(cls, v):
        if v is None:
            return ""
        return str(v).strip()


class Settings(BaseSettings):
    """Localization engine configuration settings."""

    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"

    localization: LocalizationSettings

    @property
    def is_production(self) -> bool:
        """Check if the application is running in production."""
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        settings_map = {
            "localization": LocalizationSettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


# Create the settings instance
settings = Settings()
