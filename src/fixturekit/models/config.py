from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LoggingConfig(BaseModel):
    """
    Logging settings.

    A bare level string is accepted in place of the mapping, so both
    ``logging: DEBUG`` and ``logging: {level: DEBUG, console: false}`` are valid.
    """
    model_config = ConfigDict(extra='forbid')

    level: str = Field(default="INFO", description="Minimum level for fixturekit loggers")
    console: bool = Field(default=True, description="Emit colored logs to stderr")
    json_format: bool = Field(default=False, description="Format file logs as JSON")
    file: Optional[str] = Field(default=None, description="Rotating log file path, disabled when unset")

    @model_validator(mode="before")
    @classmethod
    def _accept_level_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"level": data}
        return data

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LEVELS:
            raise ValueError(f"Unknown log level '{v}', expected one of {', '.join(_LEVELS)}")
        return level


class FixtureKitConfig(BaseModel):
    """Settings that govern registration and orchestration."""
    model_config = ConfigDict(extra='forbid')

    strict_dependencies: bool = Field(
        default=False,
        description="Reject providers that depend on unregistered fixture names at registration time",
    )
    attach_teardown_notes: bool = Field(
        default=True,
        description="Attach teardown errors as notes to a failing test body's exception",
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
