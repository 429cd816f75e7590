from __future__ import annotations

from typing import Any, Mapping

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from .errors import ConfigurationError

ENV_PREFIX = "RUNNER_"
_SECRET_FIELDS = {"access_key_id", "secret_access_key", "token"}
_MASK = "****"


class RunnerParams(BaseSettings):
    """Object-storage and capture settings read from `RUNNER_*` variables.

    Example:
        ```python
        params = RunnerParams()  # reads RUNNER_ENDPOINT, RUNNER_ACCESSKEYID, ...
        ```
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        populate_by_name=True,
        extra="ignore",
    )

    endpoint: str = ""
    access_key_id: str = Field(default="", validation_alias=f"{ENV_PREFIX}ACCESSKEYID")
    secret_access_key: str = Field(
        default="", validation_alias=f"{ENV_PREFIX}SECRETACCESSKEY"
    )
    location: str = ""
    token: str = ""
    ssl: bool = False
    scrapper_enabled: bool = Field(
        default=False, validation_alias=f"{ENV_PREFIX}SCRAPPERENABLED"
    )

    @model_validator(mode="after")
    def require_storage_when_enabled(self) -> "RunnerParams":
        """Reject an enabled scraper that has no endpoint or credentials.

        Example:
            ```python
            RunnerParams(scrapper_enabled=True)  # raises ValidationError
            ```
        """
        if not self.scrapper_enabled:
            return self
        missing = [
            f"{ENV_PREFIX}{name}"
            for name, value in (
                ("ENDPOINT", self.endpoint),
                ("ACCESSKEYID", self.access_key_id),
                ("SECRETACCESSKEY", self.secret_access_key),
            )
            if not value.strip()
        ]
        if missing:
            raise ValueError(
                "scraping is enabled but required settings are empty: "
                + ", ".join(missing)
            )
        return self

    def masked(self) -> dict[str, Any]:
        """Return settings for display with credentials hidden.

        Example:
            ```python
            shown = params.masked()  # {"endpoint": "minio:9000", "access_key_id": "****", ...}
            ```
        """
        shown: dict[str, Any] = {}
        for name, value in self.model_dump().items():
            if name in _SECRET_FIELDS and value:
                shown[name] = _MASK
            else:
                shown[name] = value
        return shown


def _format_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic validation errors into one readable line.

    Example:
        ```python
        text = _format_validation_error(exc)  # "RUNNER_SSL: Input should be a valid boolean"
        ```
    """
    parts: list[str] = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()))
        message = err.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


class _MappingRunnerParams(RunnerParams):
    """Runner settings validated from explicit values only.

    Example:
        ```python
        params = _MappingRunnerParams(endpoint="minio:9000")  # ignores os.environ
        ```
    """

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Keep only the init source so nothing leaks in from the environment.

        Example:
            ```python
            sources = _MappingRunnerParams.settings_customise_sources(...)
            ```
        """
        return (init_settings,)


def _values_from_mapping(env: Mapping[str, str]) -> dict[str, str]:
    """Pick `RUNNER_*` entries from a mapping keyed for field validation.

    Names match case-insensitively, like environment lookups do.

    Example:
        ```python
        values = _values_from_mapping({"RUNNER_ENDPOINT": "minio:9000"})  # {"endpoint": "minio:9000"}
        ```
    """
    lowered = {key.lower(): value for key, value in env.items()}
    values: dict[str, str] = {}
    for name, field in RunnerParams.model_fields.items():
        alias = field.validation_alias if isinstance(field.validation_alias, str) else None
        env_name = alias or f"{ENV_PREFIX}{name}"
        if env_name.lower() in lowered:
            values[alias or name] = lowered[env_name.lower()]
    return values


def load_params(env: Mapping[str, str] | None = None) -> RunnerParams:
    """Load runner settings from the process environment or an explicit mapping.

    Example:
        ```python
        params = load_params()
        params = load_params({"RUNNER_ENDPOINT": "minio:9000", "RUNNER_SSL": "true"})
        ```
    """
    try:
        if env is None:
            return RunnerParams()
        return _MappingRunnerParams(**_values_from_mapping(env))
    except ValidationError as exc:
        raise ConfigurationError(
            f"invalid runner configuration: {_format_validation_error(exc)}"
        ) from exc
