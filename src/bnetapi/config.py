"""
Client configuration value.

A ``ClientConfig`` is immutable: changing a setting produces a new validated
instance. The coordinator snapshots the instance it is given at send time, so
nothing a caller does while a batch is in flight can change how that batch
is dispatched.
"""

from __future__ import annotations

import os
import typing as t

import structlog
from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    ValidationError,
    field_validator,
    model_validator,
)

from bnetapi.exceptions import ConfigurationError

log = structlog.get_logger(__name__)

ENV_PREFIX = "BNET_"

REGION_HOSTS: dict[str, str] = {
    "US": "https://us.api.battle.net",
    "Europe": "https://eu.api.battle.net",
    "Korea": "https://kr.api.battle.net",
    "Taiwan": "https://tw.api.battle.net",
    "China": "https://api.battlenet.com.cn",
    "South East Asia": "https://sea.api.battle.net",
}

REGION_LOCALES: dict[str, tuple[str, ...]] = {
    "US": ("en_US", "es_MX", "pt_BR"),
    "Europe": ("en_GB", "es_ES", "fr_FR", "ru_RU", "de_DE", "pt_PT", "it_IT"),
    "Korea": ("ko_KR",),
    "Taiwan": ("zh_TW",),
    "China": ("zh_CN",),
    "South East Asia": ("en_US",),
}


class ClientConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    api_key: str | None = Field(
        default=None,
        description="API key appended to every request as the apikey parameter",
        repr=False,
    )
    region: str = Field(default="US", description="API region, determines the host")
    locale: str = Field(default="en_US", description="locale appended to every request")
    throttle_per_second: StrictInt = Field(
        default=0, ge=0, description="max requests issued per second, 0 disables"
    )
    throttle_per_hour: StrictInt = Field(
        default=0, ge=0, description="max requests issued per hour, 0 disables"
    )
    max_connections: StrictInt = Field(
        default=5, gt=0, description="max number of requests in flight at once"
    )
    timeout: float = Field(default=30.0, gt=0, description="per-request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="verify TLS certificates")
    headers: dict[str, str] = Field(
        default_factory=dict, description="extra headers sent with every request"
    )

    @field_validator("region")
    @classmethod
    def check_region(cls, value: str) -> str:
        if value not in REGION_HOSTS:
            raise ValueError(
                'Invalid region. Must be one of the following: "'
                + '", "'.join(REGION_HOSTS)
                + '"'
            )
        return value

    @model_validator(mode="after")
    def check_locale(self) -> "ClientConfig":
        """Validate that the locale is offered in the configured region."""
        locales = REGION_LOCALES[self.region]
        if self.locale not in locales:
            raise ValueError(
                f'The locale "{self.locale}" is not available in the "{self.region}" region. '
                f"Must be one of the following: {', '.join(locales)}"
            )
        return self

    @property
    def host(self) -> str:
        """Protocol and domain of the API for the configured region."""
        return REGION_HOSTS[self.region]

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def build(cls, **settings: t.Any) -> "ClientConfig":
        """
        Build a validated configuration.

        Parameters
        ----------
        **settings : typing.Any
            Field values, see the model fields.

        Returns
        -------
        ClientConfig
            Validated configuration.

        Raises
        ------
        ConfigurationError
            If any setting is invalid.
        """
        try:
            return cls(**settings)
        except ValidationError as error:
            log.debug(event="Rejected client configuration", error_count=error.error_count())
            raise ConfigurationError(_format_validation_error(error=error)) from error

    def updated(self, **changes: t.Any) -> "ClientConfig":
        """
        Return a validated copy with ``changes`` applied.

        Parameters
        ----------
        **changes : typing.Any
            Field values to replace.

        Returns
        -------
        ClientConfig
            New configuration, ``self`` is left untouched.
        """
        settings = self.model_dump()
        settings.update(changes)
        # Switching region alone falls back to that region's first locale.
        if "region" in changes and "locale" not in changes:
            region_locales = REGION_LOCALES.get(changes["region"], ())
            if region_locales and settings["locale"] not in region_locales:
                settings["locale"] = region_locales[0]
        return self.build(**settings)

    @classmethod
    def from_env(cls, **overrides: t.Any) -> "ClientConfig":
        """
        Build a configuration from ``BNET_*`` environment variables.

        A ``.env`` file in the working directory is loaded first. Explicit
        keyword overrides take precedence over the environment.

        Parameters
        ----------
        **overrides : typing.Any
            Field values that win over the environment.

        Returns
        -------
        ClientConfig
            Validated configuration.
        """
        load_dotenv()
        settings: dict[str, t.Any] = {}
        for field_name in (
            "api_key",
            "region",
            "locale",
            "throttle_per_second",
            "throttle_per_hour",
            "max_connections",
            "timeout",
        ):
            value = os.getenv(key=f"{ENV_PREFIX}{field_name.upper()}")
            if value is None or value == "":
                continue
            settings[field_name] = _coerce_env_value(field_name=field_name, value=value)
        settings.update(overrides)
        log.debug(
            event="Loaded configuration from environment",
            fields=sorted(key for key in settings if key != "api_key"),
            has_api_key="api_key" in settings,
        )
        return cls.build(**settings)


def _coerce_env_value(*, field_name: str, value: str) -> t.Any:
    if field_name in {"throttle_per_second", "throttle_per_hour", "max_connections"}:
        try:
            return int(value)
        except ValueError as error:
            raise ConfigurationError(
                f"Environment variable {ENV_PREFIX}{field_name.upper()} must be an integer, "
                f"got {value!r}."
            ) from error
    if field_name == "timeout":
        try:
            return float(value)
        except ValueError as error:
            raise ConfigurationError(
                f"Environment variable {ENV_PREFIX}TIMEOUT must be a number, got {value!r}."
            ) from error
    return value


def _format_validation_error(*, error: ValidationError) -> str:
    messages = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "config"
        messages.append(f"{location}: {detail['msg']}")
    return "; ".join(messages)
