"""Configuration management for proc-tool.

Handles the TOML config file, environment variables, named profiles and
precedence resolution.

Precedence order (highest to lowest):
1. CLI flags (--host, --port, --schema, ...)
2. --dsn flag (parsed into components)
3. Environment variables (PGHOST, PGPORT, PGDATABASE, PGUSER, PGPASSWORD)
4. Named profile (--profile or PROC_TOOL_PROFILE env var)
5. Config file defaults
6. Built-in defaults
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlparse

from pydantic import BaseModel, ValidationError, field_validator, model_validator

from proc_tool.core.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "proc-tool" / "config.toml"

PROFILE_ENV_VAR = "PROC_TOOL_PROFILE"

_PG_ENV_VARS: dict[str, str] = {
    "PGHOST": "host",
    "PGPORT": "port",
    "PGDATABASE": "dbname",
    "PGUSER": "user",
    "PGPASSWORD": "password",  # pragma: allowlist secret
}

_VALID_SSLMODES = frozenset(
    {"disable", "allow", "prefer", "require", "verify-ca", "verify-full"}
)

# CLI option name -> ResolvedConfig field
_CLI_FIELDS: dict[str, str] = {
    "host": "host",
    "port": "port",
    "database": "dbname",
    "user": "user",
    "password": "password",  # pragma: allowlist secret
    "sslmode": "sslmode",
    "timeout": "default_timeout",
    "schema": "default_schema",
    "multiple_results": "multiple_results",
}


def parse_dsn(dsn: str) -> dict[str, Any]:
    """Split a postgresql:// or postgres:// URL into profile fields."""
    parsed = urlparse(dsn)
    if parsed.scheme not in ("postgresql", "postgres"):
        msg = f"Invalid DSN scheme: '{parsed.scheme}'. Expected 'postgresql' or 'postgres'"
        raise ConfigError(msg)

    result: dict[str, Any] = {}
    if parsed.hostname:
        result["host"] = parsed.hostname
    if parsed.port:
        result["port"] = parsed.port
    dbname = parsed.path.strip("/") if parsed.path else ""
    if dbname:
        result["dbname"] = dbname
    if parsed.username:
        result["user"] = parsed.username
    if parsed.password:
        result["password"] = parsed.password
    for key, values in parse_qs(parsed.query).items():
        if key == "connect_timeout":
            result[key] = int(values[0])
        elif key in ("sslmode", "application_name"):
            result[key] = values[0]
    return result


class PgProfile(BaseModel):
    dsn: str | None = None
    host: str = "localhost"
    port: int = 5432
    dbname: str = "postgres"
    user: str | None = None
    password: str | None = None
    sslmode: str = "prefer"
    connect_timeout: int = 10
    application_name: str = "proc-tool"
    default_schema: str | None = None
    multiple_results: bool | None = None

    @model_validator(mode="before")
    @classmethod
    def parse_dsn_into_components(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("dsn"):
            for key, value in parse_dsn(data["dsn"]).items():
                data.setdefault(key, value)
        return data

    @field_validator("sslmode")
    @classmethod
    def validate_sslmode(cls, v: str) -> str:
        if v not in _VALID_SSLMODES:
            msg = f"Invalid sslmode: '{v}'. Must be one of: {', '.join(sorted(_VALID_SSLMODES))}"
            raise ValueError(msg)
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (1 <= v <= 65535):
            msg = f"Invalid port: {v}. Must be 1-65535"
            raise ValueError(msg)
        return v


class AppConfig(BaseModel):
    default_timeout: float = 30.0
    default_format: str = "table"
    default_profile: str | None = None
    profiles: dict[str, PgProfile] = {}


class ResolvedConfig(BaseModel):
    host: str = "localhost"
    port: int = 5432
    dbname: str = "postgres"
    user: str | None = None
    password: str | None = None
    sslmode: str = "prefer"
    connect_timeout: int = 10
    application_name: str = "proc-tool"
    default_timeout: float = 30.0
    default_format: str = "table"
    default_schema: str | None = None
    multiple_results: bool | None = None
    active_profile: str | None = None
    sources: dict[str, str] = {}


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file.

    Returns default AppConfig if the file doesn't exist.
    Raises ConfigError on malformed TOML or invalid config.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Malformed TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return AppConfig.model_validate(data)
    except (ValidationError, ConfigError) as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e


def _select_profile(config: AppConfig, profile_name: str | None) -> str | None:
    name = profile_name or os.environ.get(PROFILE_ENV_VAR) or config.default_profile
    if name and name not in config.profiles:
        available = ", ".join(sorted(config.profiles)) if config.profiles else "none"
        msg = f"Unknown profile: '{name}'. Available profiles: {available}"
        raise ConfigError(msg)
    return name


def resolve_config(
    config: AppConfig,
    profile_name: str | None = None,
    dsn: str | None = None,
    **cli_overrides: Any,
) -> ResolvedConfig:
    """Resolve configuration using the precedence chain.

    CLI > DSN > env > profile > config defaults > built-in defaults.
    """
    defaults = ResolvedConfig()
    resolved: dict[str, Any] = defaults.model_dump(exclude={"active_profile", "sources"})
    sources: dict[str, str] = dict.fromkeys(resolved, "default")

    def apply(values: dict[str, Any], source: str) -> None:
        for key, value in values.items():
            if key in resolved:
                resolved[key] = value
                sources[key] = source

    # Config file global defaults
    file_defaults = {
        key: getattr(config, key)
        for key in ("default_timeout", "default_format")
        if getattr(config, key) != getattr(defaults, key)
    }
    apply(file_defaults, "config")

    # Named profile: only fields set explicitly in the file
    effective_profile = _select_profile(config, profile_name)
    if effective_profile:
        profile = config.profiles[effective_profile]
        apply(
            {k: getattr(profile, k) for k in profile.model_fields_set if k != "dsn"},
            f"profile: {effective_profile}",
        )

    # Environment variables
    for env_var, field_name in _PG_ENV_VARS.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        if field_name == "port":
            try:
                value = int(value)
            except ValueError:
                msg = f"Invalid {env_var} value: '{value}'. Must be an integer"
                raise ConfigError(msg) from None
        apply({field_name: value}, f"env: {env_var}")

    if dsn:
        apply(parse_dsn(dsn), "dsn")

    for cli_name, field_name in _CLI_FIELDS.items():
        value = cli_overrides.get(cli_name)
        if value is not None:
            apply({field_name: value}, f"cli: --{cli_name.replace('_', '-')}")

    return ResolvedConfig(**resolved, active_profile=effective_profile, sources=sources)
