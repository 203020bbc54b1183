"""Configuration — TOML file plus environment overrides, validated by pydantic."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_CONFIG_PATH = Path("~/.config/greport/config.toml")
DEFAULT_DATABASE_URL = "postgresql+asyncpg://localhost/greport"


class ConfigError(Exception):
    """Local misconfiguration (unreadable file, invalid values, missing org)."""


class GitHubSettings(BaseModel):
    token: str | None = None
    base_url: str | None = None


class DefaultsSettings(BaseModel):
    stale_days: int = Field(30, ge=0)
    velocity_period: str = "week"
    velocity_periods: int = Field(12, ge=1)


class SlaSettings(BaseModel):
    response_time_hours: int = 24
    resolution_time_hours: int = 168
    priority_labels: dict[str, tuple[int, int]] = Field(
        default_factory=lambda: {"critical": (4, 24), "high": (8, 72)}
    )

    @field_validator("priority_labels")
    @classmethod
    def _lowercase_keys(cls, value: dict[str, tuple[int, int]]) -> dict[str, tuple[int, int]]:
        return {k.lower(): v for k, v in value.items()}


class DatabaseSettings(BaseModel):
    url: str = DEFAULT_DATABASE_URL


class ServerSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 9423
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "console"


class SyncSettings(BaseModel):
    # 0 disables the periodic batch sync.
    interval_seconds: float = Field(0, ge=0)


class OrganizationSettings(BaseModel):
    name: str
    token: str | None = None
    base_url: str | None = None
    repos: list[str] = Field(default_factory=list)


class Config(BaseModel):
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    defaults: DefaultsSettings = Field(default_factory=DefaultsSettings)
    sla: SlaSettings = Field(default_factory=SlaSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    organizations: list[OrganizationSettings] = Field(default_factory=list)

    def organization(self, name: str) -> OrganizationSettings | None:
        lowered = name.lower()
        for org in self.organizations:
            if org.name.lower() == lowered:
                return org
        return None


def org_token_env_var(org_name: str) -> str:
    """Environment variable holding an organization's token, e.g. GITHUB_TOKEN_MY_ORG."""
    return "GITHUB_TOKEN_" + org_name.upper().replace("-", "_")


def load_config(path: str | Path | None = None, env: dict[str, str] | None = None) -> Config:
    """Load configuration from TOML, then apply environment overrides.

    Resolution order for the file: *path*, ``GREPORT_CONFIG``, then
    ``~/.config/greport/config.toml``. A missing file yields defaults.

    Raises ConfigError for unparseable or invalid files.
    """
    env = os.environ if env is None else env
    raw_path = path or env.get("GREPORT_CONFIG")
    config_path = Path(raw_path or DEFAULT_CONFIG_PATH).expanduser()

    data: dict = {}
    if config_path.is_file():
        try:
            with config_path.open("rb") as fh:
                data = tomllib.load(fh)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"cannot read config {config_path}: {exc}") from exc
    elif raw_path:
        raise ConfigError(f"config file not found: {config_path}")

    try:
        config = Config.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid config {config_path}: {exc}") from exc

    _apply_env(config, env)
    return config


def _apply_env(config: Config, env) -> None:
    if env.get("GITHUB_TOKEN"):
        config.github.token = env["GITHUB_TOKEN"]
    if env.get("GITHUB_BASE_URL"):
        config.github.base_url = env["GITHUB_BASE_URL"]

    db_url = env.get("GREPORT_DATABASE_URL") or env.get("DATABASE_URL")
    if db_url:
        config.database.url = db_url

    if env.get("API_HOST"):
        config.server.host = env["API_HOST"]
    if env.get("API_PORT"):
        try:
            config.server.port = int(env["API_PORT"])
        except ValueError as exc:
            raise ConfigError(f"API_PORT must be an integer: {env['API_PORT']!r}") from exc

    if env.get("GREPORT_LOG_LEVEL"):
        config.logging.level = env["GREPORT_LOG_LEVEL"]
    if env.get("GREPORT_LOG_FORMAT"):
        config.logging.format = env["GREPORT_LOG_FORMAT"]

    if env.get("GREPORT_SYNC_INTERVAL"):
        try:
            config.sync.interval_seconds = float(env["GREPORT_SYNC_INTERVAL"])
        except ValueError as exc:
            raise ConfigError(
                f"GREPORT_SYNC_INTERVAL must be a number: {env['GREPORT_SYNC_INTERVAL']!r}"
            ) from exc

    for org in config.organizations:
        token = env.get(org_token_env_var(org.name))
        if token:
            org.token = token
