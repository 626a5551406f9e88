from __future__ import annotations

import os
import pathlib
import tomllib
from dataclasses import dataclass, field
from typing import Any

from platformdirs import user_config_dir

DEFAULT_BASE_URL = "https://services.leadconnectorhq.com"
DEFAULT_BACKEND_BASE_URL = "https://backend.leadconnectorhq.com"
DEFAULT_API_VERSION = "2021-07-28"


@dataclass(frozen=True)
class AccountConfig:
    token: str
    location_id: str
    dealer: str | None = None


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    backend_base_url: str = DEFAULT_BACKEND_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    api_token: str = ""
    location_id: str = ""
    # Retried when a location token cannot read analytics.
    agency_token: str | None = None
    timeout_seconds: float = 20.0

    cache_ttl_seconds: float = 300.0
    page_size: int = 100
    max_pages: int = 30
    max_scan_depth: int = 6
    concurrency_limit: int = 5
    page_token_param: str = "startAfterId"

    accounts: dict[str, AccountConfig] = field(default_factory=dict)


class ConfigError(RuntimeError):
    pass


def _load_toml(path: pathlib.Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as e:  # pragma: no cover
        raise ConfigError(f"Failed to parse config TOML: {path}: {e}") from e
    if not isinstance(data, dict):
        return {}
    return data


def default_config_paths() -> list[pathlib.Path]:
    # Precedence (lower → higher): XDG config then legacy homefile
    xdg = pathlib.Path(user_config_dir("campaignpulse")) / "config.toml"
    legacy = pathlib.Path.home() / ".campaignpulse.toml"
    return [xdg, legacy]


def _parse_accounts(raw: Any) -> dict[str, AccountConfig]:
    if not isinstance(raw, dict):
        return {}
    accounts: dict[str, AccountConfig] = {}
    for key, entry in raw.items():
        if not isinstance(entry, dict):
            raise ConfigError(f"accounts.{key} must be a table")
        token = str(entry.get("token") or "").strip()
        location_id = str(entry.get("location_id") or "").strip()
        if not token or not location_id:
            raise ConfigError(f"accounts.{key} needs both token and location_id")
        dealer = entry.get("dealer")
        accounts[str(key)] = AccountConfig(
            token=token,
            location_id=location_id,
            dealer=str(dealer) if dealer else None,
        )
    return accounts


def load_settings(
    *,
    base_url: str | None = None,
    api_token: str | None = None,
    location_id: str | None = None,
    timeout_seconds: float | None = None,
    cache_ttl_seconds: float | None = None,
    config_paths: list[pathlib.Path] | None = None,
) -> Settings:
    """Load settings using precedence:

    1) explicit function args (CLI flags)
    2) env vars
    3) config file(s)
    4) defaults

    Env vars:
    - CAMPAIGNPULSE_BASE_URL
    - CAMPAIGNPULSE_API_TOKEN
    - CAMPAIGNPULSE_LOCATION_ID
    - CAMPAIGNPULSE_AGENCY_TOKEN
    - CAMPAIGNPULSE_API_VERSION
    - CAMPAIGNPULSE_TIMEOUT_SECONDS
    - CAMPAIGNPULSE_CACHE_TTL_SECONDS
    - CAMPAIGNPULSE_CONCURRENCY_LIMIT

    Per-account credentials live only in the config file, under ``[accounts.<key>]``
    with ``token``, ``location_id`` and an optional ``dealer``.
    """

    file_cfg: dict[str, Any] = {}
    for p in config_paths if config_paths is not None else default_config_paths():
        file_cfg.update(_load_toml(p))

    env_cfg: dict[str, Any] = {
        "base_url": os.getenv("CAMPAIGNPULSE_BASE_URL"),
        "api_token": os.getenv("CAMPAIGNPULSE_API_TOKEN"),
        "location_id": os.getenv("CAMPAIGNPULSE_LOCATION_ID"),
        "agency_token": os.getenv("CAMPAIGNPULSE_AGENCY_TOKEN"),
        "api_version": os.getenv("CAMPAIGNPULSE_API_VERSION"),
        "timeout_seconds": os.getenv("CAMPAIGNPULSE_TIMEOUT_SECONDS"),
        "cache_ttl_seconds": os.getenv("CAMPAIGNPULSE_CACHE_TTL_SECONDS"),
        "concurrency_limit": os.getenv("CAMPAIGNPULSE_CONCURRENCY_LIMIT"),
    }

    def pick(key: str, explicit: Any = None) -> Any:
        if explicit is not None:
            return explicit
        if env_cfg.get(key) not in (None, ""):
            return env_cfg[key]
        if key in file_cfg and file_cfg[key] not in (None, ""):
            return file_cfg[key]
        return None

    def as_float(key: str, explicit: Any, default: float) -> float:
        value = pick(key, explicit)
        try:
            return float(value) if value is not None else default
        except ValueError as e:
            raise ConfigError(f"{key} must be a number") from e

    def as_int(key: str, default: int) -> int:
        value = pick(key)
        try:
            parsed = int(value) if value is not None else default
        except ValueError as e:
            raise ConfigError(f"{key} must be an integer") from e
        if parsed < 1:
            raise ConfigError(f"{key} must be at least 1")
        return parsed

    final_base_url = pick("base_url", base_url) or DEFAULT_BASE_URL
    backend = pick("backend_base_url") or DEFAULT_BACKEND_BASE_URL
    agency = pick("agency_token")

    return Settings(
        base_url=str(final_base_url).rstrip("/"),
        backend_base_url=str(backend).rstrip("/"),
        api_version=str(pick("api_version") or DEFAULT_API_VERSION),
        api_token=str(pick("api_token", api_token) or ""),
        location_id=str(pick("location_id", location_id) or ""),
        agency_token=str(agency) if agency else None,
        timeout_seconds=as_float("timeout_seconds", timeout_seconds, 20.0),
        cache_ttl_seconds=as_float("cache_ttl_seconds", cache_ttl_seconds, 300.0),
        page_size=as_int("page_size", 100),
        max_pages=as_int("max_pages", 30),
        max_scan_depth=as_int("max_scan_depth", 6),
        concurrency_limit=as_int("concurrency_limit", 5),
        page_token_param=str(pick("page_token_param") or "startAfterId"),
        accounts=_parse_accounts(file_cfg.get("accounts")),
    )
