from __future__ import annotations

import json
import os
from dataclasses import dataclass, asdict, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import streamlit as st

CONFIG_FILE_NAME = "settings.json"
ENV_DATA_DIR = "JEWEL_DATA_DIR"

# env var -> (Settings field, parser)
ENV_FIELDS = {
    "JEWEL_API_BASE_URL": ("api_base_url", str),
    "JEWEL_API_TOKEN": ("api_token", str),
    "JEWEL_PAGE_SIZE": ("page_size", int),
    "JEWEL_REQUEST_TIMEOUT": ("request_timeout", float),
    "JEWEL_BULK_WORKERS": ("bulk_workers", int),
    "JEWEL_TAX_PERCENT": ("tax_percent", float),
}

# Never written to settings.json.
SECRET_FIELDS = {"api_token"}


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    api_base_url: str = "http://localhost:1337"
    api_token: Optional[str] = None
    page_size: int = 100
    page_param: str = "page[number]"
    size_param: str = "page[size]"
    request_timeout: float = 10.0
    bulk_workers: int = 4
    tax_percent: float = 3.0
    invoice_prefix: str = "PJ-"
    currency: str = "INR"


def _default_data_dir() -> Path:
    return Path.home() / ".jewel_stock"


def _load_persisted_settings(data_dir: Path) -> dict:
    cfg = data_dir / CONFIG_FILE_NAME
    if cfg.exists():
        try:
            return json.loads(cfg.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
    return {}


def _env_overrides(environ: Mapping[str, str]) -> dict:
    out: dict[str, Any] = {}
    for var, (field, parse) in ENV_FIELDS.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        try:
            out[field] = parse(raw)
        except ValueError:
            raise ValueError(f"{var} must be a {parse.__name__}, got {raw!r}.")
    return out


def _validate(settings: Settings) -> Settings:
    if settings.page_size <= 0:
        raise ValueError("Page size must be > 0.")
    if settings.bulk_workers <= 0:
        raise ValueError("Bulk workers must be > 0.")
    if settings.request_timeout <= 0:
        raise ValueError("Request timeout must be > 0.")
    return settings


def load_settings(
    data_dir: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> Settings:
    # Priority order:
    # 1) Explicit arguments
    # 2) Environment variables
    # 3) Persisted settings.json in the data folder
    # 4) Defaults
    env = os.environ if environ is None else environ

    if data_dir is not None:
        base = Path(data_dir).expanduser().resolve()
    elif env.get(ENV_DATA_DIR):
        base = Path(env[ENV_DATA_DIR]).expanduser().resolve()
    else:
        default_dir = _default_data_dir()
        persisted = _load_persisted_settings(default_dir)
        base = Path(persisted.get("data_dir", default_dir)).expanduser().resolve()

    values: dict[str, Any] = {}
    known = set(Settings.__dataclass_fields__) - {"data_dir"}
    for k, v in _load_persisted_settings(base).items():
        if k in known and k not in SECRET_FIELDS:
            values[k] = v
    values.update(_env_overrides(env))
    values.update({k: v for k, v in overrides.items() if v is not None})

    return _validate(Settings(data_dir=base, **values))


def persist_settings(settings: Settings) -> Path:
    settings.data_dir.mkdir(parents=True, exist_ok=True)

    payload = {k: v for k, v in asdict(settings).items() if k not in SECRET_FIELDS}
    payload["data_dir"] = str(settings.data_dir)

    cfg = settings.data_dir / CONFIG_FILE_NAME
    cfg.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return cfg


def persist_data_dir(data_dir_str: str, **changes: Any) -> Settings:
    settings = replace(load_settings(data_dir_str), **changes)
    persist_settings(settings)

    # Remember the pointer in the default folder so the next start finds it
    default_dir = _default_data_dir()
    if default_dir != settings.data_dir:
        default_dir.mkdir(parents=True, exist_ok=True)
        (default_dir / CONFIG_FILE_NAME).write_text(
            json.dumps({"data_dir": str(settings.data_dir)}, indent=2), encoding="utf-8"
        )

    # Update session for immediate effect
    st.session_state["jewel_data_dir"] = str(settings.data_dir)
    return settings


@st.cache_resource
def get_settings() -> Settings:
    if "jewel_data_dir" in st.session_state:
        return load_settings(st.session_state["jewel_data_dir"])
    return load_settings()
