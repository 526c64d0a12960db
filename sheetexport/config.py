# -*- coding: utf-8 -*-
"""
Service configuration (read once at boot, then injected).

Environment variables:
- SHEETEXPORT_HOST                    (default: localhost)
- SHEETEXPORT_PORT                    (default: 3000)
- SHEETEXPORT_MAX_BODY_BYTES          (default: 10 MiB)
- SHEETEXPORT_RENDER_TIMEOUT_S        (default: 60)
- SHEETEXPORT_MAX_CONCURRENT_RENDERS  (default: CPU count)
- SHEETEXPORT_START_METHOD            (default: spawn)
- SHEETEXPORT_SHEET_TITLE             (default: Data)
- SHEETEXPORT_DOWNLOAD_FILENAME       (default: data.xlsx)
- SHEETEXPORT_CORS_ORIGIN             (default: *)
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 3000
DEFAULT_MAX_BODY_BYTES = 10 * 1024 * 1024
DEFAULT_RENDER_TIMEOUT_S = 60.0
DEFAULT_START_METHOD = "spawn"
DEFAULT_SHEET_TITLE = "Data"
DEFAULT_DOWNLOAD_FILENAME = "data.xlsx"
DEFAULT_CORS_ORIGIN = "*"

_START_METHODS = ("spawn", "fork", "forkserver")


def _default_max_concurrent() -> int:
    return max(1, os.cpu_count() or 1)


@dataclass(frozen=True)
class ServiceConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    render_timeout_s: float = DEFAULT_RENDER_TIMEOUT_S
    max_concurrent_renders: int = 1
    start_method: str = DEFAULT_START_METHOD
    sheet_title: str = DEFAULT_SHEET_TITLE
    download_filename: str = DEFAULT_DOWNLOAD_FILENAME
    cors_origin: str = DEFAULT_CORS_ORIGIN


def _env_str(env: Mapping[str, str], name: str, default: str) -> str:
    return (env.get(name) or default).strip() or default


def _env_int(env: Mapping[str, str], name: str, default: int, *, minimum: int = 1) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        print(f"[BOOT] {name}={raw!r} is not an integer; using {default}", flush=True)
        return default
    if value < minimum:
        print(f"[BOOT] {name}={value} is below {minimum}; using {default}", flush=True)
        return default
    return value


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        print(f"[BOOT] {name}={raw!r} is not a number; using {default}", flush=True)
        return default
    if value <= 0:
        print(f"[BOOT] {name}={value} must be positive; using {default}", flush=True)
        return default
    return value


def _sheet_title(env: Mapping[str, str]) -> str:
    # Excel rejects these characters in sheet titles and caps them at 31 chars.
    title = re.sub(r"[\\/?*\[\]:]", "", _env_str(env, "SHEETEXPORT_SHEET_TITLE", DEFAULT_SHEET_TITLE))
    return title.strip()[:31] or DEFAULT_SHEET_TITLE


def load_config(environ: Optional[Mapping[str, str]] = None) -> ServiceConfig:
    env = os.environ if environ is None else environ

    start_method = _env_str(env, "SHEETEXPORT_START_METHOD", DEFAULT_START_METHOD).lower()
    if start_method not in _START_METHODS:
        print(f"[BOOT] unknown start method {start_method!r}; using {DEFAULT_START_METHOD}", flush=True)
        start_method = DEFAULT_START_METHOD

    return ServiceConfig(
        host=_env_str(env, "SHEETEXPORT_HOST", DEFAULT_HOST),
        port=_env_int(env, "SHEETEXPORT_PORT", DEFAULT_PORT),
        max_body_bytes=_env_int(env, "SHEETEXPORT_MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES),
        render_timeout_s=_env_float(env, "SHEETEXPORT_RENDER_TIMEOUT_S", DEFAULT_RENDER_TIMEOUT_S),
        max_concurrent_renders=_env_int(env, "SHEETEXPORT_MAX_CONCURRENT_RENDERS", _default_max_concurrent()),
        start_method=start_method,
        sheet_title=_sheet_title(env),
        download_filename=_env_str(env, "SHEETEXPORT_DOWNLOAD_FILENAME", DEFAULT_DOWNLOAD_FILENAME),
        cors_origin=_env_str(env, "SHEETEXPORT_CORS_ORIGIN", DEFAULT_CORS_ORIGIN),
    )
