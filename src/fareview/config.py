# src/fareview/config.py

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from fareview.core.normalizer import ON_ERROR_POLICIES


def _candidate_dotenv_paths() -> list[Path]:
    """.env next to the project root first, then the current working directory."""
    root = Path(__file__).resolve().parent.parent.parent
    candidates = [root / ".env", Path.cwd() / ".env"]
    out: list[Path] = []
    for p in candidates:
        if p not in out:
            out.append(p)
    return out


def load_dotenv_once() -> Optional[Path]:
    """Load the first existing .env; real environment variables win."""
    for p in _candidate_dotenv_paths():
        if p.is_file():
            load_dotenv(dotenv_path=str(p), override=False)
            return p
    return None


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    page_size: int = 10
    max_results: int = 50
    cache_stale_seconds: int = 300
    cache_evict_seconds: int = 600
    default_currency: str = "USD"
    on_malformed: str = "drop"
    loaded_from: Optional[Path] = None


def load_settings() -> Settings:
    """
    Settings from the environment and/or .env:
      - FAREVIEW_PAGE_SIZE
      - FAREVIEW_MAX_RESULTS
      - FAREVIEW_CACHE_STALE_SECONDS
      - FAREVIEW_CACHE_EVICT_SECONDS
      - FAREVIEW_DEFAULT_CURRENCY
      - FAREVIEW_ON_MALFORMED=drop|raise
    """
    loaded_from = load_dotenv_once()

    stale = _int_env("FAREVIEW_CACHE_STALE_SECONDS", 300)
    evict = _int_env("FAREVIEW_CACHE_EVICT_SECONDS", 600)
    if evict < stale:
        raise ValueError("FAREVIEW_CACHE_EVICT_SECONDS must be >= FAREVIEW_CACHE_STALE_SECONDS")

    on_malformed = (os.getenv("FAREVIEW_ON_MALFORMED") or "drop").strip().lower()
    if on_malformed not in ON_ERROR_POLICIES:
        raise ValueError(f"FAREVIEW_ON_MALFORMED must be one of {ON_ERROR_POLICIES}, got {on_malformed!r}")

    return Settings(
        page_size=_int_env("FAREVIEW_PAGE_SIZE", 10, minimum=1),
        max_results=_int_env("FAREVIEW_MAX_RESULTS", 50, minimum=1),
        cache_stale_seconds=stale,
        cache_evict_seconds=evict,
        default_currency=(os.getenv("FAREVIEW_DEFAULT_CURRENCY") or "USD").strip().upper(),
        on_malformed=on_malformed,
        loaded_from=loaded_from,
    )
