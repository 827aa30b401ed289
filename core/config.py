"""Configuration management for the page math engine."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv


def _get_base_dir() -> Path:
    """Get the project root directory."""
    return Path(__file__).resolve().parents[1]


# Load .env file from project root if present
_env_path = _get_base_dir() / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


# Marker names written onto produced containers
PROCESSED_CLASS = "pagemath-processed"
IGNORE_CLASS = "pagemath-ignore"
FALLBACK_CLASS = "pagemath-fallback"
INLINE_CLASS = "pagemath-inline"
DISPLAY_CLASS = "pagemath-display"
ORIGINAL_ATTR = "data-pagemath-original"
ERROR_ATTR = "data-pagemath-error"
METHOD_ATTR = "data-pagemath-method"

DEFAULT_IGNORED_TAGS = (
    "script",
    "style",
    "textarea",
    "pre",
    "code",
    "noscript",
    "input",
    "select",
    "button",
    "option",
    "kbd",
    "samp",
    "math",
    "svg",
)


def _split_env_list(name: str, default: tuple[str, ...] = ()) -> frozenset[str]:
    """Read a comma separated environment variable as a lower-cased set."""
    raw = os.getenv(name)
    if raw is None:
        return frozenset(default)
    return frozenset(item.strip().lower() for item in raw.split(",") if item.strip())


@dataclass
class Settings:
    """Application settings."""

    base_dir: Path = _get_base_dir()
    log_level: str = os.getenv("PAGEMATH_LOG_LEVEL", "INFO")
    log_file: Path = Path(os.getenv("PAGEMATH_LOG_FILE", str(base_dir / "pagemath.log")))
    host: str = os.getenv("PAGEMATH_HOST", "127.0.0.1")
    port: int = int(os.getenv("PAGEMATH_PORT", "8000"))
    ignored_tags: frozenset[str] = field(
        default_factory=lambda: _split_env_list("PAGEMATH_IGNORED_TAGS", DEFAULT_IGNORED_TAGS)
    )
    allowed_domains: frozenset[str] = field(
        default_factory=lambda: _split_env_list("PAGEMATH_ALLOWED_DOMAINS")
    )
    max_simplify_rounds: int = int(os.getenv("PAGEMATH_MAX_SIMPLIFY_ROUNDS", "4"))
    diagnostics_limit: int = int(os.getenv("PAGEMATH_DIAGNOSTICS_LIMIT", "200"))


settings = Settings()
