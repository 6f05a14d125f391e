"""Core configuration.

Why here:
- Centralises user preferences (pydantic-settings) without leaking into the CLI.
- Lets adapters (HTTP client, filesystem host) read configuration consistently.
- One frozen snapshot per invocation replaces ad hoc key lookups.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Literal, Protocol

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.errors import ConfigurationError
from core.domain.source_kind import SourceKind

ENV_PREFIX = "CSS_JS_MINIFIER_"

DEFAULT_CSS_ENDPOINT = "https://www.toptal.com/developers/cssminifier/api/raw"
DEFAULT_JAVASCRIPT_ENDPOINT = "https://www.toptal.com/developers/javascript-minifier/api/raw"

MAX_CONTENT_BYTES = 5 * 1024 * 1024

NewFilePrefix = Literal[".min", "-min", ".compressed", "-compressed", ".minified", "-minified"]

NEW_FILE_PREFIXES: tuple[str, ...] = (
    ".min",
    "-min",
    ".compressed",
    "-compressed",
    ".minified",
    "-minified",
)


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "css-js-minifier"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "css-js-minifier"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "css-js-minifier"
    return Path.home() / ".config" / "css-js-minifier"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], env_path: Path | None = None) -> Path:
    """Write or update variables in the user's global .env file."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# css-js-minifier user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Central application settings.

    Why pydantic-settings:
    - Typed and validated at the edge (env vars, .env files).
    - A single configuration contract for the CLI, the orchestrator and adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
        case_sensitive=False,
        frozen=True,
        # Order: project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    minify_on_save: bool = Field(
        default=False,
        description="Minify CSS/JavaScript documents automatically when they are saved.",
    )
    minify_in_new_file: bool = Field(
        default=False,
        description="Write the minified output to a sibling file instead of overwriting.",
    )
    new_file_prefix: NewFilePrefix = Field(
        default=".min",
        description="Suffix inserted before the extension of the new file (style.min.css).",
    )
    auto_open_new_file: bool = Field(
        default=False,
        description="Open the new minified file after writing it.",
    )
    show_size_reduction: bool = Field(
        default=True,
        description="Include size-reduction statistics in success messages.",
    )

    request_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Time allowed for the minification API to answer (seconds).",
    )
    max_content_bytes: int = Field(
        default=MAX_CONTENT_BYTES,
        gt=0,
        description="Largest UTF-8 payload accepted before any network call.",
    )
    css_endpoint: str = Field(
        default=DEFAULT_CSS_ENDPOINT,
        min_length=8,
        description="Endpoint used for CSS sources.",
    )
    javascript_endpoint: str = Field(
        default=DEFAULT_JAVASCRIPT_ENDPOINT,
        min_length=8,
        description="Endpoint used for JavaScript sources.",
    )
    user_agent: str = Field(
        default="css-js-minifier/0.1",
        min_length=1,
        description="User-Agent sent to the minification API.",
    )

    def endpoint_for(self, kind: SourceKind) -> str:
        if kind is SourceKind.CSS:
            return self.css_endpoint
        return self.javascript_endpoint


def describe_settings_error(exc: ValidationError) -> str:
    """One line per invalid field, named the way it is set in the environment."""

    parts = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"])
        parts.append(f"{ENV_PREFIX}{field.upper()}: {error['msg']}")
    return "; ".join(parts)


class SettingsProvider(Protocol):
    """Source of one immutable settings snapshot per invocation."""

    def load(self) -> AppSettings:
        """Return a snapshot or raise `ConfigurationError`."""
        ...


class EnvironmentSettingsProvider:
    """Reads settings from the environment and .env files on every `load`.

    Explicit overrides (typically CLI flags) win over every other source.
    """

    def __init__(self, **overrides: Any) -> None:
        self._overrides = {k: v for k, v in overrides.items() if v is not None}

    def load(self) -> AppSettings:
        try:
            return AppSettings(**self._overrides)
        except ValidationError as exc:
            raise ConfigurationError(describe_settings_error(exc)) from exc


class StaticSettingsProvider:
    """Always returns the same snapshot (embedding, tests)."""

    def __init__(self, settings: AppSettings) -> None:
        self._settings = settings

    def load(self) -> AppSettings:
        return self._settings
