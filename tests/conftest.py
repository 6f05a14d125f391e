import os
import sys
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from core.config import ENV_PREFIX, AppSettings  # noqa: E402


class RecordingNotifier:
    def __init__(self) -> None:
        self.infos: list[str] = []
        self.errors: list[str] = []

    def info(self, message: str) -> None:
        self.infos.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)

    @property
    def total(self) -> int:
        return len(self.infos) + len(self.errors)


class CountingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], Any]) -> None:
        self.requests: list[httpx.Request] = []

        def recording(request: httpx.Request) -> Any:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording)

    @property
    def calls(self) -> int:
        return len(self.requests)


def make_settings(**overrides: Any) -> AppSettings:
    return AppSettings(_env_file=None, **overrides)


def echo_minifier(request: httpx.Request) -> httpx.Response:
    """Pretend service: strips whitespace from the decoded input."""

    from urllib.parse import unquote

    body = request.content.decode("ascii")
    assert body.startswith("input=")
    text = unquote(body[len("input="):])
    minified = "".join(text.split())
    return httpx.Response(200, text=minified, headers={"content-type": "text/plain; charset=utf-8"})


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "appdata"))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
