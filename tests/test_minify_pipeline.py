import asyncio
from pathlib import Path
from typing import Any

import httpx
import pytest

from adapters.filesystem_host import FileSystemHost
from adapters.minification_client import MinificationClient
from conftest import CountingTransport, RecordingNotifier, echo_minifier, make_settings
from core.config import AppSettings, EnvironmentSettingsProvider, StaticSettingsProvider
from core.domain.models import NewSiblingFile, ReplaceDocument, SourceDocument
from core.services.minify_pipeline import (
    InvocationState,
    MinificationOrchestrator,
    PipelineHooks,
    build_write_target,
)

CSS = "body { color: red; margin: 0; }"
MINIFIED = "body{color:red;margin:0}"


def _fixed(text: str):
    return lambda request: httpx.Response(200, text=text)


def _orchestrator(
    handler: Any,
    notifier: RecordingNotifier,
    host: FileSystemHost | None = None,
    hooks: PipelineHooks | None = None,
    **settings: Any,
) -> tuple[MinificationOrchestrator, CountingTransport, FileSystemHost]:
    transport = CountingTransport(handler)
    host = host or FileSystemHost()

    def factory(snapshot: AppSettings) -> MinificationClient:
        return MinificationClient(snapshot, transport=transport)

    orchestrator = MinificationOrchestrator(
        host=host,
        notifier=notifier,
        settings_provider=StaticSettingsProvider(make_settings(**settings)),
        minifier_factory=factory,
        hooks=hooks,
    )
    return orchestrator, transport, host


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path.resolve() / name
    path.write_text(text, encoding="utf-8")
    return path


def test_build_write_target_follows_settings() -> None:
    assert build_write_target(make_settings()) == ReplaceDocument()
    target = build_write_target(
        make_settings(minify_in_new_file=True, new_file_prefix="-compressed", auto_open_new_file=True)
    )
    assert target == NewSiblingFile(prefix="-compressed", auto_open=True)
    assert build_write_target(make_settings(minify_in_new_file=True), new_file=False) == ReplaceDocument()


def test_manual_in_place_css_scenario(tmp_path: Path, notifier: RecordingNotifier) -> None:
    source = _write(tmp_path, "style.css", CSS)
    orchestrator, transport, host = _orchestrator(_fixed(MINIFIED), notifier)

    async def scenario():
        document = await host.open_document(source)
        return await orchestrator.minify_document(document)

    outcome = asyncio.run(scenario())

    assert outcome.ok
    assert outcome.stats is not None
    assert outcome.stats.reduction_percent == 22
    assert (outcome.stats.original_size_display, outcome.stats.minified_size_display) == ("32 B", "25 B")
    assert source.read_text(encoding="utf-8") == MINIFIED
    assert transport.calls == 1
    assert notifier.infos == ["style.css successfully minified! Size reduced by 22% (32 B → 25 B)"]
    assert notifier.errors == []


def test_manual_new_file_scenario(tmp_path: Path, notifier: RecordingNotifier) -> None:
    source = _write(tmp_path, "style.css", CSS)
    original_bytes = source.read_bytes()
    orchestrator, _, host = _orchestrator(_fixed(MINIFIED), notifier, new_file_prefix=".min")

    async def scenario():
        return await orchestrator.minify_document(await host.open_document(source), new_file=True)

    outcome = asyncio.run(scenario())

    assert outcome.ok
    assert outcome.output_path == source.parent / "style.min.css"
    assert (source.parent / "style.min.css").read_text(encoding="utf-8") == MINIFIED
    assert source.read_bytes() == original_bytes


def test_too_large_file_never_reaches_the_network(tmp_path: Path, notifier: RecordingNotifier) -> None:
    source = _write(tmp_path, "big.js", "a" * (6 * 1024 * 1024))
    orchestrator, transport, host = _orchestrator(echo_minifier, notifier)

    async def scenario():
        return await orchestrator.minify_document(await host.open_document(source))

    outcome = asyncio.run(scenario())

    assert not outcome.ok
    assert outcome.error_kind == "content_too_large"
    assert transport.calls == 0
    assert len(notifier.errors) == 1
    assert notifier.infos == []


def test_unsupported_kind_is_rejected_once(tmp_path: Path, notifier: RecordingNotifier) -> None:
    source = _write(tmp_path, "page.html", "<p>hi</p>")
    orchestrator, transport, host = _orchestrator(echo_minifier, notifier)

    async def scenario():
        return await orchestrator.minify_document(await host.open_document(source))

    outcome = asyncio.run(scenario())

    assert outcome.error_kind == "unsupported_kind"
    assert notifier.errors == ["File type 'html' is not supported. Only CSS and JavaScript files can be minified."]
    assert transport.calls == 0


def test_rate_limit_is_reported_and_file_untouched(tmp_path: Path, notifier: RecordingNotifier) -> None:
    source = _write(tmp_path, "app.js", "var a = 1;")
    orchestrator, transport, host = _orchestrator(lambda r: httpx.Response(429), notifier)

    async def scenario():
        return await orchestrator.minify_document(await host.open_document(source))

    outcome = asyncio.run(scenario())

    assert outcome.error_kind == "rate_limited"
    assert len(notifier.errors) == 1
    assert "30 requests per minute" in notifier.errors[0]
    assert source.read_text(encoding="utf-8") == "var a = 1;"
    assert transport.calls == 1


def test_write_failure_becomes_one_notification(tmp_path: Path, notifier: RecordingNotifier) -> None:
    source = _write(tmp_path, "style.css", CSS)
    orchestrator, _, host = _orchestrator(_fixed(MINIFIED), notifier)

    async def denied(path: Path, data: bytes) -> None:
        raise PermissionError(13, "Permission denied", str(path))

    host.write_file = denied  # type: ignore[method-assign]

    async def scenario():
        return await orchestrator.minify_document(await host.open_document(source), new_file=True)

    outcome = asyncio.run(scenario())

    assert outcome.error_kind == "write"
    sibling = source.parent / "style.min.css"
    assert notifier.errors == [f"Could not write minified output to {sibling}: Permission denied"]
    assert notifier.infos == []


def test_state_hooks_follow_the_pipeline(tmp_path: Path, notifier: RecordingNotifier) -> None:
    source = _write(tmp_path, "style.css", CSS)
    seen: list[InvocationState] = []
    hooks = PipelineHooks(state_changed=lambda document, state: seen.append(state))
    orchestrator, _, host = _orchestrator(_fixed(MINIFIED), notifier, hooks=hooks)

    async def scenario():
        await orchestrator.minify_document(await host.open_document(source))
        empty = _write(tmp_path, "empty.css", "")
        await orchestrator.minify_document(await host.open_document(empty))

    asyncio.run(scenario())

    assert seen == [
        InvocationState.VALIDATING,
        InvocationState.MINIFYING,
        InvocationState.WRITING_BACK,
        InvocationState.IDLE,
        InvocationState.VALIDATING,
        InvocationState.FAILED,
        InvocationState.IDLE,
    ]


def test_save_event_ignored_when_minify_on_save_disabled(tmp_path: Path, notifier: RecordingNotifier) -> None:
    source = _write(tmp_path, "style.css", CSS)
    orchestrator, transport, host = _orchestrator(_fixed(MINIFIED), notifier)
    orchestrator.subscribe(host)

    async def scenario():
        await host.emit_saved(await host.open_document(source))

    asyncio.run(scenario())

    assert transport.calls == 0
    assert source.read_text(encoding="utf-8") == CSS


def test_in_place_save_does_not_retrigger_itself(tmp_path: Path, notifier: RecordingNotifier) -> None:
    source = _write(tmp_path, "style.css", CSS)
    orchestrator, transport, host = _orchestrator(_fixed(MINIFIED), notifier, minify_on_save=True)
    orchestrator.subscribe(host)
    results: list[Any] = []

    async def listener(document):
        results.append(orchestrator.guard.is_processing(document.uri))

    host.on_did_save(listener)

    async def scenario():
        await host.emit_saved(await host.open_document(source))

    asyncio.run(scenario())

    # The in-place write raised a second save event; the guard swallowed it.
    assert transport.calls == 1
    assert results == [True, False]
    assert source.read_text(encoding="utf-8") == MINIFIED
    assert len(notifier.infos) == 1
    assert orchestrator.guard.active == frozenset()


def test_concurrent_save_while_processing_makes_no_request(tmp_path: Path, notifier: RecordingNotifier) -> None:
    source = _write(tmp_path, "style.css", CSS)

    async def scenario():
        release = asyncio.Event()

        async def slow(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return httpx.Response(200, text=MINIFIED)

        orchestrator, transport, host = _orchestrator(slow, notifier, minify_on_save=True)
        document = await host.open_document(source)

        first = asyncio.create_task(orchestrator.handle_save(document))
        while transport.calls == 0:
            await asyncio.sleep(0)
        assert orchestrator.guard.is_processing(document.uri)

        second = await orchestrator.handle_save(document)
        calls_during = transport.calls
        release.set()
        outcome = await first
        return second, calls_during, outcome, transport.calls

    second, calls_during, outcome, total_calls = asyncio.run(scenario())

    assert second is None
    assert calls_during == 1
    assert total_calls == 1
    assert outcome is not None and outcome.ok


def test_save_to_new_file_does_not_hold_the_guard(tmp_path: Path, notifier: RecordingNotifier) -> None:
    source = _write(tmp_path, "app.js", "var  a = 1;")
    observed: list[bool] = []

    class ObservingHost(FileSystemHost):
        async def write_file(self, path: Path, data: bytes) -> None:
            observed.append(orchestrator.guard.is_processing(source.as_uri()))
            await super().write_file(path, data)

    orchestrator, transport, host = _orchestrator(
        echo_minifier,
        notifier,
        host=ObservingHost(),
        minify_on_save=True,
        minify_in_new_file=True,
        new_file_prefix="-min",
    )

    async def scenario():
        return await orchestrator.handle_save(await host.open_document(source))

    outcome = asyncio.run(scenario())

    assert outcome is not None and outcome.ok
    assert observed == [False]
    assert (source.parent / "app-min.js").read_text(encoding="utf-8") == "vara=1;"
    assert source.read_text(encoding="utf-8") == "var  a = 1;"


def test_guard_released_after_failed_save(tmp_path: Path, notifier: RecordingNotifier) -> None:
    source = _write(tmp_path, "style.css", CSS)
    orchestrator, _, host = _orchestrator(lambda r: httpx.Response(500), notifier, minify_on_save=True)

    async def scenario():
        document = await host.open_document(source)
        outcome = await orchestrator.handle_save(document)
        return document, outcome

    document, outcome = asyncio.run(scenario())

    assert outcome is not None and outcome.error_kind == "unexpected_status"
    assert not orchestrator.guard.is_processing(document.uri)
    assert len(notifier.errors) == 1


def test_documents_processed_concurrently(tmp_path: Path, notifier: RecordingNotifier) -> None:
    count = 3
    paths = [_write(tmp_path, f"f{i}.css", f"a{i} {{ b: c }}") for i in range(count)]
    orchestrator, transport, host = _orchestrator(echo_minifier, notifier)

    async def scenario():
        documents = [await host.open_document(p) for p in paths]
        return await asyncio.gather(*(orchestrator.minify_document(d) for d in documents))

    outcomes = asyncio.run(scenario())

    assert all(o.ok for o in outcomes)
    assert transport.calls == count
    assert [p.read_text(encoding="utf-8") for p in paths] == [f"a{i}{{b:c}}" for i in range(count)]


def test_write_failure_without_filename_names_the_document(tmp_path: Path, notifier: RecordingNotifier) -> None:
    source = _write(tmp_path, "style.css", CSS)
    orchestrator, _, host = _orchestrator(_fixed(MINIFIED), notifier)

    async def full(document: SourceDocument, text: str) -> None:
        raise OSError(28, "No space left on device")

    host.replace_content = full  # type: ignore[method-assign]

    async def scenario():
        return await orchestrator.minify_document(await host.open_document(source))

    outcome = asyncio.run(scenario())

    assert outcome.error_kind == "write"
    assert notifier.errors == [f"Could not write minified output to {source}: No space left on device"]


def test_invalid_settings_become_one_notification_per_invocation(
    tmp_path: Path, notifier: RecordingNotifier, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("CSS_JS_MINIFIER_NEW_FILE_PREFIX", ".tiny")
    source = _write(tmp_path, "style.css", CSS)
    transport = CountingTransport(_fixed(MINIFIED))
    host = FileSystemHost()
    orchestrator = MinificationOrchestrator(
        host=host,
        notifier=notifier,
        settings_provider=EnvironmentSettingsProvider(),
        minifier_factory=lambda snapshot: MinificationClient(snapshot, transport=transport),
    )

    async def scenario():
        document = await host.open_document(source)
        manual = await orchestrator.minify_document(document)
        saved = await orchestrator.handle_save(document)
        return manual, saved

    manual, saved = asyncio.run(scenario())

    assert manual.error_kind == "configuration"
    assert saved is not None and saved.error_kind == "configuration"
    assert len(notifier.errors) == 2
    assert "CSS_JS_MINIFIER_NEW_FILE_PREFIX" in notifier.errors[0]
    assert transport.calls == 0
    assert source.read_text(encoding="utf-8") == CSS


def test_watched_file_with_invalid_settings_does_not_raise(
    tmp_path: Path, notifier: RecordingNotifier, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("CSS_JS_MINIFIER_REQUEST_TIMEOUT_SECONDS", "soon")
    source = _write(tmp_path, "style.css", CSS)
    host = FileSystemHost()
    orchestrator = MinificationOrchestrator(
        host=host,
        notifier=notifier,
        settings_provider=EnvironmentSettingsProvider(),
        minifier_factory=lambda snapshot: MinificationClient(snapshot, transport=CountingTransport(echo_minifier)),
    )
    orchestrator.subscribe(host)

    async def scenario():
        await host.emit_saved(await host.open_document(source))

    asyncio.run(scenario())

    assert len(notifier.errors) == 1
    assert "CSS_JS_MINIFIER_REQUEST_TIMEOUT_SECONDS" in notifier.errors[0]


def test_unencodable_text_is_rejected_before_the_network(tmp_path: Path, notifier: RecordingNotifier) -> None:
    path = tmp_path.resolve() / "style.css"
    document = SourceDocument(uri=path.as_uri(), path=path, kind="css", text="a{content:'\ud800'}")
    orchestrator, transport, _ = _orchestrator(echo_minifier, notifier)

    outcome = asyncio.run(orchestrator.minify_document(document))

    assert outcome.error_kind == "unencodable_text"
    assert len(notifier.errors) == 1
    assert transport.calls == 0
    assert not path.exists()
