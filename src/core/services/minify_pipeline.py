"""Minification orchestration.

This module composes the pipeline for one document:
validate -> minify remotely -> compute statistics -> write back -> notify.

Two entry points exist on purpose:
- `minify_document` for manual invocations (always proceeds);
- `handle_save` for save events (consults the recursion guard first).

Every `MinifierError` is caught here and becomes exactly one user-facing
notification; nothing escapes to the host.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from core.config import AppSettings, SettingsProvider
from core.domain.errors import MinifierError, WriteError
from core.domain.models import (
    MinificationOutcome,
    MinificationRequest,
    NewSiblingFile,
    ReplaceDocument,
    SourceDocument,
    WriteTarget,
)
from core.interfaces.host import DocumentHost, Notifier, SaveEventSource, Unsubscribe
from core.interfaces.minifier import Minifier
from core.logging_utils import get_logger
from core.services.recursion_guard import SaveRecursionGuard
from core.services.statistics import compute_stats
from core.services.validation import Validator
from core.services.write_back import WriteBackCoordinator

logger = get_logger("pipeline")

MinifierFactory = Callable[[AppSettings], Minifier]


class InvocationState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    MINIFYING = "minifying"
    WRITING_BACK = "writing_back"
    FAILED = "failed"


class Trigger(str, Enum):
    MANUAL = "manual"
    SAVE = "save"


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (progress spinners, status bars)."""

    state_changed: Callable[[SourceDocument, InvocationState], None] | None = None


def build_write_target(settings: AppSettings, *, new_file: bool | None = None) -> WriteTarget:
    """Turn the settings snapshot (plus an optional explicit choice) into a target."""

    use_new_file = settings.minify_in_new_file if new_file is None else new_file
    if use_new_file:
        return NewSiblingFile(
            prefix=settings.new_file_prefix,
            auto_open=settings.auto_open_new_file,
        )
    return ReplaceDocument()


class MinificationOrchestrator:
    def __init__(
        self,
        *,
        host: DocumentHost,
        notifier: Notifier,
        settings_provider: SettingsProvider,
        minifier_factory: MinifierFactory,
        guard: SaveRecursionGuard | None = None,
        hooks: PipelineHooks | None = None,
    ) -> None:
        self._host = host
        self._notifier = notifier
        self._settings_provider = settings_provider
        self._minifier_factory = minifier_factory
        self._guard = guard or SaveRecursionGuard()
        self._hooks = hooks or PipelineHooks()

    @property
    def guard(self) -> SaveRecursionGuard:
        return self._guard

    def subscribe(self, source: SaveEventSource) -> Unsubscribe:
        """Register `handle_save` as the save listener of ``source``."""

        return source.on_did_save(self.handle_save)

    async def minify_document(
        self,
        document: SourceDocument,
        *,
        new_file: bool | None = None,
    ) -> MinificationOutcome:
        """Manual invocation: always runs the pipeline."""

        try:
            settings = self._settings_provider.load()
        except MinifierError as exc:
            return self._fail(document, exc)
        target = build_write_target(settings, new_file=new_file)
        return await self._run(document, settings, target, Trigger.MANUAL)

    async def handle_save(self, document: SourceDocument) -> MinificationOutcome | None:
        """Save-triggered invocation.

        Returns ``None`` when the event is ignored: the document is already
        being processed, or minify-on-save is disabled.
        """

        if self._guard.is_processing(document.uri):
            logger.debug("save event for %s ignored: already processing", document.uri)
            return None

        try:
            settings = self._settings_provider.load()
        except MinifierError as exc:
            return self._fail(document, exc)
        if not settings.minify_on_save:
            return None

        target = build_write_target(settings)
        if isinstance(target, ReplaceDocument):
            with self._guard.hold(document.uri):
                return await self._run(document, settings, target, Trigger.SAVE)
        return await self._run(document, settings, target, Trigger.SAVE)

    async def _run(
        self,
        document: SourceDocument,
        settings: AppSettings,
        target: WriteTarget,
        trigger: Trigger,
    ) -> MinificationOutcome:
        logger.debug("%s invocation for %s (%s)", trigger.value, document.uri, target.mode)

        self._set_state(document, InvocationState.VALIDATING)
        validator = Validator(self._notifier, max_bytes=settings.max_content_bytes)
        validation = validator.validate(document.kind, document.text)
        if validation.error is not None or validation.kind is None:
            # The validator already told the user why.
            return self._fail(document, validation.error, notify=False)

        request = MinificationRequest.from_document(document, validation.kind)
        try:
            self._set_state(document, InvocationState.MINIFYING)
            minifier = self._minifier_factory(settings)
            minified_text = await minifier.minify(request.text, request.kind)
            stats = compute_stats(request.text, minified_text)

            self._set_state(document, InvocationState.WRITING_BACK)
            coordinator = WriteBackCoordinator(
                host=self._host,
                notifier=self._notifier,
                guard=self._guard,
                show_stats=settings.show_size_reduction,
            )
            output_path = await coordinator.write_back(document, minified_text, stats, target)
        except MinifierError as exc:
            return self._fail(document, exc)
        except OSError as exc:
            failed_path = exc.filename or document.path
            return self._fail(document, WriteError(str(failed_path), exc.strerror or str(exc)))

        self._set_state(document, InvocationState.IDLE)
        return MinificationOutcome.success(
            document=document,
            minified_text=minified_text,
            stats=stats,
            output_path=output_path,
        )

    def _fail(
        self,
        document: SourceDocument,
        error: MinifierError | None,
        *,
        notify: bool = True,
    ) -> MinificationOutcome:
        self._set_state(document, InvocationState.FAILED)
        kind = error.kind if error is not None else "validation"
        message = error.message if error is not None else "Validation failed."
        logger.debug("invocation for %s failed: %s", document.uri, kind)
        if notify:
            self._notifier.error(message)
        self._set_state(document, InvocationState.IDLE)
        return MinificationOutcome.failure(document=document, kind=kind, message=message)

    def _set_state(self, document: SourceDocument, state: InvocationState) -> None:
        if self._hooks.state_changed:
            self._hooks.state_changed(document, state)
