# pipeline.py
# Interactive query pipeline. One instance is one activation.
#
# Three independent chains feed one snapshot:
#   binary check   → BinaryState      (provisioner)
#   document load  → DocumentState    (clipboard, read once)
#   query edits    → Query            (debounced, single pending slot)
#
# Whenever binary ∧ document ∧ query are ready and the triple changed, jq is
# run. Each trigger takes the next sequence number; the superseded run is
# cancelled and any result carrying an old number is dropped on arrival.
#
# Every source replaces its own slot of the frozen PipelineSnapshot; the
# presentation layer is handed the whole snapshot after each change.

import asyncio
import json
import os
from pathlib import Path
from typing import Callable, Coroutine, Optional, Protocol

from jq_console import display
from jq_console.clipboard import Clipboard, ClipboardError
from jq_console.config import Settings
from jq_console.models import (
    BinaryInstallation,
    BinaryState,
    Details,
    DocumentState,
    ExecutionResult,
    ExecutionState,
    PipelineSnapshot,
    Query,
    SourceDocument,
)
from jq_console.presentation import derive_details
from jq_console.provisioner import ProvisionError, Provisioner

INVALID_DOCUMENT = "JSON document in clipboard is invalid"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class BinaryUnavailable(Exception):
    """jq could not be provisioned. Blocks execution for the activation."""


class DocumentInvalid(Exception):
    """Clipboard text is not well-formed JSON. Terminal for the activation."""


class QuerySyntaxError(Exception):
    """jq rejected the query (nonzero exit) or could not be run. Recoverable."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class Notifier(Protocol):
    def provisioning_started(self) -> None: ...

    def provisioning_succeeded(self, version: str) -> None: ...

    def provisioning_failed(self, reason: str) -> None: ...


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _reject_constant(name: str) -> None:
    # NaN, Infinity and -Infinity are not JSON.
    raise ValueError(f"{name} is not valid JSON")


def load_document(text: Optional[str]) -> Optional[SourceDocument]:
    """
    Validate clipboard text. None (empty clipboard) is not an error.

    The parse is advisory: raw_text is what gets forwarded to jq.
    Raises DocumentInvalid on malformed JSON.
    """
    if text is None:
        return None
    try:
        json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        raise DocumentInvalid(INVALID_DOCUMENT) from exc
    return SourceDocument(raw_text=text, parsed_ok=True)


async def run_query(binary: Path, query: str, document: str) -> ExecutionResult:
    """
    Run `jq <query>` with `document` on stdin.

    Raises QuerySyntaxError on nonzero exit or spawn/stream failure. If the
    calling task is cancelled the jq process is killed before re-raising.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            str(binary),
            query,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise QuerySyntaxError(f"Cannot run jq: {exc}") from exc

    try:
        stdout_b, stderr_b = await process.communicate(document.encode("utf-8"))
    except asyncio.CancelledError:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
        raise
    except OSError as exc:
        raise QuerySyntaxError(f"jq stream failed: {exc}") from exc

    if process.returncode != 0:
        detail = stderr_b.decode("utf-8", errors="replace").strip()
        raise QuerySyntaxError(detail or f"jq exited with status {process.returncode}")

    stdout = stdout_b.decode("utf-8", errors="replace")
    return ExecutionResult(stdout=stdout.removesuffix("\n"), succeeded=True)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class QueryPipeline:
    """
    State aggregator for one activation.

    Example:
        async with QueryPipeline(settings, Provisioner(), SystemClipboard()) as pipeline:
            pipeline.set_query_text(".items[0]")
            await pipeline.wait_idle()
            display.details(pipeline.details())
    """

    def __init__(
        self,
        settings: Settings,
        provisioner: Provisioner,
        clipboard: Clipboard,
        notifier: Notifier = display,
        on_state: Optional[Callable[[PipelineSnapshot], None]] = None,
    ) -> None:
        self._settings = settings
        self._provisioner = provisioner
        self._clipboard = clipboard
        self._notifier = notifier
        self._on_state = on_state

        initial = settings.initial_query
        self._snapshot = PipelineSnapshot(query=Query(text=initial) if initial else None)

        self._tasks: set[asyncio.Task] = set()
        self._debounce: Optional[asyncio.Task] = None
        self._pending: Optional[str] = None
        self._running: Optional[asyncio.Task] = None
        self._last_triple: Optional[tuple] = None
        self._sequence = 0
        self._started = False

        self.executions = 0

    async def __aenter__(self) -> "QueryPipeline":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def snapshot(self) -> PipelineSnapshot:
        return self._snapshot

    def details(self) -> Details:
        return derive_details(self._snapshot, self._settings.truncate_limit)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Launch the binary check and the document load concurrently."""
        if self._started:
            raise RuntimeError("Pipeline activation already started.")
        self._started = True
        self._spawn(self._check_binary())
        self._spawn(self._load_document())
        self._publish()

    async def wait_idle(self) -> None:
        """Wait until no check, load, debounce timer or jq run is outstanding."""
        while self._tasks:
            results = await asyncio.gather(*list(self._tasks), return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    raise result

    async def close(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _update(self, **changes) -> None:
        self._snapshot = self._snapshot.model_copy(update=changes)
        self._publish()

    def _publish(self) -> None:
        if self._on_state is not None:
            self._on_state(self._snapshot)

    # ------------------------------------------------------------------
    # Binary check
    # ------------------------------------------------------------------

    async def _provision(self) -> BinaryInstallation:
        settings = self._settings
        try:
            version = await self._provisioner.ensure(
                settings.binary_path, settings.jq_version, settings.download_url
            )
        except ProvisionError as exc:
            raise BinaryUnavailable(str(exc)) from exc
        return BinaryInstallation(
            path=settings.binary_path,
            pinned_version=version,
            executable=os.access(settings.binary_path, os.X_OK),
        )

    async def _check_binary(self) -> None:
        self._notifier.provisioning_started()
        try:
            installation = await self._provision()
        except BinaryUnavailable as exc:
            self._update(binary=BinaryState(checking=False, error=str(exc)))
            self._notifier.provisioning_failed(str(exc))
            return

        self._update(binary=BinaryState(checking=False, installation=installation))
        self._notifier.provisioning_succeeded(installation.pinned_version)
        self._maybe_execute()

    # ------------------------------------------------------------------
    # Document load
    # ------------------------------------------------------------------

    async def _load_document(self) -> None:
        try:
            document = load_document(await self._clipboard.read_text())
        except (ClipboardError, DocumentInvalid) as exc:
            self._update(document=DocumentState(loading=False, error=str(exc)))
            return

        execution = self._snapshot.execution
        if document is not None and execution.result is None:
            # Show the document itself until the first query result lands.
            execution = execution.model_copy(update={"result": document.raw_text})
        self._update(document=DocumentState(loading=False, document=document), execution=execution)
        self._maybe_execute()

    # ------------------------------------------------------------------
    # Query edits
    # ------------------------------------------------------------------

    def set_query_text(self, text: str) -> None:
        """Debounced edit. Empty text is ignored; the previous query sticks."""
        if not text:
            return
        self._pending = text
        if self._debounce is not None and not self._debounce.done():
            self._debounce.cancel()
        self._debounce = self._spawn(self._promote_after_pause())

    async def _promote_after_pause(self) -> None:
        await asyncio.sleep(self._settings.debounce_seconds)
        text, self._pending = self._pending, None
        if text:
            self._update(query=Query(text=text))
            self._maybe_execute()

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _maybe_execute(self) -> None:
        snapshot = self._snapshot
        if not (snapshot.binary.ready and snapshot.document.ready):
            return
        if snapshot.query is None or not snapshot.query.text:
            return

        triple = (snapshot.binary.installation, snapshot.document.document, snapshot.query)
        if triple == self._last_triple:
            return
        self._last_triple = triple

        self._sequence += 1
        if self._running is not None and not self._running.done():
            self._running.cancel()

        self.executions += 1
        self._update(
            execution=snapshot.execution.model_copy(
                update={"running": True, "sequence": self._sequence}
            )
        )
        self._running = self._spawn(
            self._execute(
                self._sequence,
                snapshot.binary.installation.path,
                snapshot.query.text,
                snapshot.document.document.raw_text,
            )
        )

    async def _execute(self, sequence: int, binary: Path, query: str, document: str) -> None:
        try:
            outcome = await run_query(binary, query, document)
        except QuerySyntaxError as exc:
            outcome = ExecutionResult(succeeded=False, error_detail=exc.detail)
        self._apply(sequence, outcome)

    def _apply(self, sequence: int, outcome: ExecutionResult) -> bool:
        """Apply a finished run unless a newer trigger superseded it."""
        if sequence != self._sequence:
            return False

        if outcome.succeeded:
            state = ExecutionState(sequence=sequence, result=outcome.stdout)
        else:
            # Keep the last good result copyable while the error shows.
            state = ExecutionState(
                sequence=sequence,
                result=self._snapshot.execution.result,
                error=outcome.error_detail,
            )
        self._update(execution=state)
        return True

    # ------------------------------------------------------------------
    # Copy actions
    # ------------------------------------------------------------------

    async def copy_result(self) -> bool:
        """Copy the untruncated result. False when there is none."""
        result = self._snapshot.execution.result
        if not result:
            return False
        await self._clipboard.write_text(result)
        return True

    async def copy_query(self) -> bool:
        query = self._snapshot.query
        if query is None:
            return False
        await self._clipboard.write_text(query.text)
        return True
