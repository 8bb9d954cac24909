# provisioner.py
# Guarantees a working, version-pinned jq executable exists at a known path.
#
# Flow per attempt:
#   probe → (ok) return pinned version, no network
#         → (fail) remove stale file → stream download to temp file
#         → os.replace onto the target → return pinned version
#
# The target path is never written directly: a crash or a dropped connection
# mid-download leaves at most an orphaned ".part" file beside it.
#
# Concurrent ensure() calls for the same path share one attempt.

import asyncio
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Union

import httpx

from jq_console import display

VERSION_FLAG = "--version"
CHUNK_SIZE = 64 * 1024

PathLike = Union[str, Path]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ProvisionError(Exception):
    """Base for failures that leave jq unavailable."""


class DownloadFailed(ProvisionError):
    """Raised on a non-success HTTP status, an empty body or a transport error."""

    def __init__(self, status: Optional[int], reason: str = "") -> None:
        self.status = status
        message = f"Failed to download jq (HTTP {status})" if status else "Failed to download jq"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class WriteFailed(ProvisionError):
    """Raised when the downloaded binary cannot be written into place."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def probe(path: PathLike) -> bool:
    """
    Run `<path> --version`. True only on a clean zero exit.

    Missing file, missing exec bit, spawn error and nonzero exit all read as
    "not installed"; none of them is surfaced as an error.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            str(path),
            VERSION_FLAG,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError:
        return False
    return await process.wait() == 0


def _remove_stale(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        display.stale_artifact_not_removed(path, exc)


async def _stream_to(target: Path, response: httpx.Response) -> None:
    """Write the response body beside `target`, then move it into place."""
    try:
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}-", suffix=".part")
    except OSError as exc:
        raise WriteFailed(f"Cannot create a temporary file in {target.parent}: {exc}") from exc

    tmp = Path(tmp_name)
    installed = False
    try:
        with os.fdopen(fd, "wb") as fh:
            os.fchmod(fh.fileno(), 0o700)
            written = 0
            async for chunk in response.aiter_bytes(CHUNK_SIZE):
                await asyncio.to_thread(fh.write, chunk)
                written += len(chunk)

        if written == 0:
            raise DownloadFailed(response.status_code, "empty response body")

        os.replace(tmp, target)
        installed = True
    except OSError as exc:
        raise WriteFailed(f"Cannot write {target}: {exc}") from exc
    finally:
        if not installed:
            tmp.unlink(missing_ok=True)


# ---------------------------------------------------------------------------
# Provisioner
# ---------------------------------------------------------------------------


class Provisioner:
    """
    Single-flight installer for the jq binary.

    Pass an httpx.AsyncClient to control transport (tests use
    httpx.MockTransport); otherwise a client with `timeout` is created per
    download.

    Example:
        provisioner = Provisioner(timeout=60)
        version = await provisioner.ensure(path, "jq-1.7.1", url)
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 60.0) -> None:
        self._client = client
        self._timeout = timeout
        self._in_flight: dict[Path, "asyncio.Future[str]"] = {}

    async def ensure(self, target_path: PathLike, version: str, download_url: str) -> str:
        """
        Return `version` once a probe-passing binary is at `target_path`.

        Raises ProvisionError (DownloadFailed / WriteFailed) when it cannot
        be installed. Callers arriving while an attempt for the same path is
        running await that attempt instead of starting their own.
        """
        key = Path(target_path).resolve()
        attempt = self._in_flight.get(key)
        if attempt is None:
            attempt = asyncio.ensure_future(self._provision(key, version, download_url))
            self._in_flight[key] = attempt
            attempt.add_done_callback(lambda done: self._release(key, done))
        # Shielded: one caller giving up must not cancel the shared attempt.
        return await asyncio.shield(attempt)

    def in_flight(self, target_path: PathLike) -> bool:
        return Path(target_path).resolve() in self._in_flight

    def _release(self, key: Path, done: "asyncio.Future[str]") -> None:
        if self._in_flight.get(key) is done:
            del self._in_flight[key]

    async def _provision(self, target: Path, version: str, url: str) -> str:
        if await probe(target):
            return version

        _remove_stale(target)
        display.downloading(url)
        await self._download(target, url)
        return version

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    async def _download(self, target: Path, url: str) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise WriteFailed(f"Cannot create {target.parent}: {exc}") from exc

        async with self._session() as client:
            try:
                async with client.stream("GET", url, follow_redirects=True) as response:
                    if not response.is_success:
                        raise DownloadFailed(response.status_code, response.reason_phrase)
                    await _stream_to(target, response)
            except httpx.HTTPError as exc:
                raise DownloadFailed(None, str(exc) or type(exc).__name__) from exc
