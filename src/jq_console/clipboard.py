# clipboard.py
# Paste-buffer collaborators. The pipeline only needs read_text/write_text;
# it never writes except through the explicit copy actions.

import asyncio
import os
import platform
import shutil
from typing import Optional, Protocol


class ClipboardError(Exception):
    """Raised when the system clipboard tool is missing or fails."""


class Clipboard(Protocol):
    async def read_text(self) -> Optional[str]: ...

    async def write_text(self, text: str) -> None: ...


class MemoryClipboard:
    """In-process clipboard. `None` means nothing has been copied."""

    def __init__(self, text: Optional[str] = None) -> None:
        self.text = text

    async def read_text(self) -> Optional[str]:
        return self.text

    async def write_text(self, text: str) -> None:
        self.text = text


def _commands(system: str) -> tuple[list[str], list[str]]:
    """(paste argv, copy argv) for the host clipboard tool."""
    if system == "Darwin":
        return ["pbpaste"], ["pbcopy"]
    if os.environ.get("WAYLAND_DISPLAY") and shutil.which("wl-paste"):
        return ["wl-paste", "--no-newline"], ["wl-copy"]
    return ["xclip", "-selection", "clipboard", "-o"], ["xclip", "-selection", "clipboard", "-i"]


class SystemClipboard:
    """
    Shells out to pbpaste/pbcopy, wl-paste/wl-copy or xclip.

    An empty clipboard reads as None (absent), not as an empty document.
    """

    def __init__(self, system: Optional[str] = None) -> None:
        self._paste, self._copy = _commands(system or platform.system())

    async def _run(self, argv: list[str], data: Optional[bytes] = None) -> bytes:
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE if data is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ClipboardError(f"{argv[0]}: {exc.strerror or exc}") from exc

        stdout, stderr = await process.communicate(data)
        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise ClipboardError(f"{argv[0]} exited with {process.returncode}: {detail}")
        return stdout

    async def read_text(self) -> Optional[str]:
        text = (await self._run(self._paste)).decode("utf-8", errors="replace")
        return text or None

    async def write_text(self, text: str) -> None:
        await self._run(self._copy, text.encode("utf-8"))
