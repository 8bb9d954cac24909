import sys

import pytest

from jq_console.clipboard import ClipboardError, MemoryClipboard, SystemClipboard, _commands


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


def test_commands_macos():
    assert _commands("Darwin") == (["pbpaste"], ["pbcopy"])


def test_commands_linux_without_wayland(monkeypatch):
    monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
    paste, copy = _commands("Linux")
    assert paste[0] == "xclip" and copy[0] == "xclip"


@pytest.mark.asyncio
async def test_memory_clipboard_round_trip():
    clipboard = MemoryClipboard()
    assert await clipboard.read_text() is None
    await clipboard.write_text("{}")
    assert await clipboard.read_text() == "{}"


@pytest.mark.asyncio
async def test_system_clipboard_reads_tool_output():
    clipboard = SystemClipboard("Darwin")
    clipboard._paste = _python("import sys; sys.stdout.write('{\"a\": 1}')")
    assert await clipboard.read_text() == '{"a": 1}'


@pytest.mark.asyncio
async def test_system_clipboard_empty_reads_as_absent():
    clipboard = SystemClipboard("Darwin")
    clipboard._paste = _python("pass")
    assert await clipboard.read_text() is None


@pytest.mark.asyncio
async def test_system_clipboard_writes_to_tool(tmp_path):
    target = tmp_path / "copied"
    clipboard = SystemClipboard("Darwin")
    clipboard._copy = _python(f"import sys; open({str(target)!r}, 'w').write(sys.stdin.read())")

    await clipboard.write_text(".a")

    assert target.read_text() == ".a"


@pytest.mark.asyncio
async def test_system_clipboard_missing_tool(tmp_path):
    clipboard = SystemClipboard("Darwin")
    clipboard._paste = [str(tmp_path / "no-such-tool")]
    with pytest.raises(ClipboardError):
        await clipboard.read_text()


@pytest.mark.asyncio
async def test_system_clipboard_tool_failure():
    clipboard = SystemClipboard("Darwin")
    clipboard._paste = _python("import sys; sys.stderr.write('no display'); sys.exit(1)")
    with pytest.raises(ClipboardError, match="no display"):
        await clipboard.read_text()
