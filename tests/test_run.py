from unittest.mock import patch

import pytest

from jq_console import run
from jq_console.clipboard import MemoryClipboard
from jq_console.config import ConfigError


@pytest.mark.asyncio
async def test_session_runs_queries_and_copies(make_settings, install_fake_jq):
    clipboard = MemoryClipboard('{"a": {"b": 2}}')
    edits = iter([".a", ":copy", ":bogus", ":quit"])

    with patch("jq_console.run.SystemClipboard", return_value=clipboard), \
         patch("jq_console.display.read_query", side_effect=lambda: next(edits)), \
         patch("jq_console.display.unknown_command") as unknown, \
         patch("jq_console.display.copied") as copied:
        await run.session(make_settings())

    assert clipboard.text == '{\n  "b": 2\n}'
    copied.assert_called_once_with("result", len(clipboard.text))
    unknown.assert_called_once_with(":bogus")


@pytest.mark.asyncio
async def test_session_ends_on_eof(make_settings, install_fake_jq):
    clipboard = MemoryClipboard(None)

    with patch("jq_console.run.SystemClipboard", return_value=clipboard), \
         patch("jq_console.display.read_query", side_effect=EOFError), \
         patch("jq_console.display.session_closed") as closed:
        await run.session(make_settings())

    closed.assert_called_once()


def test_main_exits_on_config_error():
    with patch("jq_console.run.load_settings", side_effect=ConfigError("No jq build known")), \
         patch("jq_console.display.halt") as halt:
        with pytest.raises(SystemExit) as excinfo:
            run.main()

    assert excinfo.value.code == 2
    halt.assert_called_once_with("No jq build known")
