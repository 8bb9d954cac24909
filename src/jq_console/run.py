# run.py
# Entry point. Config and wiring only. No logic lives here.
#
# Settings come from JQ_CONSOLE_* environment variables or a .env file,
# e.g. JQ_CONSOLE_SUPPORT_DIR=~/.jq-console, JQ_CONSOLE_DEBOUNCE_SECONDS=0.3.

import asyncio

from jq_console import display
from jq_console.clipboard import ClipboardError, SystemClipboard
from jq_console.config import ConfigError, Settings, load_settings
from jq_console.pipeline import QueryPipeline
from jq_console.provisioner import Provisioner

QUIT_COMMANDS = {":q", ":quit", ":exit"}


async def _copy(pipeline: QueryPipeline, what: str) -> None:
    action = pipeline.copy_result if what == "result" else pipeline.copy_query
    try:
        copied = await action()
    except ClipboardError as exc:
        display.halt(str(exc))
        return
    if not copied:
        display.nothing_to_copy(what)
        return
    snapshot = pipeline.snapshot()
    text = snapshot.execution.result if what == "result" else snapshot.query.text
    display.copied(what, len(text))


async def session(settings: Settings) -> None:
    provisioner = Provisioner(timeout=settings.download_timeout)
    display.banner(settings.jq_version, settings.binary_path)

    async with QueryPipeline(settings, provisioner, SystemClipboard()) as pipeline:
        await pipeline.wait_idle()
        display.details(pipeline.details())

        while True:
            try:
                line = (await asyncio.to_thread(display.read_query)).strip()
            except (EOFError, KeyboardInterrupt):
                break

            if line in QUIT_COMMANDS:
                break
            if line == ":copy":
                await _copy(pipeline, "result")
                continue
            if line == ":copy-query":
                await _copy(pipeline, "query")
                continue
            if line.startswith(":"):
                display.unknown_command(line)
                continue

            pipeline.set_query_text(line)
            await pipeline.wait_idle()
            display.details(pipeline.details())

    display.session_closed()


def main() -> None:
    try:
        settings = load_settings()
    except ConfigError as exc:
        display.halt(str(exc))
        raise SystemExit(2) from exc

    asyncio.run(session(settings))


if __name__ == "__main__":
    main()
