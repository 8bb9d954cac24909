import os
import sys
from pathlib import Path

import pytest

from jq_console.config import Settings

DOWNLOAD_URL = "https://downloads.example.test/jq-1.7.1/jq-linux-amd64"

# Stand-in for jq: answers --version, "." and ".key" queries, and treats a
# "delay <seconds> <query>" prefix as a slow run.
FAKE_JQ = """#!{python}
import json
import sys
import time

args = sys.argv[1:]
if args == ["--version"]:
    print("jq-1.7.1")
    sys.exit(0)

query = args[0]
if query.startswith("delay "):
    _, seconds, query = query.split(" ", 2)
    time.sleep(float(seconds))

try:
    data = json.loads(sys.stdin.read())
except ValueError:
    sys.stderr.write("jq: error: cannot parse input\\n")
    sys.exit(2)

if query == ".":
    value = data
elif query.startswith(".") and query[1:].isidentifier():
    value = data.get(query[1:]) if isinstance(data, dict) else None
else:
    sys.stderr.write("jq: error: syntax error, unexpected INVALID_CHARACTER\\n")
    sys.exit(3)

print(json.dumps(value, indent=2))
"""


@pytest.fixture
def fake_jq_bytes() -> bytes:
    return FAKE_JQ.replace("{python}", sys.executable).encode("utf-8")


@pytest.fixture
def support_dir(tmp_path) -> Path:
    return tmp_path / "support"


@pytest.fixture
def install_fake_jq(support_dir, fake_jq_bytes) -> Path:
    support_dir.mkdir(parents=True, exist_ok=True)
    target = support_dir / "jq"
    target.write_bytes(fake_jq_bytes)
    os.chmod(target, 0o755)
    return target


@pytest.fixture
def make_settings(support_dir):
    def _make(**overrides) -> Settings:
        values = {
            "support_dir": support_dir,
            "download_url": DOWNLOAD_URL,
            "debounce_seconds": 0,
        }
        values.update(overrides)
        return Settings(**values)

    return _make
