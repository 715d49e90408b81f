import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


# Stand-in for a C compiler. It reads the source from stdin and writes a
# /bin/sh "executable" to the -o path whose behaviour follows markers in the
# source:
#   syntax error        -> compile fails with a diagnostic on stderr
#   return N            -> executable exits with N
#   // sleep: S         -> executable sleeps S seconds first
#   // stderr: TEXT     -> executable prints TEXT to stderr
# The argv it was called with is saved next to the artifact as <out>.args.
FAKE_COMPILER = '''#!{python}
import json
import os
import re
import sys

argv = sys.argv[1:]
out = argv[argv.index("-o") + 1]
source = sys.stdin.read()
with open(out + ".args", "w") as f:
    json.dump(argv, f)
if "syntax error" in source:
    sys.stderr.write("fakecc: error: expected ';' before 'error'\\n")
    sys.stdout.write("1 error generated.\\n")
    sys.exit(1)
code = re.search(r"return\\s+(\\d+)", source)
sleep = re.search(r"// sleep: ([0-9.]+)", source)
stderr = re.search(r"// stderr: (.*)", source)
lines = ["#!/bin/sh"]
if sleep:
    lines.append("sleep " + sleep.group(1))
if stderr:
    lines.append("echo '" + stderr.group(1) + "' >&2")
lines.append("exit " + (code.group(1) if code else "0"))
with open(out, "w") as f:
    f.write("\\n".join(lines) + "\\n")
os.chmod(out, 0o755)
'''


@pytest.fixture
def fake_compiler(tmp_path):
    path = tmp_path / "bin" / "fakecc"
    path.parent.mkdir()
    path.write_text(FAKE_COMPILER.format(python=sys.executable))
    path.chmod(0o755)
    return str(path)


@pytest.fixture
def workspace(tmp_path):
    path = tmp_path / "workspace"
    path.mkdir()
    return path


@pytest.fixture
def make_settings(fake_compiler):
    from models import Settings

    def _make(**overrides):
        values = {
            "language": "cpp",
            "compilers": [fake_compiler],
            "compiler_options": ["-std=c++17"],
            "dogear": "// test",
            "timeout_seconds": 10.0,
        }
        values.update(overrides)
        return Settings(**values)

    return _make
