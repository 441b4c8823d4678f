import os
import stat
import sys
from pathlib import Path

import pytest
from PySide6.QtCore import QCoreApplication

# Stand-in for gltf-transform. Appends its argv to $FAKE_GLTF_CALLS and
# writes outputs whose content is easy to check:
#   merge a b out     -> out = "a-content+b-content"
#   <kind> in out     -> out = in-content + "|<kind>"
# $FAKE_GLTF_FAIL names a command that exits 3 without writing anything.
FAKE_TOOL = '''\
import os, sys
args = sys.argv[1:]
with open(os.environ["FAKE_GLTF_CALLS"], "a") as f:
    f.write("\\t".join(args) + "\\n")
cmd = args[0]
print("fake " + cmd + " starting")
sys.stdout.flush()
if cmd == os.environ.get("FAKE_GLTF_FAIL"):
    sys.stderr.write("fake " + cmd + " blew up\\n")
    sys.exit(3)
if cmd == "merge":
    *inputs, out = args[1:]
    data = "+".join(open(p).read() for p in inputs)
else:
    src, out = args[-2], args[-1]
    data = open(src).read() + "|" + cmd
with open(out, "w") as f:
    f.write(data)
'''


@pytest.fixture(scope="session", autouse=True)
def qcore_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def fake_tool(tmp_path, monkeypatch):
    bindir = tmp_path / "bin"
    bindir.mkdir()
    tool = bindir / "gltf-transform"
    tool.write_text(f"#!{sys.executable}\n{FAKE_TOOL}")
    tool.chmod(tool.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    calls = tmp_path / "calls.txt"
    calls.touch()
    monkeypatch.setenv("FAKE_GLTF_CALLS", str(calls))
    monkeypatch.delenv("FAKE_GLTF_FAIL", raising=False)
    return tool


@pytest.fixture
def calls(fake_tool):
    path = Path(os.environ["FAKE_GLTF_CALLS"])

    def read():
        return [line.split("\t") for line in path.read_text().splitlines() if line]
    return read


@pytest.fixture
def glbs(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    out = []
    for name in ("base", "a", "b"):
        p = src / f"{name}.glb"
        p.write_text(name)
        out.append(str(p))
    return out


@pytest.fixture
def out_dir(tmp_path):
    d = tmp_path / "out"
    d.mkdir()
    return d


@pytest.fixture
def settings(fake_tool, tmp_path):
    work = tmp_path / "work"
    work.mkdir()
    return {
        "gltf_transform_path": str(fake_tool),
        "work_dir": str(work),
        "save_job_log": False,
    }
