import json
import re
from pathlib import Path

import pytest

from glbq.utils import settings as settings_mod
from glbq.utils.paths import (
    WorkDirError, default_output_name, job_log_path, resolve_output_path, resolve_tool,
    resolve_working_directory, temp_output_path,
)


def test_output_path_defaults_to_job_id(tmp_path):
    assert default_output_name(3) == "merged-3.glb"
    assert resolve_output_path(str(tmp_path), None, 3) == tmp_path / "merged-3.glb"
    assert resolve_output_path(str(tmp_path), "  ", "x") == tmp_path / "merged-x.glb"
    assert resolve_output_path(str(tmp_path), " hero.glb ", 1) == tmp_path / "hero.glb"


def test_temp_path_is_a_sibling_with_index(tmp_path):
    p = temp_output_path(tmp_path / "hero.glb", 2)
    assert p.parent == tmp_path
    assert re.fullmatch(r"hero\.tmp-\d{13}-2\.glb", p.name)


def test_job_log_path():
    assert job_log_path(Path("/out/hero.glb")) == Path("/out/hero_merge.log")


def test_working_directory_resolution(tmp_path):
    assert resolve_working_directory(None) == Path.cwd()
    assert resolve_working_directory("") == Path.cwd()
    assert resolve_working_directory(str(tmp_path)) == tmp_path
    f = tmp_path / "file.txt"
    f.write_text("x")
    with pytest.raises(WorkDirError, match="not a directory"):
        resolve_working_directory(str(f))
    with pytest.raises(WorkDirError, match="not accessible"):
        resolve_working_directory(str(tmp_path / "missing"))


def test_resolve_tool_prefers_node_modules(tmp_path):
    local = tmp_path / "node_modules" / ".bin" / "gltf-transform"
    local.parent.mkdir(parents=True)
    local.write_text("")
    assert resolve_tool(None, tmp_path) == str(local)
    assert resolve_tool("/opt/bin/gltf-transform", tmp_path) == "/opt/bin/gltf-transform"


def test_resolve_tool_ignores_windows_shims(tmp_path, monkeypatch):
    monkeypatch.setattr("glbq.utils.paths.shutil.which", lambda name: None)
    shim = tmp_path / "node_modules" / ".bin" / "gltf-transform.cmd"
    shim.parent.mkdir(parents=True)
    shim.write_text("")
    assert resolve_tool(None, tmp_path) == "gltf-transform"


def test_resolve_tool_falls_back_to_path_then_name(tmp_path, monkeypatch):
    monkeypatch.setattr("glbq.utils.paths.shutil.which", lambda name: f"/usr/bin/{name}" if name == "gltf-transform" else None)
    assert resolve_tool("", tmp_path) == "/usr/bin/gltf-transform"
    assert resolve_tool("nothing-here", tmp_path) == "nothing-here"


def test_settings_first_run_writes_defaults(tmp_path):
    p = tmp_path / "s.json"
    data = settings_mod.load_settings(p)
    assert data == settings_mod.DEFAULT_SETTINGS
    assert json.loads(p.read_text()) == settings_mod.DEFAULT_SETTINGS


def test_settings_merge_over_defaults_and_save(tmp_path):
    p = tmp_path / "s.json"
    p.write_text(json.dumps({"work_dir": "/w", "extra": 1}))
    data = settings_mod.load_settings(p)
    assert data["work_dir"] == "/w" and data["extra"] == 1
    assert data["default_transforms"] == "dedup, prune"
    data["last_output_dir"] = "/o"
    settings_mod.save_settings(data, p)
    assert settings_mod.load_settings(p)["last_output_dir"] == "/o"


def test_broken_settings_file_is_reset(tmp_path):
    p = tmp_path / "s.json"
    p.write_text("{not json")
    assert settings_mod.load_settings(p) == settings_mod.DEFAULT_SETTINGS
    assert json.loads(p.read_text()) == settings_mod.DEFAULT_SETTINGS


def test_settings_path_env_override(tmp_path, monkeypatch):
    monkeypatch.setenv("GLBQ_SETTINGS", str(tmp_path / "env.json"))
    assert settings_mod.settings_path() == tmp_path / "env.json"
    settings_mod.save_settings({"a": 1})
    assert json.loads((tmp_path / "env.json").read_text()) == {"a": 1}
