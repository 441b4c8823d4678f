# glbq/utils/settings.py
import json
import os
from pathlib import Path

# Top directory = folder that contains the `glbq/` package
def _top_dir() -> Path:
    # This file is glbq/utils/settings.py → parents[2] is the folder above glbq/
    return Path(__file__).resolve().parents[2]

SETTINGS_NAME = "glb_merger_settings.json"
APP_SETTINGS_FILE = _top_dir() / SETTINGS_NAME

DEFAULT_SETTINGS = {
    "gltf_transform_path": "gltf-transform",
    "work_dir": None,                  # None → current directory
    "last_output_dir": None,
    "default_transforms": "dedup, prune",
    "save_job_log": True,              # <output>_merge.log beside each merged file
    # layout persistence:
    # "col_widths": [...],
    # "v_split_sizes": [...],
}

def settings_path() -> Path:
    if env := os.environ.get("GLBQ_SETTINGS"):
        return Path(env)
    return APP_SETTINGS_FILE

def load_settings(path: Path | None = None) -> dict:
    p = Path(path) if path else settings_path()
    if p.exists():
        try:
            data = json.loads(p.read_text())
            if isinstance(data, dict):
                return {**DEFAULT_SETTINGS, **data}
        except (OSError, ValueError):
            pass
    # First run or broken file → write defaults so the file exists
    try:
        p.write_text(json.dumps(DEFAULT_SETTINGS, indent=2))
    except OSError:
        # As a last resort, write into CWD so you still get a file
        Path(SETTINGS_NAME).write_text(json.dumps(DEFAULT_SETTINGS, indent=2))
    return DEFAULT_SETTINGS.copy()

def save_settings(data: dict, path: Path | None = None) -> None:
    p = Path(path) if path else settings_path()
    try:
        p.write_text(json.dumps(data, indent=2))
    except OSError:
        # Last resort fallback to CWD
        Path(SETTINGS_NAME).write_text(json.dumps(data, indent=2))
