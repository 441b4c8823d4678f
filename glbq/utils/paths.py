# glbq/utils/paths.py
import os
import shutil
import time
from pathlib import Path


class WorkDirError(ValueError):
    pass


def is_glb(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() == ".glb"


def default_output_name(job_id) -> str:
    return f"merged-{job_id}.glb"


def resolve_output_path(output_dir: str, output_name: str | None, job_id) -> Path:
    name = output_name.strip() if output_name and output_name.strip() else default_output_name(job_id)
    return Path(os.path.abspath(Path(output_dir) / name))


def temp_output_path(output_path: Path, index: int) -> Path:
    """Sibling of output_path, unique per step index and time: model.tmp-1712345678901-0.glb"""
    output_path = Path(output_path)
    ext = output_path.suffix or ".glb"
    stem = output_path.name[: -len(output_path.suffix)] if output_path.suffix else output_path.name
    return output_path.parent / f"{stem}.tmp-{int(time.time() * 1000)}-{index}{ext}"


def job_log_path(output_path: Path) -> Path:
    output_path = Path(output_path)
    return output_path.parent / f"{output_path.stem}_merge.log"


def resolve_working_directory(configured: str | None) -> Path:
    if not configured or not str(configured).strip():
        return Path.cwd()
    p = Path(configured)
    try:
        p.stat()
    except OSError as e:
        raise WorkDirError(f"Configured working folder is not accessible: {configured}. {e}") from e
    if not p.is_dir():
        raise WorkDirError(f"Configured working folder is not a directory: {configured}")
    return p


def resolve_tool(configured: str | None, work_dir: Path | None = None) -> str:
    """
    Explicit paths in preferences win. A bare command name is looked up in the
    working folder's node_modules/.bin first, then on PATH. When nothing is
    found the name is returned as-is so the spawn error reaches the job log.
    """
    name = (configured or "").strip() or "gltf-transform"
    if os.sep in name or (os.altsep and os.altsep in name):
        return name
    if work_dir is not None:
        local = Path(work_dir) / "node_modules" / ".bin" / name
        if local.is_file():
            return str(local)
    return shutil.which(name) or name
