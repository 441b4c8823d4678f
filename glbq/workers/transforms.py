# glbq/workers/transforms.py
import contextlib
import os
from pathlib import Path

from ..models.events import INFO, MergeLog
from ..models.job import TransformStep
from ..utils.paths import temp_output_path
from .tool import Emit, _ignore, run_tool


def _remove_quietly(path: Path) -> None:
    with contextlib.suppress(OSError):
        path.unlink(missing_ok=True)


def apply_transforms(
    tool: str,
    output_path: Path,
    transforms: list[TransformStep],
    cwd: Path | None = None,
    emit: Emit | None = None,
    job_id=None,
) -> None:
    """
    Run each step as `tool <kind> [args] <output> <tmp>` and swap the result
    into place. The first failing step aborts the chain; output_path then
    still holds the previous step's result.
    """
    emit = emit or _ignore
    output_path = Path(output_path)

    for index, step in enumerate(transforms):
        if not step.kind:
            continue

        tmp = temp_output_path(output_path, index)
        _remove_quietly(tmp)
        try:
            run_tool(
                tool,
                [*step.argv(), str(output_path), str(tmp)],
                cwd=cwd,
                emit=emit,
                message=f"Applying gltf-transform {step} step...",
                job_id=job_id,
            )
            os.replace(tmp, output_path)
            emit(MergeLog(job_id, INFO, f"Applied gltf-transform {step}."))
        except BaseException:
            _remove_quietly(tmp)
            raise
