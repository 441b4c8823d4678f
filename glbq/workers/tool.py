# glbq/workers/tool.py
import codecs
import os
import select
import subprocess
from pathlib import Path
from typing import Callable

from ..models.events import ERR, INFO, OUT, MergeLog

Emit = Callable[[MergeLog], None]


class ToolError(RuntimeError):
    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        self.returncode = returncode


def _ignore(_event) -> None:
    pass


def run_tool(
    tool: str,
    args: list,
    cwd: Path | str | None = None,
    emit: Emit | None = None,
    message: str | None = None,
    job_id=None,
) -> None:
    """
    Run `tool args...` and stream its stdout/stderr to `emit` chunk by chunk.

    Returns on exit code 0. Spawn failures re-raise the OSError, a non-zero
    exit raises ToolError; both are emitted as "err" lines first.
    """
    emit = emit or _ignore
    if message:
        emit(MergeLog(job_id, INFO, message))

    cmd = [str(tool), *(str(a) for a in args)]
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=str(cwd) if cwd else None,
            env={**os.environ},
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as e:
        emit(MergeLog(job_id, ERR, str(e)))
        raise

    with proc:
        streams = {proc.stdout.fileno(): OUT, proc.stderr.fileno(): ERR}
        decoders = {fd: codecs.getincrementaldecoder("utf-8")(errors="replace") for fd in streams}
        while streams:
            rl, _, _ = select.select(list(streams), [], [])
            for fd in rl:
                kind = streams[fd]
                if chunk := os.read(fd, 65536):
                    text = decoders[fd].decode(chunk)
                else:
                    text = decoders[fd].decode(b"", final=True)
                    del streams[fd]
                if text:
                    emit(MergeLog(job_id, kind, text))
        code = proc.wait()

    if code != 0:
        err = ToolError(f"{Path(str(tool)).name} exited with code {code}", code)
        emit(MergeLog(job_id, ERR, str(err)))
        raise err
