# glbq/workers/merger.py
import threading
import time
from pathlib import Path

from PySide6.QtCore import QObject, Signal, Slot

from ..models.events import ERR, INFO, MergeLog, MergeResult, MergeStatus
from ..models.job import (
    DEFAULT_TRANSFORMS, FAILED, PENDING, RUNNING, SUCCESS, Job, JobValidationError,
)
from ..utils.paths import job_log_path, resolve_output_path, resolve_tool, resolve_working_directory
from .tool import Emit, run_tool
from .transforms import apply_transforms


class MergeBusyError(RuntimeError):
    pass


def run_merge_job(job: Job, tool: str, work_dir: Path | None, emit: Emit) -> Path:
    """Merge job.files into one GLB, then run its transforms. Raises on failure."""
    if not job.files:
        raise JobValidationError("No GLB files selected for this job.")
    if not job.output_dir:
        raise JobValidationError("No output directory selected.")

    output_path = resolve_output_path(job.output_dir, job.output_name, job.id)
    if not output_path.parent.is_dir():
        raise JobValidationError(f"Output directory does not exist: {output_path.parent}")

    emit(MergeStatus(job.id, RUNNING, str(output_path)))
    run_tool(
        tool,
        ["merge", *job.files, str(output_path)],
        cwd=work_dir,
        emit=emit,
        message=f"Running gltf-transform merge for {output_path.name}...",
        job_id=job.id,
    )
    apply_transforms(
        tool,
        output_path,
        list(job.transforms) or list(DEFAULT_TRANSFORMS),
        cwd=work_dir,
        emit=emit,
        job_id=job.id,
    )
    emit(MergeLog(job.id, INFO, f"Finished job {job.id}. Saved to {output_path}"))
    emit(MergeStatus(job.id, SUCCESS, str(output_path)))
    return output_path


class MergeGate:
    """One batch at a time. The UI thread polls `busy` while the worker thread holds it."""

    def __init__(self):
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        if self._lock.locked():
            self._lock.release()

    @property
    def busy(self) -> bool:
        return self._lock.locked()


class MergeQueue(QObject):
    merge_log = Signal(object)     # MergeLog
    merge_status = Signal(object)  # MergeStatus
    batch_done = Signal(object)    # MergeResult

    def __init__(self, settings: dict, parent=None):
        super().__init__(parent)
        self.settings = settings
        self.gate = MergeGate()
        self._listeners = []
        self._batch: tuple[list, str | None] = ([], None)
        self._job_logs: dict = {}

    def add_listener(self, fn) -> None:
        self._listeners.append(fn)

    def is_merging(self) -> bool:
        return self.gate.busy

    def _emit(self, event) -> None:
        if isinstance(event, MergeStatus):
            self._track_job_log(event)
            self.merge_status.emit(event)
        else:
            self._write_job_log(event)
            self.merge_log.emit(event)
        for fn in list(self._listeners):
            fn(event)

    def _track_job_log(self, event: MergeStatus) -> None:
        if event.status != RUNNING or not event.output_path or not self.settings.get("save_job_log", True):
            return
        self._job_logs[event.job_id] = job_log_path(Path(event.output_path))
        self._write_job_log(MergeLog(event.job_id, INFO, f"=== Job {event.job_id} → {event.output_path} ==="))

    def _write_job_log(self, event: MergeLog) -> None:
        if (p := self._job_logs.get(event.job_id)) is None:
            return
        stamp = time.strftime("%H:%M:%S")
        try:
            with open(p, "a", encoding="utf-8") as lf:
                for line in event.text.splitlines():
                    if line.strip():
                        lf.write(f"{stamp} [{event.kind}] {line}\n")
        except OSError:
            pass

    def start_merge(self, jobs, work_dir: str | None = None) -> MergeResult:
        """
        Run a batch of jobs one after another.

        Raises MergeBusyError, ValueError (empty batch, bad payload) or
        WorkDirError before anything is emitted. Job failures only produce
        "failed" statuses; the result is ok=False only when the dispatch loop
        itself breaks.
        """
        if self.gate.busy:
            raise MergeBusyError("A merge is already in progress. Please wait.")
        if not jobs:
            raise ValueError("No jobs to merge.")

        jobs = [j if isinstance(j, Job) else Job.from_payload(j) for j in jobs]
        cwd = resolve_working_directory(work_dir if work_dir is not None else self.settings.get("work_dir"))
        tool = resolve_tool(self.settings.get("gltf_transform_path"), cwd)

        if not self.gate.try_acquire():
            raise MergeBusyError("A merge is already in progress. Please wait.")
        try:
            self._job_logs.clear()
            for job in jobs:
                self._emit(MergeStatus(job.id, PENDING))
            self._emit(MergeLog(None, INFO, f"Starting {len(jobs)} merge job(s)..."))
            self._emit(MergeLog(None, INFO, f"Using working folder: {cwd}"))

            for job in jobs:
                try:
                    run_merge_job(job, tool, cwd, self._emit)
                except Exception as e:
                    self._emit(MergeLog(job.id, ERR, str(e) or repr(e)))
                    self._emit(MergeStatus(job.id, FAILED))

            self._emit(MergeLog(None, INFO, "All merge jobs finished."))
            return MergeResult(ok=True)
        except Exception as e:
            self._emit(MergeLog(None, ERR, str(e) or repr(e)))
            return MergeResult(ok=False, error=str(e) or repr(e))
        finally:
            self._job_logs.clear()
            self.gate.release()

    def set_batch(self, jobs, work_dir: str | None = None) -> None:
        self._batch = (list(jobs), work_dir)

    @Slot()
    def run_batch(self) -> None:
        jobs, work_dir = self._batch
        try:
            result = self.start_merge(jobs, work_dir)
        except (MergeBusyError, ValueError) as e:
            result = MergeResult(ok=False, error=str(e))
        self.batch_done.emit(result)
