# glbq/models/job.py
import shlex
from dataclasses import dataclass, field

IDLE = "idle"
PENDING = "pending"
RUNNING = "running"
SUCCESS = "success"
FAILED = "failed"

STATUS_LABELS = {
    IDLE: "Idle",
    PENDING: "Queued",
    RUNNING: "Running",
    SUCCESS: "Completed",
    FAILED: "Failed",
}


class JobValidationError(ValueError):
    pass


def _quote(arg: str) -> str:
    # shlex leaves commas bare, but commas separate steps in transform lists
    q = shlex.quote(arg)
    return f"'{arg}'" if q == arg and "," in arg else q


@dataclass(frozen=True)
class TransformStep:
    kind: str
    args: tuple[str, ...] = ()

    def argv(self) -> list[str]:
        return [self.kind, *self.args]

    def __str__(self) -> str:
        return " ".join(_quote(a) for a in self.argv())


DEFAULT_TRANSFORMS = (TransformStep("dedup"), TransformStep("prune"))


@dataclass
class Job:
    id: int | str
    files: list[str] = field(default_factory=list)
    output_dir: str | None = None
    output_name: str | None = None
    transforms: list[TransformStep] = field(default_factory=lambda: list(DEFAULT_TRANSFORMS))
    status: str = IDLE
    output_path: str | None = None  # set once the job starts running

    @classmethod
    def from_payload(cls, data: dict) -> "Job":
        from ..parsers.transform_spec import parse_transforms

        if "id" not in data:
            raise ValueError("Job payload is missing an id")
        return cls(
            id=data["id"],
            files=[str(f) for f in data.get("files") or []],
            output_dir=data.get("outputDir", data.get("output_dir")),
            output_name=data.get("outputName", data.get("output_name")),
            transforms=parse_transforms(data.get("transforms")),
        )

    def duplicate(self, new_id: int | str) -> "Job":
        return Job(
            id=new_id,
            files=list(self.files),
            output_dir=self.output_dir,
            output_name=self.output_name,
            transforms=list(self.transforms),
        )

    @property
    def status_label(self) -> str:
        return STATUS_LABELS.get(self.status, self.status)


def fail_unfinished(jobs: list[Job]) -> list[Job]:
    """Mark jobs still queued or running as failed after a batch aborted."""
    changed = [j for j in jobs if j.status in (PENDING, RUNNING)]
    for job in changed:
        job.status = FAILED
    return changed
