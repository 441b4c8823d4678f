# glbq/models/events.py
from dataclasses import dataclass

INFO = "info"
OUT = "out"
ERR = "err"


@dataclass(frozen=True)
class MergeLog:
    job_id: int | str | None
    kind: str  # info / out / err
    text: str


@dataclass(frozen=True)
class MergeStatus:
    job_id: int | str
    status: str
    output_path: str | None = None


@dataclass(frozen=True)
class MergeResult:
    ok: bool
    error: str | None = None

    def as_dict(self) -> dict:
        return {"ok": True} if self.ok else {"ok": False, "error": self.error}
