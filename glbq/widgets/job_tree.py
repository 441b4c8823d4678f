# glbq/widgets/job_tree.py
from pathlib import Path
from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import QAbstractItemView, QTreeWidget, QTreeWidgetItem

from ..models.job import Job
from ..parsers.transform_spec import format_transforms
from ..utils.paths import is_glb

COL_NAME, COL_OUTPUT, COL_TRANSFORMS, COL_STATUS = range(4)

class JobTree(QTreeWidget):
    """One top-level row per job, one child row per input file (first = base)."""
    glbsDropped = Signal(list)  # list[str]

    def __init__(self, *a, **kw):
        super().__init__(*a, **kw)
        self.setColumnCount(4)
        self.setHeaderLabels(["Job / File", "Output", "Transforms", "Status"])
        self.setAcceptDrops(True)
        self.setDragDropMode(QAbstractItemView.DropOnly)
        self.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.setUniformRowHeights(True)

    def dragEnterEvent(self, event):
        if event.mimeData().hasUrls(): event.acceptProposedAction()
        else: super().dragEnterEvent(event)

    def dragMoveEvent(self, event):
        if event.mimeData().hasUrls(): event.acceptProposedAction()
        else: super().dragMoveEvent(event)

    def dropEvent(self, event):
        if event.mimeData().hasUrls():
            paths = []
            for url in event.mimeData().urls():
                if url.isLocalFile() and is_glb(p := Path(url.toLocalFile())):
                    paths.append(str(p))
            if paths:
                self.glbsDropped.emit(paths)
                event.acceptProposedAction()
                return
        event.ignore()

    def current_job(self) -> Job | None:
        if not (item := self.currentItem()): return None
        if item.parent(): item = item.parent()
        job = item.data(0, Qt.UserRole)
        return job if isinstance(job, Job) else None

    def current_file_index(self) -> int | None:
        if (item := self.currentItem()) and (parent := item.parent()):
            return parent.indexOfChild(item)
        return None

    def render_jobs(self, jobs: list[Job], select: Job | None = None, file_index: int | None = None):
        self.clear()
        for n, job in enumerate(jobs, 1):
            out = job.output_name or (Path(job.output_path).name if job.output_path else "")
            where = f"{job.output_dir}/{out}" if job.output_dir and out else (job.output_dir or "Not set")
            item = QTreeWidgetItem([f"Job {n}", where, format_transforms(job.transforms), job.status_label])
            item.setData(0, Qt.UserRole, job)
            self.addTopLevelItem(item)
            if not job.files:
                ph = QTreeWidgetItem(["No files selected. Add at least one .glb file.", "", "", ""])
                ph.setDisabled(True)
                item.addChild(ph)
            for idx, f in enumerate(job.files):
                QTreeWidgetItem(item, [f"{Path(f).name}{' (base)' if idx == 0 else ''}", f, "", ""])
            item.setExpanded(True)
            if job is select:
                target = item.child(file_index) if file_index is not None and 0 <= file_index < len(job.files) else item
                self.setCurrentItem(target)

    def set_status(self, job: Job):
        for i in range(self.topLevelItemCount()):
            if (item := self.topLevelItem(i)).data(0, Qt.UserRole) is job:
                item.setText(COL_STATUS, job.status_label)
                if job.output_path: item.setText(COL_OUTPUT, job.output_path)
                return
