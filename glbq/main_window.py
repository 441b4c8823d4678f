# glbq/main_window.py
import time
from pathlib import Path

from PySide6.QtCore import Qt, QThread
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QDialog, QFileDialog, QHBoxLayout, QHeaderView, QInputDialog, QLabel, QMainWindow,
    QPushButton, QSplitter, QTextEdit, QVBoxLayout, QWidget
)

from .dialogs.prefs import PrefsDialog
from .models.events import MergeLog, MergeResult, MergeStatus
from .models.job import IDLE, PENDING, Job, fail_unfinished
from .parsers.transform_spec import format_transforms, parse_transforms
from .utils.settings import load_settings, save_settings
from .widgets.job_tree import COL_NAME, COL_OUTPUT, JobTree
from .workers.merger import MergeQueue

class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("GLB Animation Merger")
        self.resize(980, 720)
        self.setMinimumSize(880, 600)
        self.settings = load_settings()
        save_settings(self.settings)

        self.tree = JobTree()
        self.tree.glbsDropped.connect(self._add_files_to_current)
        hdr = self.tree.header()
        hdr.setSectionResizeMode(COL_NAME, QHeaderView.Interactive)
        hdr.setSectionResizeMode(COL_OUTPUT, QHeaderView.Stretch)

        self.console = QTextEdit(); self.console.setReadOnly(True)
        self.console.setPlaceholderText("gltf-transform output will appear here…")

        self.v_split = QSplitter(Qt.Vertical)
        self.v_split.addWidget(self.tree)
        self.v_split.addWidget(self.console)
        self.v_split.setSizes([460, 260])

        self.work_label = QLabel(); self.work_label.setStyleSheet("font-weight:600;")
        self.btn_work = QPushButton("Choose Working Folder…"); self.btn_work.clicked.connect(self.choose_work_dir)
        self.btn_work_reset = QPushButton("Reset"); self.btn_work_reset.clicked.connect(self.reset_work_dir)

        self.btn_add_job = QPushButton("Add Job"); self.btn_add_job.clicked.connect(self.add_job)
        self.btn_dup = QPushButton("Duplicate"); self.btn_dup.clicked.connect(self.duplicate_job)
        self.btn_remove = QPushButton("Remove"); self.btn_remove.clicked.connect(self.remove_selected)
        self.btn_files = QPushButton("Add Files…"); self.btn_files.clicked.connect(self.pick_files)
        self.btn_clear_files = QPushButton("Clear Files"); self.btn_clear_files.clicked.connect(self.clear_files)
        self.btn_up = QPushButton("↑"); self.btn_up.clicked.connect(lambda: self.move_file(-1))
        self.btn_down = QPushButton("↓"); self.btn_down.clicked.connect(lambda: self.move_file(1))
        self.btn_out = QPushButton("Output Folder…"); self.btn_out.clicked.connect(self.choose_output_dir)
        self.btn_name = QPushButton("Output Name…"); self.btn_name.clicked.connect(self.set_output_name)
        self.btn_tf = QPushButton("Transforms…"); self.btn_tf.clicked.connect(self.edit_transforms)
        self.btn_start = QPushButton("Merge All"); self.btn_start.clicked.connect(self.start_merge)
        self.btn_clear_log = QPushButton("Clear Log"); self.btn_clear_log.clicked.connect(self.console.clear)

        work_row = QHBoxLayout()
        for w in (QLabel("Working folder:"), self.work_label, self.btn_work, self.btn_work_reset): work_row.addWidget(w)
        work_row.addStretch()
        top = QHBoxLayout()
        for b in (self.btn_add_job, self.btn_dup, self.btn_remove, self.btn_files, self.btn_clear_files, self.btn_up,
                  self.btn_down, self.btn_out, self.btn_name, self.btn_tf, self.btn_start, self.btn_clear_log):
            top.addWidget(b)
        top.addStretch()

        central = QWidget(); v = QVBoxLayout(central)
        v.addLayout(work_row); v.addLayout(top); v.addWidget(self.v_split)
        self.setCentralWidget(central)

        m = self.menuBar().addMenu("&Options")
        act_prefs = QAction("Preferences…", self); act_prefs.triggered.connect(self.open_prefs); m.addAction(act_prefs)

        self.jobs: list[Job] = []
        self._next_id = 1

        self.queue = MergeQueue(self.settings)
        self.work_thread = QThread(self); self.queue.moveToThread(self.work_thread)
        self.queue.merge_log.connect(self.on_log)
        self.queue.merge_status.connect(self.on_status)
        self.queue.batch_done.connect(self.on_batch_done)
        self.work_thread.started.connect(self.queue.run_batch)

        self._restore_layout()
        self._refresh_work_label()
        self.add_job()

    def _restore_layout(self):
        if cw := self.settings.get("col_widths"):
            if len(cw) == self.tree.columnCount():
                for i, w in enumerate(cw): self.tree.setColumnWidth(i, int(w))
        if vs := self.settings.get("v_split_sizes"): self.v_split.setSizes([int(x) for x in vs])

    def _save_layout(self):
        self.settings["col_widths"] = [self.tree.columnWidth(i) for i in range(self.tree.columnCount())]
        self.settings["v_split_sizes"] = self.v_split.sizes()
        save_settings(self.settings)

    def closeEvent(self, e):
        if self.work_thread.isRunning(): self.work_thread.quit(); self.work_thread.wait(3000)
        self._save_layout()
        super().closeEvent(e)

    def log(self, text: str, job_id=None):
        prefix = f"[Job {self._job_number(job_id) or job_id}]" if job_id is not None else "[App]"
        self.console.append(f"{time.strftime('%H:%M:%S')} {prefix} {text}")

    def _job_number(self, job_id) -> int | None:
        for n, j in enumerate(self.jobs, 1):
            if j.id == job_id: return n
        return None

    def _render(self, select: Job | None = None, file_index: int | None = None):
        self.tree.render_jobs(self.jobs, select, file_index)

    def _refresh_work_label(self):
        if wd := self.settings.get("work_dir"):
            self.work_label.setText(wd); self.work_label.setToolTip(wd)
        else:
            self.work_label.setText("Using app directory")
            self.work_label.setToolTip("The current directory will be used as the working folder.")

    def add_job(self):
        job = Job(
            id=self._next_id,
            output_dir=self.settings.get("last_output_dir"),
            transforms=self._default_transforms(),
        )
        self._next_id += 1
        self.jobs.append(job)
        self._render(select=job)

    def _default_transforms(self):
        try:
            return parse_transforms(self.settings.get("default_transforms"))
        except ValueError as e:
            self.log(f"Ignoring default transforms: {e}")
            return []

    def duplicate_job(self):
        if not (job := self.tree.current_job()): return
        clone = job.duplicate(self._next_id); self._next_id += 1
        self.jobs.insert(self.jobs.index(job) + 1, clone)
        self._render(select=clone)

    def remove_selected(self):
        if not (job := self.tree.current_job()): return
        if (idx := self.tree.current_file_index()) is not None:
            job.files.pop(idx)
        else:
            self.jobs.remove(job)
        self._render(select=job if job in self.jobs else None)

    def pick_files(self):
        if not self.tree.current_job(): return
        files, _ = QFileDialog.getOpenFileNames(self, "Pick one or more .glb files", str(Path.home()), "GLB (*.glb)")
        if files: self._add_files_to_current(files)

    def _add_files_to_current(self, files: list):
        if not (job := self.tree.current_job()):
            if not self.jobs: self.add_job()
            job = self.jobs[-1]
        for f in files:
            if f not in job.files: job.files.append(f)
        job.status = IDLE
        self._render(select=job)

    def clear_files(self):
        if job := self.tree.current_job():
            job.files.clear(); self._render(select=job)

    def move_file(self, delta: int):
        if not (job := self.tree.current_job()) or (idx := self.tree.current_file_index()) is None: return
        if 0 <= (dst := idx + delta) < len(job.files):
            job.files[idx], job.files[dst] = job.files[dst], job.files[idx]
            self._render(select=job, file_index=dst)

    def choose_output_dir(self):
        if not (job := self.tree.current_job()): return
        start = job.output_dir or self.settings.get("last_output_dir") or str(Path.home())
        if d := QFileDialog.getExistingDirectory(self, "Choose output folder", start):
            job.output_dir, job.status = d, IDLE
            self.settings["last_output_dir"] = d; save_settings(self.settings)
            self._render(select=job)

    def set_output_name(self):
        if not (job := self.tree.current_job()): return
        name, ok = QInputDialog.getText(self, "Output name", f"File name (blank = merged-{job.id}.glb):", text=job.output_name or "")
        if ok:
            job.output_name = name.strip() or None
            self._render(select=job)

    def edit_transforms(self):
        if not (job := self.tree.current_job()): return
        text, ok = QInputDialog.getText(self, "Transforms", "Comma-separated steps (blank = dedup, prune):", text=format_transforms(job.transforms))
        if not ok: return
        try:
            job.transforms = parse_transforms(text)
        except ValueError as e:
            self.log(str(e), job.id); return
        self._render(select=job)

    def choose_work_dir(self):
        start = self.settings.get("work_dir") or str(Path.cwd())
        if d := QFileDialog.getExistingDirectory(self, "Choose working folder", start):
            self.settings["work_dir"] = d; save_settings(self.settings)
            self._refresh_work_label(); self.log(f"Working folder set to {d}")
        else:
            self.log("Working folder selection canceled.")

    def reset_work_dir(self):
        if self.settings.get("work_dir"):
            self.settings["work_dir"] = None; save_settings(self.settings)
            self.log("Working folder reset to the app directory.")
        else:
            self.log("Working folder was already using the app directory.")
        self._refresh_work_label()

    def _set_busy(self, busy: bool):
        for b in (self.btn_start, self.btn_add_job, self.btn_work, self.btn_work_reset, self.btn_clear_log):
            b.setEnabled(not busy)

    def start_merge(self):
        if self.queue.is_merging() or self.work_thread.isRunning():
            self.log("A merge is already running. Please wait for it to finish."); return
        if not self.jobs:
            self.log("Add at least one job before merging."); return

        invalid = False
        for job in self.jobs:
            if not job.files:
                self.log(f"Job {self._job_number(job.id)} has no files selected.", job.id); invalid = True
            if not job.output_dir:
                self.log(f"Job {self._job_number(job.id)} has no output directory.", job.id); invalid = True
        if invalid: return

        for job in self.jobs: job.status, job.output_path = PENDING, None
        self._render()

        self.queue.settings = self.settings
        self.queue.set_batch([job.duplicate(job.id) for job in self.jobs])
        self._set_busy(True)
        self.work_thread.start()

    def on_log(self, event: MergeLog):
        for line in event.text.splitlines():
            if line.strip(): self.log(line, event.job_id)

    def on_status(self, event: MergeStatus):
        for job in self.jobs:
            if job.id == event.job_id:
                job.status = event.status
                if event.output_path: job.output_path = event.output_path
                self.tree.set_status(job)
                return

    def on_batch_done(self, result: MergeResult):
        self.work_thread.quit(); self.work_thread.wait(3000)
        if not result.ok:
            self.log(result.error or "Merge failed to start.")
            fail_unfinished(self.jobs)
            self._render()
        self._set_busy(False)

    def open_prefs(self):
        dlg = PrefsDialog(self.settings, self)
        if dlg.exec() == QDialog.Accepted:
            self.settings.update(dlg.get_values())
            save_settings(self.settings)
            self._refresh_work_label()
            self.log("Saved preferences.")
