# glbq/dialogs/prefs.py
from PySide6.QtWidgets import (
    QCheckBox, QDialog, QDialogButtonBox, QFileDialog, QFormLayout, QHBoxLayout,
    QLabel, QLineEdit, QPushButton, QVBoxLayout
)

from ..parsers.transform_spec import format_transforms, parse_transforms

class PrefsDialog(QDialog):
    def __init__(self, settings: dict, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Preferences")
        self.settings = settings
        self.setMinimumWidth(640)

        self.tool_edit = QLineEdit(self.settings.get("gltf_transform_path") or "gltf-transform")
        btn_browse_tool = QPushButton("Browse…"); btn_browse_tool.clicked.connect(self._browse_tool)
        tool_hint = QLabel("(A bare name is looked up in <working folder>/node_modules/.bin, then PATH)")

        self.work_edit = QLineEdit(self.settings.get("work_dir") or "")
        self.work_edit.setPlaceholderText("current directory")
        btn_browse_work = QPushButton("Browse…"); btn_browse_work.clicked.connect(self._browse_work)

        self.transforms_edit = QLineEdit(self.settings.get("default_transforms") or "")
        self.transforms_edit.setPlaceholderText("e.g. dedup, prune, resample --tolerance 0.001")

        self.chk_job_log = QCheckBox("Write <name>_merge.log beside each merged file")
        self.chk_job_log.setChecked(self.settings.get("save_job_log", True))

        self.error_label = QLabel(""); self.error_label.setStyleSheet("color:#c0392b;")

        form = QFormLayout()
        row_tool = QHBoxLayout(); row_tool.addWidget(self.tool_edit); row_tool.addWidget(btn_browse_tool)
        form.addRow("gltf-transform path:", row_tool); form.addRow("", tool_hint)
        row_work = QHBoxLayout(); row_work.addWidget(self.work_edit); row_work.addWidget(btn_browse_work)
        form.addRow("Working folder:", row_work)
        form.addRow("Default transforms:", self.transforms_edit)
        form.addRow("", self.chk_job_log)
        form.addRow("", self.error_label)

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.accept); buttons.rejected.connect(self.reject)

        layout = QVBoxLayout(self); layout.addLayout(form); layout.addWidget(buttons)

    def _browse_tool(self):
        f, _ = QFileDialog.getOpenFileName(self, "Locate gltf-transform", self.tool_edit.text() or "/usr/bin", "All (*)")
        if f: self.tool_edit.setText(f)

    def _browse_work(self):
        d = QFileDialog.getExistingDirectory(self, "Choose working folder", self.work_edit.text())
        if d: self.work_edit.setText(d)

    def accept(self):
        try:
            parse_transforms(self.transforms_edit.text())
        except ValueError as e:
            self.error_label.setText(str(e))
            return
        super().accept()

    def get_values(self) -> dict:
        return {
            "gltf_transform_path": self.tool_edit.text().strip() or "gltf-transform",
            "work_dir": self.work_edit.text().strip() or None,
            "default_transforms": format_transforms(parse_transforms(self.transforms_edit.text())),
            "save_job_log": self.chk_job_log.isChecked(),
        }
