# glbq/app.py
import sys

from PySide6.QtWidgets import QApplication

from .main_window import MainWindow

def main() -> int:
    app = QApplication(sys.argv)
    app.setApplicationName("GLB Animation Merger")
    win = MainWindow()
    win.show()
    return app.exec()

if __name__ == "__main__":
    sys.exit(main())
