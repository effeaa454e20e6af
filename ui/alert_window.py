# ui/alert_window.py
from PySide6 import QtCore, QtWidgets

from backend import config, logger


# -----------------------------------------------------
#          ALERT WINDOWS (ONE PER TAG, NON-MODAL)
# -----------------------------------------------------
class AlertPresenter(QtCore.QObject):
    """
    Shows battery alerts as always-on-top message boxes with OK / Close.

    show() and remove() are safe to call from any thread: they are queued
    onto the GUI thread through signals. Each tag owns at most one box;
    showing an existing tag replaces its text. When the user closes a box,
    on_dismissed(tag) is called. Closing it through remove() is not a
    dismissal.
    """

    _show_requested = QtCore.Signal(str, str)
    _remove_requested = QtCore.Signal(str)

    def __init__(self, on_dismissed=None, parent=None):
        super().__init__(parent)
        self.on_dismissed = on_dismissed
        self._boxes = {}

        self._show_requested.connect(self._show_box, QtCore.Qt.QueuedConnection)
        self._remove_requested.connect(self._remove_box, QtCore.Qt.QueuedConnection)

    # ---------- thread-safe API ----------
    def show(self, tag, text):
        self._show_requested.emit(tag, text)

    def remove(self, tag):
        self._remove_requested.emit(tag)

    # ---------- GUI thread ----------
    @QtCore.Slot(str, str)
    def _show_box(self, tag, text):
        box = self._boxes.get(tag)
        if box is not None:
            box.setText(text)
            box.raise_()
            return

        box = QtWidgets.QMessageBox(
            QtWidgets.QMessageBox.Warning,
            config.APP_NAME,
            text,
            QtWidgets.QMessageBox.Ok | QtWidgets.QMessageBox.Close,
        )
        box.setWindowModality(QtCore.Qt.NonModal)
        box.setWindowFlag(QtCore.Qt.WindowStaysOnTopHint, True)
        box.setAttribute(QtCore.Qt.WA_DeleteOnClose, True)
        box.finished.connect(lambda _result, t=tag, b=box: self._on_finished(t, b))

        self._boxes[tag] = box
        box.show()
        box.raise_()
        box.activateWindow()

    @QtCore.Slot(str)
    def _remove_box(self, tag):
        box = self._boxes.pop(tag, None)
        if box is not None:
            box.done(0)

    def _on_finished(self, tag, box):
        if self._boxes.get(tag) is not box:
            # removed programmatically
            return
        del self._boxes[tag]

        if self.on_dismissed is None:
            return
        try:
            self.on_dismissed(tag)
        except Exception as e:
            logger.log(f"[AlertPresenter] dismiss callback error: {e}", "ERROR")

    def close_all(self):
        for tag in list(self._boxes):
            self._remove_box(tag)
