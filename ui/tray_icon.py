# ui/tray_icon.py
from PySide6 import QtCore, QtGui, QtWidgets

from backend import config, logger


# -----------------------------------------------------
#                 ICON TEXT / COLOR RULES
# -----------------------------------------------------
RED = "#ff0000"
LIME_GREEN = "#32cd32"
WHITE = "#ffffff"
BOLT_YELLOW = "#ffff00"

# Lightning bolt in the top-right corner of the 64x64 icon
BOLT_SEGMENTS = [(50, 8, 44, 16), (44, 16, 48, 16), (48, 16, 42, 24)]


def level_color(percentage, lower_threshold, upper_threshold):
    """Red at/below the low mark, green at/above the high mark, white otherwise."""
    if percentage <= lower_threshold:
        return RED
    if percentage >= upper_threshold:
        return LIME_GREEN
    return WHITE


def tooltip_text(percentage, ac_connected):
    if percentage is None:
        return f"{config.APP_NAME} - reading battery..."
    status = "charging" if ac_connected else "on battery"
    return f"{config.APP_NAME} - {percentage}% ({status})"


# -----------------------------------------------------
#                    SYSTEM TRAY ICON
# -----------------------------------------------------
class TrayIcon(QtWidgets.QSystemTrayIcon):
    """Battery percentage drawn as the tray icon, refreshed from the backend."""

    ICON_SIZE = 64

    def __init__(self, backend, settings, parent=None):
        super().__init__(parent)
        self.backend = backend
        self.settings = settings
        self._last = None

        self.setContextMenu(self._build_menu())
        self.setToolTip(tooltip_text(None, True))
        self.setIcon(self._render_icon("--", WHITE))
        self.activated.connect(self._on_activated)

        self.timer = QtCore.QTimer(self)
        self.timer.setInterval(config.TRAY_REFRESH_MS)
        self.timer.timeout.connect(self.update_from_backend)
        self.timer.start()

    def _build_menu(self):
        menu = QtWidgets.QMenu()
        title = menu.addAction(config.APP_NAME)
        title.setEnabled(False)
        menu.addSeparator()
        exit_action = menu.addAction("Exit")
        exit_action.triggered.connect(QtWidgets.QApplication.quit)
        # keep a reference, QSystemTrayIcon doesn't own the menu
        self._menu = menu
        return menu

    def _on_activated(self, reason):
        if reason != QtWidgets.QSystemTrayIcon.DoubleClick:
            return
        if self._confirm_exit():
            logger.log("[TrayIcon] Exit confirmed from tray icon")
            QtWidgets.QApplication.quit()

    def _confirm_exit(self):
        answer = QtWidgets.QMessageBox.question(
            None, "Confirm Exit", f"Exit {config.APP_NAME}?"
        )
        return answer == QtWidgets.QMessageBox.Yes

    def _render_icon(self, text, color, charging=False):
        size = self.ICON_SIZE
        pixmap = QtGui.QPixmap(size, size)
        pixmap.fill(QtCore.Qt.transparent)

        painter = QtGui.QPainter(pixmap)
        painter.setRenderHint(QtGui.QPainter.Antialiasing)
        painter.setRenderHint(QtGui.QPainter.TextAntialiasing)
        font = QtGui.QFont("Segoe UI")
        font.setBold(True)
        font.setPixelSize(int(size * (0.62 if len(text) < 3 else 0.46)))
        painter.setFont(font)
        painter.setPen(QtGui.QColor(color))
        painter.drawText(pixmap.rect(), QtCore.Qt.AlignCenter, text)

        if charging:
            pen = QtGui.QPen(QtGui.QColor(BOLT_YELLOW))
            pen.setWidth(2)
            painter.setPen(pen)
            for x1, y1, x2, y2 in BOLT_SEGMENTS:
                painter.drawLine(x1, y1, x2, y2)
        painter.end()

        return QtGui.QIcon(pixmap)

    def update_from_backend(self):
        sample = self.backend.get_latest()
        if sample is None:
            return
        key = (sample.percentage, sample.ac_connected)
        if key == self._last:
            return
        self._last = key
        self.update_battery_level(*key)

    def update_battery_level(self, percentage, ac_connected):
        try:
            color = level_color(percentage, self.settings.lower_threshold, self.settings.upper_threshold)
            self.setIcon(self._render_icon(str(percentage), color, charging=ac_connected))
            self.setToolTip(tooltip_text(percentage, ac_connected))
        except Exception as e:
            logger.log(f"[TrayIcon] Error updating tray icon: {e}", "ERROR")
