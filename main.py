# main.py
import argparse
import sys
import threading

from backend import config, logger
from backend.alert_engine import AlertEngine
from backend.monitors.battery_monitor import BatteryMonitor
from backend.notifier import Notifier
from backend.settings import ConfigError, load_settings
from backend.voice import VoiceSynthesizer


# ============================================================
#                    BACKEND CONTROLLER
# ============================================================
class BackendController:
    def __init__(self, settings, presenter=None, monitor=None, voice=None, start=True):
        self.settings = settings

        self.batmon = monitor or BatteryMonitor()
        self.voice = voice or VoiceSynthesizer()
        self.notifier = Notifier(presenter=presenter, voice=self.voice)
        self.engine = AlertEngine(settings, self.batmon, self.notifier)

        # Shared state
        self.lock = threading.Lock()
        self.latest = None
        self.running = False
        self._stop_event = threading.Event()
        self.worker_thread = None

        if start:
            self.start()

    def start(self):
        if self.running:
            return
        if not self.batmon.has_battery():
            logger.log("[BackendController] No battery detected. Alerts stay idle on this machine.", "WARNING")
        self.running = True
        self._stop_event.clear()
        self.worker_thread = threading.Thread(target=self._worker_loop, name="BatteryPoll", daemon=True)
        self.worker_thread.start()


    # ============================================================
    #                         WORKER LOOP
    # ============================================================
    def _worker_loop(self):
        while self.running:
            self.poll_once()
            # Returns early when stop() is called
            self._stop_event.wait(self.settings.poll_interval_seconds)

    def poll_once(self):
        try:
            sample = self.engine.on_tick()
            if sample is not None:
                with self.lock:
                    self.latest = sample
            return sample
        except Exception as e:
            logger.log(f"[BackendController] Error in battery monitoring loop: {e}", "ERROR")
            return None


    # ============================================================
    #                         PUBLIC METHODS
    # ============================================================
    def get_latest(self):
        with self.lock:
            return self.latest

    def get_state(self):
        return self.engine.state

    def set_presenter(self, presenter):
        self.notifier.presenter = presenter

    # ---------- Stop Worker Thread ----------
    def stop(self):
        self.running = False
        self._stop_event.set()
        if self.worker_thread is not None and self.worker_thread is not threading.current_thread():
            self.worker_thread.join(timeout=2)
        try:
            self.engine.shutdown()
        finally:
            self.voice.close()


# ============================================================
#                       MAIN APPLICATION
# ============================================================
def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="battery-manager",
        description="Reminds you to unplug at the upper charge mark and plug in at the lower one.",
    )
    parser.add_argument("--config", metavar="PATH", default=None,
                        help=f"settings JSON file (default: {config.SETTINGS_FILE})")
    parser.add_argument("--headless", action="store_true",
                        help="run without tray icon or alert windows (console + voice only)")
    return parser.parse_args(argv)


def run_headless(backend):
    logger.log("Running headless. Press Ctrl+C to exit.")
    try:
        while backend.worker_thread.is_alive():
            backend.worker_thread.join(timeout=1)
    except KeyboardInterrupt:
        logger.log("Interrupted, shutting down.")
    finally:
        backend.stop()
    return 0


def run_gui(settings):
    from PySide6 import QtWidgets
    from ui.alert_window import AlertPresenter
    from ui.tray_icon import TrayIcon

    app = QtWidgets.QApplication(sys.argv)
    app.setQuitOnLastWindowClosed(False)

    backend = BackendController(settings, start=False)
    presenter = AlertPresenter(on_dismissed=backend.notifier.dismiss)
    backend.set_presenter(presenter)

    tray = None
    if QtWidgets.QSystemTrayIcon.isSystemTrayAvailable():
        tray = TrayIcon(backend, settings)
        tray.show()
    else:
        logger.log("System tray not available; alerts will still be shown.", "WARNING")

    backend.start()
    try:
        rv = app.exec()
    finally:
        backend.stop()
        presenter.close_all()
        if tray is not None:
            tray.hide()

    return rv


def main(argv=None):
    args = parse_args(argv)
    logger.prune_old_logs()
    logger.log("Starting Battery Manager")

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        logger.log(f"Invalid configuration: {e}", "ERROR")
        return 2

    logger.log(
        f"Configuration: Upper={settings.upper_threshold}%, Lower={settings.lower_threshold}%, "
        f"Poll={settings.poll_interval_seconds}s, Voice={settings.voice_repeat_minutes}min"
    )

    if args.headless:
        return run_headless(BackendController(settings))
    return run_gui(settings)


if __name__ == "__main__":
    sys.exit(main())
