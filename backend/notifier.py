import threading

from .logger import log


def _tag_key(tag):
    # AlertTag members and plain strings address the same alert
    return getattr(tag, "value", tag)


class Notifier:
    """
    Delivery side of the alerts: console/log line, beep, alert window
    (through an optional presenter) and voice.

    Every method is best-effort. A failing presenter or voice backend is
    logged and never propagates to the caller.
    """

    def __init__(self, presenter=None, voice=None, beep=True):
        self.presenter = presenter
        self.voice = voice
        self.beep = beep
        self.active_tags = set()

        self._lock = threading.Lock()
        self._dismiss_handlers = {}

    # ---------- console / sound ----------
    @staticmethod
    def alert_console(msg):
        log(f"ALERT: {msg}", "WARNING")

    @staticmethod
    def alert_sound():
        try:
            import winsound
            winsound.Beep(1000, 250)
        except Exception:
            print("\a", end="", flush=True)

    # ---------- alert windows ----------
    def show(self, tag, text):
        tag = _tag_key(tag)
        self.alert_console(text)
        if self.beep:
            try:
                self.alert_sound()
            except Exception:
                pass

        with self._lock:
            self.active_tags.add(tag)

        if self.presenter is None:
            return
        try:
            self.presenter.show(tag, text)
        except Exception as e:
            log(f"[Notifier] Error showing alert '{tag}': {e}", "ERROR")

    def remove(self, tag):
        tag = _tag_key(tag)
        with self._lock:
            if tag not in self.active_tags:
                return
            self.active_tags.discard(tag)

        log(f"[Notifier] Removing alert with tag: {tag}")
        if self.presenter is None:
            return
        try:
            self.presenter.remove(tag)
        except Exception as e:
            log(f"[Notifier] Error removing alert '{tag}': {e}", "ERROR")

    # ---------- voice ----------
    def speak(self, text):
        if self.voice is None:
            return
        try:
            self.voice.speak(text)
        except Exception as e:
            log(f"[Notifier] Error speaking '{text}': {e}", "ERROR")

    def cancel_speech(self):
        if self.voice is None:
            return
        try:
            self.voice.cancel_speech()
        except Exception as e:
            log(f"[Notifier] Error canceling speech: {e}", "ERROR")

    # ---------- dismissal ----------
    def register_dismiss_handler(self, tag, handler):
        with self._lock:
            self._dismiss_handlers[_tag_key(tag)] = handler
        log(f"[Notifier] Registered dismiss handler: {_tag_key(tag)}", "DEBUG")

    def dismiss(self, tag):
        """Called by the presenter when the user closes the alert for `tag`."""
        tag = _tag_key(tag)
        log(f"[Notifier] Alert dismissed by user: {tag}")
        with self._lock:
            handler = self._dismiss_handlers.get(tag)
        if handler is None:
            return
        try:
            handler(tag)
        except Exception as e:
            log(f"[Notifier] Dismiss handler for '{tag}' failed: {e}", "ERROR")
