# backend/alert_engine.py
import enum
import threading
from collections import namedtuple

from . import logger
from .repeater import RepeatingTask


class AlertTag(str, enum.Enum):
    HIGH = "high_battery"
    LOW = "low_battery"


class AlertKind(enum.Enum):
    NORMAL = "Normal"
    HIGH_ALERT = "HighBatteryAlert"
    LOW_ALERT = "LowBatteryAlert"


class BatteryAlertState(namedtuple("BatteryAlertState", ["kind", "last_percentage"])):
    __slots__ = ()

    def __str__(self):
        if self.kind is AlertKind.NORMAL:
            return self.kind.value
        return f"{self.kind.value}({self.last_percentage}%)"


NORMAL = BatteryAlertState(AlertKind.NORMAL, None)

# kind -> tag of the alert it owns
_KIND_TAGS = {
    AlertKind.HIGH_ALERT: AlertTag.HIGH,
    AlertKind.LOW_ALERT: AlertTag.LOW,
}


def voice_message(kind, percentage):
    if kind is AlertKind.HIGH_ALERT:
        return f"Battery at {percentage} percent. Please power off immediately."
    return f"Battery at {percentage} percent. Please connect power immediately."


def headline(kind, percentage):
    if kind is AlertKind.HIGH_ALERT:
        return f"Battery at {percentage}%. Please power off."
    return f"Battery at {percentage}%. Please connect power."


class AlertEngine:
    """
    Alerting state machine with hysteresis.

    Normal -> HighBatteryAlert  when percentage >= upper and AC connected
    Normal -> LowBatteryAlert   when percentage <= lower and on battery
    HighBatteryAlert -> Normal  when AC disconnected or percentage < upper - 1
    LowBatteryAlert  -> Normal  when AC connected or percentage > lower + 1

    While an alert is active a percentage change refreshes the alert text,
    speaks the new message at once and restarts the voice repeat schedule.

    Dismissing an alert silences it (voice stopped, window removed) without
    leaving the alert state; only the battery readings clear it.

    on_tick(), on_dismiss() and shutdown() all run under one lock.
    """

    def __init__(self, settings, monitor, notifier, repeater_factory=RepeatingTask):
        self.settings = settings
        self.monitor = monitor
        self.notifier = notifier

        self._lock = threading.RLock()
        self._state = NORMAL
        self._voice_timer = repeater_factory(
            notifier.speak, settings.voice_repeat_seconds, name="VoiceRepeat"
        )

        for tag in AlertTag:
            notifier.register_dismiss_handler(tag, self.on_dismiss)

    @property
    def state(self):
        with self._lock:
            return self._state

    # ============================================================
    #                          TICK
    # ============================================================
    def on_tick(self):
        """
        Pull one sample and advance the state machine.
        Returns the sample, or None when the read failed (tick skipped).
        """
        try:
            sample = self.monitor.sample()
        except Exception as e:
            logger.log(f"[AlertEngine] Battery read raised: {e}", "ERROR")
            return None

        if sample is None or not sample.is_valid:
            logger.log("[AlertEngine] Invalid battery reading, skipping this cycle", "WARNING")
            return None

        pct = sample.percentage
        ac = sample.ac_connected
        upper = self.settings.upper_threshold
        lower = self.settings.lower_threshold

        with self._lock:
            previous = self._state
            kind = previous.kind
            logger.log(f"[AlertEngine] Battery: {pct}%, AC: {ac}, State: {previous}", "DEBUG")

            if kind is AlertKind.NORMAL:
                if pct >= upper and ac:
                    self._enter_alert(AlertKind.HIGH_ALERT, pct)
                elif pct <= lower and not ac:
                    self._enter_alert(AlertKind.LOW_ALERT, pct)

            elif kind is AlertKind.HIGH_ALERT:
                if not ac or pct < upper - 1:
                    self._clear("High battery condition cleared", pct, ac)
                elif pct != previous.last_percentage:
                    self._update_alert(pct)

            elif kind is AlertKind.LOW_ALERT:
                if ac or pct > lower + 1:
                    self._clear("Low battery condition cleared", pct, ac)
                elif pct != previous.last_percentage:
                    self._update_alert(pct)

            if previous.kind is not self._state.kind:
                logger.log(
                    f"[AlertEngine] State changed: {previous.kind.value} -> {self._state.kind.value} "
                    f"(Battery: {pct}%, AC: {ac})"
                )

        return sample

    def _enter_alert(self, kind, pct):
        self._state = BatteryAlertState(kind, pct)
        text = voice_message(kind, pct)
        label = "HIGH BATTERY ALERT" if kind is AlertKind.HIGH_ALERT else "LOW BATTERY ALERT"
        logger.log(f"[AlertEngine] {label}: {headline(kind, pct)}", "WARNING")

        self.notifier.show(_KIND_TAGS[kind], text)
        self._voice_timer.start(text)

    def _update_alert(self, pct):
        kind = self._state.kind
        self._state = BatteryAlertState(kind, pct)
        text = voice_message(kind, pct)
        logger.log(f"[AlertEngine] Battery changed to {pct}%. Updating alert.", "WARNING")

        # Same tag replaces the displayed content
        self.notifier.show(_KIND_TAGS[kind], text)
        # Next repeat a full interval from now
        self._voice_timer.start(text, fire_now=False)
        self.notifier.speak(text)

    def _clear(self, reason, pct, ac):
        tag = _KIND_TAGS[self._state.kind]
        logger.log(f"[AlertEngine] {reason} (Battery: {pct}%, AC: {ac})")
        self._silence()
        self.notifier.remove(tag)
        self._state = NORMAL

    def _silence(self):
        self._voice_timer.cancel()
        self.notifier.cancel_speech()

    # ============================================================
    #                        DISMISSAL
    # ============================================================
    def on_dismiss(self, tag):
        try:
            tag = AlertTag(tag)
        except ValueError:
            logger.log(f"[AlertEngine] Unknown alert tag dismissed: {tag!r}", "WARNING")
            return

        with self._lock:
            if _KIND_TAGS.get(self._state.kind) is not tag:
                logger.log(f"[AlertEngine] Ignoring dismissal of {tag.value} in state {self._state}", "DEBUG")
                return
            logger.log(f"[AlertEngine] User dismissed {tag.value} notification")
            self._silence()
            self.notifier.remove(tag)

    # ============================================================
    #                        SHUTDOWN
    # ============================================================
    def shutdown(self):
        with self._lock:
            self._silence()
            tag = _KIND_TAGS.get(self._state.kind)
            if tag is not None:
                self.notifier.remove(tag)
