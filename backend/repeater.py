# backend/repeater.py
import math
import threading

from . import logger


class RepeatingTask:
    """
    Restartable, cancelable repeating action.

    start(message) calls action(message) right away and then once every
    `interval` seconds until cancel(). Starting again replaces the running
    schedule, so at most one schedule exists per task.

    cancel() is final for the current schedule: once it returns no further
    fire happens, even from a timer thread that was already waking up.
    """

    def __init__(self, action, interval, name="RepeatingTask"):
        if not math.isfinite(interval) or interval <= 0:
            raise ValueError("interval must be positive and finite")
        self.action = action
        self.interval = float(interval)
        self.name = name

        self._lock = threading.Lock()
        self._generation = 0
        self._stop_event = None
        self._thread = None
        self.message = None

    @property
    def running(self):
        with self._lock:
            return self._stop_event is not None

    def start(self, message, fire_now=True):
        with self._lock:
            self._cancel_locked()
            self._generation += 1
            generation = self._generation
            stop_event = threading.Event()
            self._stop_event = stop_event
            self.message = message

            self._thread = threading.Thread(
                target=self._run,
                args=(generation, stop_event, message),
                name=self.name,
                daemon=True,
            )
            self._thread.start()

        if fire_now:
            self._fire(generation, message)

    def cancel(self):
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self):
        if self._stop_event is not None:
            self._stop_event.set()
            self._stop_event = None
            self._generation += 1
            self.message = None
            logger.log(f"[{self.name}] schedule canceled", "DEBUG")

    def _run(self, generation, stop_event, message):
        # Event.wait returns True once canceled
        while not stop_event.wait(self.interval):
            self._fire(generation, message)

    def _fire(self, generation, message):
        # The action runs while holding the lock so cancel() can't return mid-fire
        with self._lock:
            if generation != self._generation:
                return
            try:
                self.action(message)
            except Exception as e:
                logger.log(f"[{self.name}] action failed: {e}", "ERROR")
