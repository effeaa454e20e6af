import pytest

from backend import config
from backend.monitors.battery_monitor import BatterySample
from backend.settings import Settings


@pytest.fixture(autouse=True)
def _isolated_logs(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "LOGS_DIR", str(tmp_path / "logs"))


class FakeMonitor:
    """Returns scripted samples; the last one repeats."""

    def __init__(self, *samples, battery=True):
        self.samples = list(samples)
        self.battery = battery

    def has_battery(self):
        return self.battery

    def push(self, percentage, ac_connected):
        self.samples.append(BatterySample(percentage, ac_connected))

    def sample(self):
        if len(self.samples) > 1:
            return self.samples.pop(0)
        return self.samples[0]


class RecordingNotifier:
    def __init__(self):
        self.calls = []
        self.handlers = {}

    def show(self, tag, text):
        self.calls.append(("show", tag.value, text))

    def remove(self, tag):
        self.calls.append(("remove", tag.value))

    def speak(self, text):
        self.calls.append(("speak", text))

    def cancel_speech(self):
        self.calls.append(("cancel_speech",))

    def register_dismiss_handler(self, tag, handler):
        self.handlers[tag.value] = handler

    def dismiss(self, tag):
        self.handlers[tag](tag)

    def named(self, name):
        return [c for c in self.calls if c[0] == name]

    def clear(self):
        self.calls.clear()


class FakeRepeater:
    def __init__(self, action, interval, name=None):
        self.action = action
        self.interval = interval
        self.starts = []
        self.cancels = 0
        self.message = None

    def start(self, message, fire_now=True):
        self.starts.append((message, fire_now))
        self.message = message
        if fire_now:
            self.action(message)

    def cancel(self):
        self.cancels += 1
        self.message = None

    def fire(self):
        if self.message is not None:
            self.action(self.message)


@pytest.fixture
def settings():
    return Settings(upper_threshold=80, lower_threshold=20,
                    poll_interval_seconds=1, voice_repeat_minutes=1)


@pytest.fixture
def monitor():
    return FakeMonitor(BatterySample(50, True))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def repeaters():
    return []


@pytest.fixture
def engine(settings, monitor, notifier, repeaters):
    from backend.alert_engine import AlertEngine

    def factory(action, interval, name=None):
        r = FakeRepeater(action, interval, name)
        repeaters.append(r)
        return r

    return AlertEngine(settings, monitor, notifier, repeater_factory=factory)
