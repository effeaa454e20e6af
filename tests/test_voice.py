import threading

from backend import voice
from backend.voice import VoiceSynthesizer, find_tts_command


class FakeProcess:
    def __init__(self, argv):
        self.argv = argv
        self.returncode = None
        self.killed = False
        self._done = threading.Event()

    def poll(self):
        return self.returncode

    def wait(self, timeout=None):
        self._done.wait(timeout)
        return self.returncode

    def kill(self):
        self.killed = True
        self.returncode = -9
        self._done.set()

    def finish(self):
        self.returncode = 0
        self._done.set()


class FakeLauncher:
    def __init__(self):
        self.processes = []
        self.launched = threading.Condition()

    def __call__(self, argv, **kwargs):
        with self.launched:
            proc = FakeProcess(argv)
            self.processes.append(proc)
            self.launched.notify_all()
            return proc

    def wait_for(self, count, timeout=3.0):
        with self.launched:
            return self.launched.wait_for(lambda: len(self.processes) >= count, timeout)


def make_voice():
    launcher = FakeLauncher()
    synth = VoiceSynthesizer(command=lambda text: ["tts", text], launcher=launcher)
    return synth, launcher


def test_speak_launches_tts_process():
    synth, launcher = make_voice()
    synth.speak("Battery at 80 percent.")

    assert launcher.wait_for(1)
    assert launcher.processes[0].argv == ["tts", "Battery at 80 percent."]
    launcher.processes[0].finish()


def test_cancel_speech_kills_running_process():
    synth, launcher = make_voice()
    synth.speak("hello")
    assert launcher.wait_for(1)

    synth.cancel_speech()

    assert launcher.processes[0].killed


def test_new_speak_supersedes_current_utterance():
    synth, launcher = make_voice()
    synth.speak("first")
    assert launcher.wait_for(1)

    worker = synth.speak("second")
    assert launcher.wait_for(2)

    first, second = launcher.processes
    assert first.killed
    assert second.argv == ["tts", "second"]
    second.finish()
    worker.join(timeout=3)


def test_canceled_request_never_starts():
    synth, launcher = make_voice()
    first = synth.speak("first")
    assert launcher.wait_for(1)
    launcher.processes[0].finish()
    first.join(timeout=3)

    # Hold the speaking slot so the next request must wait
    with synth._speech_lock:
        worker = synth.speak("second")
        synth.cancel_speech()
    worker.join(timeout=3)

    assert [p.argv[1] for p in launcher.processes] == ["first"]


def test_launcher_failure_is_swallowed():
    def broken(argv, **kwargs):
        raise FileNotFoundError("espeak")

    synth = VoiceSynthesizer(command=lambda text: ["espeak", text], launcher=broken)
    worker = synth.speak("hi")
    worker.join(timeout=3)
    assert not worker.is_alive()


def test_disabled_without_tts_command(monkeypatch):
    monkeypatch.setattr(voice, "find_tts_command", lambda: None)
    launcher = FakeLauncher()
    synth = VoiceSynthesizer(launcher=launcher)

    assert not synth.enabled
    assert synth.speak("hi") is None
    synth.cancel_speech()
    assert launcher.processes == []


def test_close_disables_speech():
    synth, launcher = make_voice()
    synth.close()
    assert synth.speak("hi") is None


def test_find_tts_command_per_platform():
    def which_only(*names):
        return lambda exe: f"/usr/bin/{exe}" if exe in names else None

    assert find_tts_command("darwin", which_only("say"))("hi") == ["say", "hi"]
    assert find_tts_command("linux", which_only("espeak"))("hi") == ["espeak", "hi"]
    assert find_tts_command("linux", which_only("espeak-ng", "espeak"))("hi") == ["espeak-ng", "hi"]
    assert find_tts_command("linux", which_only("spd-say"))("hi") == ["spd-say", "--wait", "hi"]
    assert find_tts_command("linux", which_only()) is None

    argv = find_tts_command("win32", which_only("powershell"))("it's 80")
    assert argv[0] == "powershell"
    assert "'it''s 80'" in argv[-1]
