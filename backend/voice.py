# backend/voice.py
import shutil
import subprocess
import sys
import threading

from . import logger


def _powershell_command(text):
    quoted = "'" + text.replace("'", "''") + "'"
    script = (
        "Add-Type -AssemblyName System.Speech; "
        "$s = New-Object System.Speech.Synthesis.SpeechSynthesizer; "
        "$s.Volume = 100; "
        f"$s.Speak({quoted})"
    )
    return ["powershell", "-NoProfile", "-NonInteractive", "-Command", script]


def find_tts_command(platform=None, which=shutil.which):
    """
    Returns a function text -> argv for the platform's offline TTS, or None.
        Windows : PowerShell + System.Speech
        macOS   : say
        Linux   : espeak-ng / espeak / spd-say (blocking mode)
    """
    platform = platform or sys.platform

    if platform.startswith("win"):
        if which("powershell"):
            return _powershell_command
        return None

    if platform == "darwin":
        if which("say"):
            return lambda text: ["say", text]
        return None

    for exe in ("espeak-ng", "espeak"):
        if which(exe):
            return lambda text, exe=exe: [exe, text]
    if which("spd-say"):
        return lambda text: ["spd-say", "--wait", text]
    return None


class VoiceSynthesizer:
    """
    Speaks messages through an external TTS process.

    - speak() returns immediately; the utterance runs on a daemon thread.
    - Only one utterance plays at a time. A newer speak() kills the one in
      progress instead of queueing behind it.
    - cancel_speech() stops the current utterance abruptly.
    """

    def __init__(self, command=None, launcher=subprocess.Popen):
        self._command = command if command is not None else find_tts_command()
        self._launcher = launcher

        self._lock = threading.Lock()          # guards _process / _serial
        self._speech_lock = threading.Lock()   # single speaking slot
        self._process = None
        self._serial = 0
        self.enabled = self._command is not None

        if not self.enabled:
            logger.log("[VoiceSynthesizer] No text-to-speech command found. Voice alerts disabled.", "WARNING")

    def speak(self, message):
        if not self.enabled:
            return None
        with self._lock:
            self._serial += 1
            serial = self._serial
            self._kill_locked()

        t = threading.Thread(target=self._speak_worker, args=(serial, message),
                             name="VoiceSynthesizer", daemon=True)
        t.start()
        return t

    def cancel_speech(self):
        with self._lock:
            self._serial += 1
            if self._kill_locked():
                logger.log("[VoiceSynthesizer] Speech canceled", "DEBUG")

    def close(self):
        self.cancel_speech()
        self.enabled = False

    def _kill_locked(self):
        proc = self._process
        self._process = None
        if proc is None or proc.poll() is not None:
            return False
        try:
            proc.kill()
        except Exception as e:
            logger.log(f"[VoiceSynthesizer] Failed to stop speech: {e}", "ERROR")
        return True

    def _speak_worker(self, serial, message):
        with self._speech_lock:
            with self._lock:
                if serial != self._serial:
                    # superseded or canceled while waiting for the slot
                    return
                try:
                    logger.log(f"[VoiceSynthesizer] Speaking: {message}")
                    proc = self._launcher(
                        self._command(message),
                        stdout=subprocess.DEVNULL,
                        stderr=subprocess.DEVNULL,
                        creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
                    )
                except Exception as e:
                    logger.log(f"[VoiceSynthesizer] Error speaking message '{message}': {e}", "ERROR")
                    return
                self._process = proc

            try:
                proc.wait()
            except Exception as e:
                logger.log(f"[VoiceSynthesizer] Speech process error: {e}", "ERROR")
            finally:
                with self._lock:
                    if self._process is proc:
                        self._process = None
