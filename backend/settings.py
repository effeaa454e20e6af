# backend/settings.py
import json
import math
import os
from collections import namedtuple
from . import config, logger


class ConfigError(Exception):
    """Invalid or unreadable configuration. Fatal at startup."""


_Settings = namedtuple(
    "_Settings",
    ["upper_threshold", "lower_threshold", "poll_interval_seconds", "voice_repeat_minutes"],
)


class Settings(_Settings):
    __slots__ = ()

    def __new__(cls,
                upper_threshold=config.UPPER_THRESHOLD,
                lower_threshold=config.LOWER_THRESHOLD,
                poll_interval_seconds=config.POLL_INTERVAL_SECONDS,
                voice_repeat_minutes=config.VOICE_REPEAT_MINUTES):
        return super().__new__(cls, upper_threshold, lower_threshold,
                               poll_interval_seconds, voice_repeat_minutes)

    @property
    def voice_repeat_seconds(self):
        return float(self.voice_repeat_minutes) * 60.0


# settings.json key -> Settings field
_KEYS = {
    "upperThreshold": "upper_threshold",
    "lowerThreshold": "lower_threshold",
    "pollIntervalSeconds": "poll_interval_seconds",
    "voiceRepeatMinutes": "voice_repeat_minutes",
}

SECTION = "BatteryManager"


def _is_number(value):
    # NaN and Infinity are valid JSON for json.load but never a valid duration
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, float) and math.isfinite(value))


def validate(settings):
    """
    Raise ConfigError unless:
        0 <= lower < upper <= 100 (integers)
        1 <= poll_interval_seconds <= MAX_POLL_INTERVAL_SECONDS (finite)
        0 < voice_repeat_minutes <= MAX_VOICE_REPEAT_MINUTES (finite)
    Returns the settings unchanged.
    """
    for name in ("upper_threshold", "lower_threshold"):
        value = getattr(settings, name)
        if not isinstance(value, int) or isinstance(value, bool):
            raise ConfigError(f"{name} must be an integer, got {value!r}")
        if not 0 <= value <= 100:
            raise ConfigError(f"{name} must be within 0..100, got {value}")

    if settings.lower_threshold >= settings.upper_threshold:
        raise ConfigError(
            f"lower_threshold ({settings.lower_threshold}) must be below "
            f"upper_threshold ({settings.upper_threshold})"
        )

    if not _is_number(settings.poll_interval_seconds) \
            or not config.MIN_POLL_INTERVAL_SECONDS <= settings.poll_interval_seconds <= config.MAX_POLL_INTERVAL_SECONDS:
        raise ConfigError(
            f"poll_interval_seconds must be within {config.MIN_POLL_INTERVAL_SECONDS}.."
            f"{config.MAX_POLL_INTERVAL_SECONDS}, "
            f"got {settings.poll_interval_seconds!r}"
        )

    if not _is_number(settings.voice_repeat_minutes) \
            or not 0 < settings.voice_repeat_minutes <= config.MAX_VOICE_REPEAT_MINUTES:
        raise ConfigError(
            f"voice_repeat_minutes must be > 0 and <= {config.MAX_VOICE_REPEAT_MINUTES}, got {settings.voice_repeat_minutes!r}"
        )

    return settings


def from_dict(data):
    """
    Build validated Settings from the flat settings.json mapping, e.g.
        {"upperThreshold": 80, "lowerThreshold": 20,
         "pollIntervalSeconds": 15, "voiceRepeatMinutes": 1}
    The same keys may also be nested under {"BatteryManager": {...}}.
    """
    if not isinstance(data, dict):
        raise ConfigError("settings must be a JSON object")

    section = data.get(SECTION, data)
    if not isinstance(section, dict):
        raise ConfigError(f"'{SECTION}' must be a JSON object")

    kwargs = {}
    for key, value in section.items():
        field = _KEYS.get(key)
        if field is None:
            logger.log(f"[settings] Ignoring unknown option '{key}'", "WARNING")
            continue
        kwargs[field] = value

    return validate(Settings(**kwargs))


def load_settings(path=None):
    """
    Load settings from `path` (default config.SETTINGS_FILE).
    A missing file yields the defaults; unreadable JSON raises ConfigError.
    """
    path = path or config.SETTINGS_FILE

    if not os.path.exists(path):
        logger.log(f"[settings] {path} not found, using defaults.", "DEBUG")
        return validate(Settings())

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Failed to read settings file {path}: {e}") from e

    return from_dict(data)
