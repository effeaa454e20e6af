# backend/monitors/battery_monitor.py
from collections import namedtuple

import psutil

from .. import logger


READ_ERROR = -1


class BatterySample(namedtuple("BatterySample", ["percentage", "ac_connected"])):
    """
    One battery reading.
        percentage   (0-100, or -1 when the read failed)
        ac_connected (bool)
    """
    __slots__ = ()

    @property
    def is_valid(self):
        return 0 <= self.percentage <= 100


class BatteryMonitor:
    """
    Reads charge percentage and AC state through psutil.

    sample() never raises: a failed read comes back as percentage -1.
    A machine without a battery reports 100% on AC so desktops never alert.
    """

    def __init__(self, sensors=None):
        # psutil.sensors_battery by default, swappable for tests
        self._sensors = sensors or psutil.sensors_battery

    def has_battery(self):
        try:
            return self._sensors() is not None
        except Exception as e:
            logger.log(f"[BatteryMonitor] sensors_battery error: {e}", "ERROR")
            return False

    def sample(self):
        try:
            sb = self._sensors()
        except Exception as e:
            logger.log(f"[BatteryMonitor] sensors_battery error: {e}", "ERROR")
            return BatterySample(READ_ERROR, True)

        if sb is None:
            logger.log("[BatteryMonitor] No battery detected. Reporting 100% on AC.", "DEBUG")
            return BatterySample(100, True)

        try:
            pct = int(round(float(sb.percent)))
        except (TypeError, ValueError) as e:
            logger.log(f"[BatteryMonitor] Invalid percent {sb.percent!r}: {e}", "ERROR")
            return BatterySample(READ_ERROR, True)

        pct = max(0, min(100, pct))

        # power_plugged is None when the platform can't tell; assume AC
        plugged = sb.power_plugged
        ac = True if plugged is None else bool(plugged)

        logger.log(f"[BatteryMonitor] Battery: {pct}%, AC: {ac}", "DEBUG")
        return BatterySample(pct, ac)
