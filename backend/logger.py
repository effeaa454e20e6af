import datetime
import glob
import os
from . import config

def _ensure_logs_dir():
    d = config.LOGS_DIR
    if not os.path.exists(d):
        os.makedirs(d, exist_ok=True)

def _get_today_log_file():
    """logs/battery-manager-YYYY-MM-DD.log"""
    today = datetime.date.today().strftime("%Y-%m-%d")
    return os.path.join(config.LOGS_DIR, f"{config.LOG_FILE_PREFIX}{today}.log")

def log(msg, level="INFO"):
    level = level.upper()
    if level == "DEBUG" and not config.DEBUG:
        return
    ts = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    line = f"[{ts}] [{level}] {msg}"
    print(line)
    try:
        _ensure_logs_dir()
        with open(_get_today_log_file(), "a", encoding="utf-8") as f:
            f.write(line + "\n")
    except Exception:
        pass

def prune_old_logs(keep=None):
    """
    Delete daily log files beyond the newest `keep` (default LOG_RETAIN_DAYS).
    Returns the list of removed paths.
    """
    keep = config.LOG_RETAIN_DAYS if keep is None else keep
    pattern = os.path.join(config.LOGS_DIR, f"{config.LOG_FILE_PREFIX}*.log")
    # Date-stamped names sort chronologically
    files = sorted(glob.glob(pattern), reverse=True)
    removed = []
    for path in files[keep:]:
        try:
            os.remove(path)
            removed.append(path)
        except OSError as e:
            log(f"[logger] Failed to remove old log {path}: {e}", "WARNING")
    return removed
