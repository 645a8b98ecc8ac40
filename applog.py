# applog.py
# Logging for Medminder: in-memory ring buffer (shown in the app's log dialog)
# plus an append-only log file under the app data directory.

import os, uuid, logging
from pathlib import Path
from threading import RLock
from typing import List, Optional

LOG_MAX_LINES = 800
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

_LOG_LOCK = RLock()

# -------------------------
# Paths
# -------------------------
def _is_writable_dir(p: Path) -> bool:
    try:
        p.mkdir(parents=True, exist_ok=True)
        t = p / f".writetest.{uuid.uuid4().hex}"
        t.write_text("ok", encoding="utf-8")
        t.unlink(missing_ok=True)
        return True
    except Exception:
        return False

def app_base_dir() -> Path:
    p = os.environ.get("ANDROID_PRIVATE")
    if p:
        d = Path(p) / "medminder_data"
        if _is_writable_dir(d):
            return d

    d = Path(__file__).resolve().parent / "medminder_data"
    d.mkdir(parents=True, exist_ok=True)
    return d

# -------------------------
# Logging ring buffer
# -------------------------
class RingLog:
    def __init__(self, max_lines=LOG_MAX_LINES):
        self.max_lines = int(max_lines)
        self._lines = []
        self._lock = RLock()

    def add(self, line: str):
        line = (line or "").rstrip("\n")
        if not line:
            return
        with self._lock:
            self._lines.append(line)
            if len(self._lines) > self.max_lines:
                self._lines = self._lines[-self.max_lines:]

    def lines(self) -> List[str]:
        with self._lock:
            return list(self._lines)

    def text(self) -> str:
        with self._lock:
            return "\n".join(self._lines)

    def clear(self):
        with self._lock:
            self._lines = []

RING = RingLog()

class FileAndRingHandler(logging.Handler):
    """Formats each record once, keeps it in the ring, appends it to log_path.

    File write errors are ignored; the ring always gets the line.
    """

    def __init__(self, log_path: Optional[Path] = None, ring: Optional[RingLog] = None):
        super().__init__()
        self.log_path = log_path
        self.ring = ring if ring is not None else RING
        self._fmt = logging.Formatter(LOG_FORMAT)

    def emit(self, record):
        try:
            msg = self._fmt.format(record)
        except Exception:
            msg = str(record.getMessage())
        self.ring.add(msg)
        if self.log_path is None:
            return
        try:
            with _LOG_LOCK:
                self.log_path.parent.mkdir(parents=True, exist_ok=True)
                with self.log_path.open("a", encoding="utf-8") as f:
                    f.write(msg + "\n")
        except Exception:
            pass

logger = logging.getLogger("medminder")
logger.setLevel(logging.INFO)

def setup_logging(log_path: Optional[Path] = None, ring: Optional[RingLog] = None) -> FileAndRingHandler:
    for h in logger.handlers:
        if isinstance(h, FileAndRingHandler):
            return h
    handler = FileAndRingHandler(log_path, ring)
    logger.addHandler(handler)
    return handler

def clear_log(log_path: Optional[Path] = None, ring: Optional[RingLog] = None):
    (ring if ring is not None else RING).clear()
    if log_path is None:
        return
    with _LOG_LOCK:
        try:
            log_path.unlink(missing_ok=True)
        except OSError:
            logger.exception("log file removal failed")

def run_logged(action, *args):
    """Call action(*args) from a UI callback; failures go to the log, not up the event loop."""
    try:
        return action(*args)
    except Exception:
        logger.exception(f"{getattr(action, '__name__', action)} failed")
        return None
