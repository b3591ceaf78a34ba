import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Calls `service.refresh()` right away and then every `interval` seconds"""

    def __init__(self, service, interval: float):
        self.service = service
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name='cygaz-scheduler', daemon=True)
        self._thread.start()
        logger.info("Refresh scheduler started, interval %ss", self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def run_once(self) -> None:
        try:
            self.service.refresh()
        except Exception:
            logger.exception("Scheduled refresh failed")

    def _run(self) -> None:
        while not self._stop.is_set():
            self.run_once()
            self._stop.wait(self.interval)


_scheduler: Optional[RefreshScheduler] = None


def start_scheduler(service, interval: float) -> RefreshScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = RefreshScheduler(service, interval)
    _scheduler.start()
    return _scheduler
