import logging
import threading
from typing import Optional

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from tasktracker.core.tokens import TokenVault

logger = logging.getLogger("tasktracker.sweeper")


class RevocationSweeper:
    """Background thread that purges expired revocation entries."""

    def __init__(self, vault: TokenVault, interval_seconds: float):
        self.vault = vault
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def sweep_once(self) -> int:
        try:
            removed = self.vault.purge_expired()
        except (SQLAlchemyError, RedisError):
            logger.exception("Revocation sweep failed")
            return 0
        if removed:
            logger.info("Purged %d expired revoked tokens", removed)
        return removed

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.sweep_once()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="revocation-sweeper", daemon=True)
        self._thread.start()
        logger.info("Revocation sweeper started (every %ss)", self.interval_seconds)

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        logger.info("Revocation sweeper stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
