"""
Expiration Sweeper

Background worker that periodically expires active aliases whose expiry
has passed, deleting their Cloudflare rules on a best-effort basis.

Started by the application lifespan; can also run on its own:
    python -m tempalias.workers.expiration_sweeper
"""

import asyncio
import sys
import time
from dataclasses import dataclass
from typing import Optional

from tempalias.config import get_settings
from tempalias.core.clock import Clock, utcnow
from tempalias.core.exceptions import StorageError
from tempalias.core.logging import setup_logging, get_logger
from tempalias.core.metrics import (
    sweeper_runs_total,
    sweeper_duration,
    sweeper_expired_total,
    sweeper_errors_total,
)
from tempalias.db.alias_store import AliasStore
from tempalias.services.alias_service import AliasLifecycleService

logger = get_logger(__name__)


@dataclass
class SweepResult:
    """Outcome of one sweep."""
    
    found: int = 0
    expired: int = 0
    failed: int = 0


class ExpirationSweeper:
    """
    Periodic expiration of stale active aliases.
    
    One tick lists expired active aliases and expires each independently;
    a failure on one alias is logged and the tick moves on.
    """
    
    def __init__(
        self,
        store: AliasStore,
        lifecycle: AliasLifecycleService,
        interval: float = 60.0,
        clock: Clock = utcnow,
    ):
        self.store = store
        self.lifecycle = lifecycle
        self.interval = interval
        self.clock = clock
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
    
    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
    
    def start(self) -> asyncio.Task:
        """
        Start the sweep loop as a background task.
        
        Calling start on a running sweeper returns the existing task.
        """
        if self.running:
            return self._task
        
        logger.info("Starting expiration sweeper", interval_seconds=self.interval)
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="expiration-sweeper")
        return self._task
    
    async def stop(self):
        """Signal the loop to stop and wait for it to finish."""
        if self._task is None:
            return
        
        logger.info("Stopping expiration sweeper...")
        self._stop_event.set()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None
        logger.info("Expiration sweeper stopped")
    
    async def _run(self):
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception as e:
                sweeper_errors_total.inc()
                logger.error("Sweep error", error=str(e), exc_info=True)
            
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
    
    async def run_once(self) -> SweepResult:
        """
        Run a single sweep.
        
        Returns:
            SweepResult: Counts of found, expired and failed aliases
        """
        start_time = time.time()
        sweeper_runs_total.inc()
        result = SweepResult()
        
        try:
            expired_aliases = await self.store.list_expired_active(self.clock())
        except StorageError as e:
            sweeper_errors_total.inc()
            logger.error("Failed to query expired aliases", error=e.message)
            return result
        
        result.found = len(expired_aliases)
        if expired_aliases:
            logger.info("Found expired aliases", count=result.found)
        
        for alias in expired_aliases:
            try:
                await self.lifecycle.expire(alias)
                result.expired += 1
                sweeper_expired_total.inc()
            except Exception as e:
                result.failed += 1
                sweeper_errors_total.inc()
                logger.error(
                    "Failed to expire alias",
                    alias_id=alias.id,
                    address=alias.address,
                    error=str(e),
                    exc_info=True,
                )
                continue
        
        duration = time.time() - start_time
        sweeper_duration.observe(duration)
        
        if result.found:
            logger.info(
                "Sweep complete",
                expired=result.expired,
                failed=result.failed,
                duration_seconds=round(duration, 3),
            )
        return result


async def run_sweeper():
    """
    Run the sweeper without the HTTP server.
    
    Entry point for running as a standalone process.
    """
    from tempalias.dependencies import build_components
    
    settings = get_settings()
    setup_logging(settings)
    
    components = await build_components(settings)
    sweeper = components.sweeper
    
    try:
        await sweeper.start()
    finally:
        await components.close()


def main():
    try:
        asyncio.run(run_sweeper())
    except KeyboardInterrupt:
        logger.info("Sweeper stopped by user")
    except Exception as e:
        logger.error("Sweeper crashed", error=str(e), exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
