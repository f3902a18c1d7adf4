"""
Automated completion of matured investments.

A sweep finds every active investment whose end date has passed and pays it
out through ``InvestmentService.complete_if_due``. Sweeps run on a fixed
interval (driven by the ``schedule`` library inside an asyncio task), once
shortly after startup to catch investments that matured while the process was
down, and on demand from the admin API.

Only one sweep runs at a time. The guard is either a process-local flag or a
redis lock shared by every instance of the service.
"""
from datetime import datetime
from typing import Callable, Optional
import asyncio
import logging
import uuid

import schedule
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.config import settings
from app.core.database import AsyncSessionLocal, get_redis
from app.modules.investments.services import InvestmentService
from app.modules.notifications.services import InvestmentMailer, get_mailer

logger = logging.getLogger(__name__)


# ============================================================
# Sweep guards
# ============================================================

class LocalSweepGuard:
    """In-process guard; check-and-set happens without yielding to the loop"""

    def __init__(self):
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def acquire(self) -> bool:
        if self._running:
            return False
        self._running = True
        return True

    async def release(self) -> None:
        self._running = False


class RedisSweepGuard:
    """
    Guard shared across processes through a redis key.

    The key holds a per-acquisition token and expires after ``ttl`` seconds so
    a crashed holder cannot block sweeps forever.
    """

    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    end
    return 0
    """

    def __init__(self, redis_factory: Callable = get_redis, key: str = None, ttl: int = None):
        self.redis_factory = redis_factory
        self.key = key or settings.SCHEDULER_LOCK_KEY
        self.ttl = ttl or settings.SCHEDULER_LOCK_TTL_SECONDS
        self._token: Optional[str] = None

    async def acquire(self) -> bool:
        redis = await self.redis_factory()
        token = uuid.uuid4().hex
        acquired = await redis.set(self.key, token, nx=True, ex=self.ttl)
        if not acquired:
            return False
        self._token = token
        return True

    async def release(self) -> None:
        if self._token is None:
            return
        token, self._token = self._token, None
        redis = await self.redis_factory()
        await redis.eval(self.RELEASE_SCRIPT, 1, self.key, token)


def build_sweep_guard(backend: Optional[str] = None):
    backend = (backend or settings.SCHEDULER_LOCK_BACKEND).lower()
    if backend == "redis":
        return RedisSweepGuard()
    if backend == "local":
        return LocalSweepGuard()
    raise ValueError(f"Unknown scheduler lock backend: {backend}")


# ============================================================
# Scheduler
# ============================================================

class InvestmentCompletionScheduler:
    """Runs completion sweeps on a timer and on demand"""

    def __init__(
        self,
        session_factory: async_sessionmaker = AsyncSessionLocal,
        mailer: Optional[InvestmentMailer] = None,
        guard=None,
        interval_seconds: Optional[int] = None,
        initial_delay_seconds: Optional[int] = None,
        tick_seconds: float = 1.0
    ):
        self.session_factory = session_factory
        self.mailer = mailer
        self.guard = guard or build_sweep_guard()
        self.interval_seconds = interval_seconds or settings.INVESTMENT_SWEEP_INTERVAL_SECONDS
        if initial_delay_seconds is None:
            initial_delay_seconds = settings.INVESTMENT_INITIAL_SWEEP_DELAY_SECONDS
        self.initial_delay_seconds = initial_delay_seconds
        self.tick_seconds = tick_seconds

        self._jobs = schedule.Scheduler()
        self._tasks = set()
        self._runner: Optional[asyncio.Task] = None

    def _get_mailer(self) -> InvestmentMailer:
        return self.mailer or get_mailer()

    async def process_completed_investments(self, now: Optional[datetime] = None) -> Optional[int]:
        """
        One completion sweep.

        Returns how many investments were completed, or None when another
        sweep already holds the guard.
        """
        try:
            acquired = await self.guard.acquire()
        except Exception as e:
            logger.error(f"Could not acquire investment completion guard: {str(e)}")
            return None
        if not acquired:
            logger.info("Investment completion already in progress, skipping...")
            return None

        logger.info("Starting automated investment completion check...")
        completed_count = 0
        try:
            async with self.session_factory() as session:
                investment_ids = await InvestmentService(session, self._get_mailer()).get_active_investment_ids()

            logger.info(f"Found {len(investment_ids)} active investments to check")

            current_date = now or datetime.utcnow()
            for investment_id in investment_ids:
                try:
                    if await self._complete_one(investment_id, current_date):
                        completed_count += 1
                        logger.info(f"Investment {investment_id} completed successfully")
                except Exception as e:
                    logger.error(f"Error processing investment {investment_id}: {str(e)}")

            logger.info(f"Completed {completed_count} investments out of {len(investment_ids)} checked")
        except Exception as e:
            logger.error(f"Error in investment automation: {str(e)}")
        finally:
            try:
                await self.guard.release()
            except Exception as e:
                logger.error(f"Could not release investment completion guard: {str(e)}")

        return completed_count

    async def _complete_one(self, investment_id: int, current_date: datetime) -> bool:
        async with self.session_factory() as session:
            service = InvestmentService(session, self._get_mailer())
            try:
                return await service.complete_if_due(investment_id, current_date)
            except Exception:
                await session.rollback()
                raise

    async def run_manual_check(self) -> Optional[int]:
        """Operator-triggered sweep"""
        logger.info("Manual investment completion check triggered")
        return await self.process_completed_investments()

    # ============================================================
    # Timer
    # ============================================================

    def _spawn_sweep(self) -> None:
        task = asyncio.get_running_loop().create_task(self.process_completed_investments())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _initial_sweep(self) -> None:
        await asyncio.sleep(self.initial_delay_seconds)
        logger.info("Running initial investment completion check...")
        await self.process_completed_investments()

    async def _run_pending(self) -> None:
        while True:
            self._jobs.run_pending()
            await asyncio.sleep(self.tick_seconds)

    def start(self) -> None:
        """Schedule recurring sweeps plus one deferred startup sweep"""
        if self._runner is not None:
            return

        logger.info("Starting investment automation system...")
        self._jobs.every(self.interval_seconds).seconds.do(self._spawn_sweep)

        loop = asyncio.get_running_loop()
        initial = loop.create_task(self._initial_sweep())
        self._tasks.add(initial)
        initial.add_done_callback(self._tasks.discard)
        self._runner = loop.create_task(self._run_pending())

        logger.info(f"Investment automation scheduled: every {self.interval_seconds} seconds")

    async def stop(self) -> None:
        self._jobs.clear()
        tasks = list(self._tasks)
        if self._runner is not None:
            tasks.append(self._runner)
            self._runner = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("Investment automation stopped")


investment_scheduler = InvestmentCompletionScheduler()


def get_investment_scheduler() -> InvestmentCompletionScheduler:
    """Process-wide scheduler (FastAPI dependency)"""
    return investment_scheduler
