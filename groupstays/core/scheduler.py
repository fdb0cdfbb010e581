# ================================
# BACKGROUND SCHEDULER (core/scheduler.py)
# ================================

import asyncio
import logging
from datetime import datetime, timezone, timedelta
from typing import Dict, Any, Optional, Callable, Awaitable

from groupstays.config import settings

logger = logging.getLogger(__name__)

class BackgroundScheduler:
    """Periodic asyncio tasks (claims expiry sweep)"""

    def __init__(self):
        self.tasks: Dict[str, Dict[str, Any]] = {}
        self.running = False
        self._task_handles: Dict[str, asyncio.Task] = {}

    def add_task(
        self,
        name: str,
        func: Callable[[], Awaitable[Any]],
        interval_seconds: int,
        initial_delay: int = 0,
        enabled: bool = True
    ):
        """Register a periodic task; re-registering a name replaces it"""
        self.tasks[name] = {
            "func": func,
            "interval": interval_seconds,
            "initial_delay": initial_delay,
            "enabled": enabled,
            "last_run": None,
            "next_run": None,
            "run_count": 0,
            "error_count": 0,
            "last_error": None
        }
        logger.info(f"Scheduled task '{name}' every {interval_seconds}s (enabled={enabled})")

    async def start(self):
        if self.running:
            logger.warning("Scheduler already running")
            return

        self.running = True
        for task_name, task_config in self.tasks.items():
            if task_config["enabled"]:
                self._task_handles[task_name] = asyncio.create_task(self._run_task_loop(task_name))
        logger.info(f"Background scheduler started ({len(self._task_handles)} task(s))")

    async def stop(self):
        self.running = False

        for task_handle in self._task_handles.values():
            task_handle.cancel()
            try:
                await task_handle
            except asyncio.CancelledError:
                pass

        self._task_handles.clear()
        logger.info("Background scheduler stopped")

    async def run_task(self, task_name: str) -> None:
        """Run one iteration of a task, recording stats; errors are logged, not raised"""
        task_config = self.tasks[task_name]
        start_time = datetime.now(timezone.utc)
        task_config["next_run"] = start_time + timedelta(seconds=task_config["interval"])

        try:
            await task_config["func"]()
            task_config["last_run"] = start_time
            task_config["run_count"] += 1
            duration = (datetime.now(timezone.utc) - start_time).total_seconds()
            logger.debug(f"Task '{task_name}' completed in {duration:.2f}s")
        except Exception as e:
            # The loop must survive a failed run; the next interval retries
            task_config["error_count"] += 1
            task_config["last_error"] = {"time": datetime.now(timezone.utc), "error": str(e)}
            logger.error(f"Error in scheduled task '{task_name}': {e}", exc_info=True)

    async def _run_task_loop(self, task_name: str):
        task_config = self.tasks[task_name]

        if task_config["initial_delay"] > 0:
            await asyncio.sleep(task_config["initial_delay"])

        while self.running and task_config["enabled"]:
            await self.run_task(task_name)
            await asyncio.sleep(task_config["interval"])

    def get_task_status(self, task_name: Optional[str] = None) -> Dict[str, Any]:
        if task_name:
            if task_name not in self.tasks:
                return {"error": f"Task '{task_name}' not found"}

            task = self.tasks[task_name]
            return {
                "name": task_name,
                "enabled": task["enabled"],
                "interval": task["interval"],
                "last_run": task["last_run"].isoformat() if task["last_run"] else None,
                "next_run": task["next_run"].isoformat() if task["next_run"] else None,
                "run_count": task["run_count"],
                "error_count": task["error_count"],
                "last_error": task["last_error"]
            }

        return {name: self.get_task_status(name) for name in self.tasks}

# Global scheduler instance
scheduler = BackgroundScheduler()

# ================================
# SCHEDULED TASKS
# ================================

async def expire_claims_windows():
    """Close claims windows nobody has looked at since their deadline passed"""
    from groupstays.services.claims_window_service import ClaimsWindowManager

    # Sync SQLAlchemy work stays off the event loop
    await asyncio.to_thread(ClaimsWindowManager.sweep)

# ================================
# SCHEDULER INITIALIZATION
# ================================

def initialize_scheduler():
    """Register the periodic tasks"""
    scheduler.add_task(
        name="claims_expiry_sweep",
        func=expire_claims_windows,
        interval_seconds=settings.CLAIMS_EXPIRY_SWEEP_INTERVAL_SECONDS,
        initial_delay=settings.CLAIMS_EXPIRY_SWEEP_INITIAL_DELAY,
        enabled=settings.ENABLE_CLAIMS_EXPIRY_SWEEP
    )
