"""
Onboarding Request Service
Fire-and-forget routing dispatcher.

Post-creation routing runs outside the caller's control flow:
  - Background mode: a daemon thread per task, with its own app context
    (and therefore its own SQLAlchemy session).
  - Eager mode (``ROUTING_EAGER``): the task runs immediately in the
    calling thread, still inside a fresh app context.

In both modes a task failure is rolled back, logged and dropped. It is
never re-raised to the creator and never retried.
"""

import itertools
import logging
import threading

from flask import current_app

from app.models import db

logger = logging.getLogger(__name__)

# In-memory registry of running tasks (task_id → Thread)
_running_tasks: dict[int, threading.Thread] = {}
_task_ids = itertools.count(1)
_registry_lock = threading.Lock()


class RoutingDispatcher:
    """Hands routing work off to a background thread and isolates its failures."""

    def submit(self, fn, *args) -> int:
        """
        Schedule ``fn(*args)`` and return a task id immediately.

        Must be called inside an app context; the task gets its own.
        """
        app = current_app._get_current_object()
        task_id = next(_task_ids)

        if app.config.get("ROUTING_EAGER", False):
            self._run_with_context(app, task_id, fn, args)
            return task_id

        t = threading.Thread(
            target=self._run_with_context,
            args=(app, task_id, fn, args),
            name=f"routing-task-{task_id}",
            daemon=True,
        )
        with _registry_lock:
            _running_tasks[task_id] = t
        t.start()
        return task_id

    def pending_count(self) -> int:
        with _registry_lock:
            return len(_running_tasks)

    def wait_all(self, timeout: float | None = None) -> bool:
        """Join every in-flight task. Returns True if none is still running."""
        with _registry_lock:
            threads = list(_running_tasks.values())
        for t in threads:
            t.join(timeout)
        return self.pending_count() == 0

    # ── Internal ──────────────────────────────────────────────────────────

    def _run_with_context(self, app, task_id: int, fn, args):
        try:
            with app.app_context():
                self._run_isolated(task_id, fn, args)
        finally:
            with _registry_lock:
                _running_tasks.pop(task_id, None)

    def _run_isolated(self, task_id: int, fn, args):
        """Run one task; log and drop any failure."""
        try:
            fn(*args)
        except Exception:
            logger.exception(
                "Routing task %d failed (%s%r); request left unrouted",
                task_id, getattr(fn, "__name__", fn), args,
                extra={"event_type": "routing_failed"},
            )
            try:
                db.session.rollback()
            except Exception:
                logger.exception("Routing task %d: rollback after failure also failed", task_id)


dispatcher = RoutingDispatcher()


def dispatch_routing(request_id: str) -> int:
    """Schedule team routing for a freshly created request."""
    from app.services.routing_policy import apply_routing

    return dispatcher.submit(apply_routing, request_id)
