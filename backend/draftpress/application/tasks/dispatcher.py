# draftpress/application/tasks/dispatcher.py
from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List

Handler = Callable[[Dict[str, Any]], None]


class TaskDispatcher:
    """
    Runs side effects after a transaction committed.

    Each task gets its own retry policy; a failing task is logged and
    never reaches the request that triggered it.
    """

    def __init__(
        self,
        app,
        *,
        max_workers: int = 4,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        run_inline: bool = False,
    ):
        self.app = app
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self.run_inline = run_inline
        self._handlers: Dict[str, List[Handler]] = {}
        self._executor = None if run_inline else ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="draftpress-task"
        )

    def subscribe(self, event: str, handler: Handler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def dispatch(self, event: str, payload: Dict[str, Any]) -> None:
        for handler in self._handlers.get(event, []):
            self.submit(handler, payload)

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        if self.run_inline:
            self._run(fn, *args)
        else:
            self._executor.submit(self._run, fn, *args)

    def _run(self, fn, *args):
        name = getattr(fn, "__name__", repr(fn))
        with self.app.app_context():
            for attempt in range(1, self.max_attempts + 1):
                try:
                    fn(*args)
                    return True
                except Exception as exc:
                    if attempt == self.max_attempts:
                        self.app.logger.error(f"Task {name} failed after {attempt} attempts: {exc}")
                        return False
                    self.app.logger.warning(f"Task {name} attempt {attempt} failed: {exc}")
                    time.sleep(self.backoff_seconds * attempt)
        return False

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
