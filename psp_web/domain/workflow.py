from __future__ import annotations

import threading
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from psp_web.domain.models import Brief, HookOption, ScriptRecord

MODE_SINGLE = "SINGLE"
MODE_MULTI_VARIANT = "MULTI_VARIANT"

DEFAULT_TTL_SECONDS = 4 * 60 * 60
DEFAULT_MAX_ENTRIES = 1000


@dataclass
class WorkflowContext:
    """
    State carried between the steps of one visitor's workflow
    (projects -> create -> hooks -> result, or projects -> history -> result).

    Every field may be absent; each page checks what it needs and sends the
    visitor back to an earlier step when it is missing.
    """
    selected_project_id: Optional[str] = None
    suggested_hooks: Optional[List[HookOption]] = None
    brief: Optional[Brief] = None
    results: Optional[List[ScriptRecord]] = None
    generation_mode: Optional[str] = None

    def store_hooks(self, brief: Brief, hooks: List[HookOption]) -> None:
        self.brief = brief
        self.suggested_hooks = list(hooks)

    def store_results(self, results: List[ScriptRecord], mode: str) -> None:
        self.results = list(results)
        self.generation_mode = mode

    def clear_generation(self) -> None:
        self.suggested_hooks = None
        self.brief = None
        self.results = None
        self.generation_mode = None

    def forget_project(self, project_id: str) -> None:
        if self.selected_project_id == project_id:
            self.selected_project_id = None


class WorkflowStore:
    """
    Keeps one WorkflowContext per browser session, keyed by an opaque id that
    lives in the (cookie) session. Results are too large for the cookie itself.

    Contexts untouched for `ttl_seconds` are dropped, and at most `max_entries`
    are kept (least recently used go first).
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._contexts: "OrderedDict[str, Tuple[float, WorkflowContext]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._contexts)

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex

    def get(self, workflow_id: str) -> WorkflowContext:
        now = self._clock()
        with self._lock:
            self._evict_expired(now)
            entry = self._contexts.pop(workflow_id, None)
            ctx = entry[1] if entry is not None else WorkflowContext()
            self._contexts[workflow_id] = (now, ctx)
            while len(self._contexts) > self.max_entries:
                self._contexts.popitem(last=False)
            return ctx

    def discard(self, workflow_id: str) -> None:
        with self._lock:
            self._contexts.pop(workflow_id, None)

    def _evict_expired(self, now: float) -> None:
        # oldest first, so stop at the first live entry
        while self._contexts:
            _key, (touched, _ctx) = next(iter(self._contexts.items()))
            if now - touched < self.ttl_seconds:
                break
            self._contexts.popitem(last=False)
