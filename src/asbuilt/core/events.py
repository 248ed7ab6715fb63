"""Event bus for wizard hosts.

The engine performs no I/O. Hosts that persist progress, refresh a review
panel or hand a submission to a transport subscribe here instead. Each
``wizard.*`` event carries the payload typed below; handlers receive it as a
read-only mapping, so one handler cannot change what the next one sees.
"""

from __future__ import annotations

import traceback
from collections import defaultdict
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, TypedDict

from asbuilt.core.logging import get_logger

_logger = get_logger(__name__)

WORK_TYPE_SELECTED = "wizard.work_type_selected"
STEP_COMPLETED = "wizard.step_completed"
VALIDATION_CHANGED = "wizard.validation_changed"
SUBMISSION_ASSEMBLED = "wizard.submission_assembled"


class WorkTypeSelected(TypedDict):
    work_type: str
    steps: list[str]


class StepCompleted(TypedDict):
    step: str
    active_index: int


class ValidationChanged(TypedDict):
    valid: bool
    errors: list[str]
    warnings: list[str]


class SubmissionAssembled(TypedDict):
    submission: dict[str, Any]


EventPayload = WorkTypeSelected | StepCompleted | ValidationChanged | SubmissionAssembled
Handler = Callable[[Mapping[str, Any]], None]
AllHandler = Callable[[str, Mapping[str, Any]], None]


class EventBus:
    """Pub/sub bus for session events.

    Example:
        bus = EventBus()

        def on_step(data):
            store.save_progress(data["step"])

        bus.subscribe(STEP_COMPLETED, on_step)
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler]] = defaultdict(list)
        self._all_subscribers: list[AllHandler] = []

    def subscribe(self, event: str, callback: Handler) -> None:
        self._subscribers[event].append(callback)

    def unsubscribe(self, event: str, callback: Handler) -> None:
        if callback in self._subscribers.get(event, []):
            self._subscribers[event].remove(callback)

    def subscribe_all(self, callback: AllHandler) -> None:
        """Subscribe to every published event (receives event name and data)."""
        self._all_subscribers.append(callback)

    def publish(self, event: str, data: EventPayload | Mapping[str, Any] | None = None) -> None:
        """Publish an event.

        Handler exceptions are logged and never reach the publisher.
        """
        payload = MappingProxyType(dict(data or {}))
        handlers: list[tuple[Callable[..., None], tuple[Any, ...]]] = [
            (cb, (payload,)) for cb in self._subscribers.get(event, [])
        ]
        handlers.extend((cb, (event, payload)) for cb in self._all_subscribers)

        for callback, args in handlers:
            try:
                callback(*args)
            except Exception as e:
                _logger.error(
                    f"Error in handler for '{event}' (callback={callback}): "
                    f"{type(e).__name__}: {e}\n{traceback.format_exc()}"
                )

    def clear(self) -> None:
        self._subscribers.clear()
        self._all_subscribers.clear()
