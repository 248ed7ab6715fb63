"""Completion state for one wizard session."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from asbuilt.core.logging import get_logger

_logger = get_logger(__name__)


@dataclass
class CompletionTracker:
    """Step key -> completed flag, and step key -> captured data.

    Entries are written only by ``record_completion``. In-progress form data
    of the active step stays with the step renderer until it completes.
    Nothing is removed except by ``reset``.
    """

    completed: dict[str, bool] = field(default_factory=dict)
    captured: dict[str, dict[str, Any]] = field(default_factory=dict)

    def record_completion(self, key: str, data: Mapping[str, Any] | None = None) -> None:
        """Mark a step complete; re-completing overwrites the captured data.

        The data is deep-copied, so the caller may keep editing its own copy.
        """
        self.completed[key] = True
        self.captured[key] = copy.deepcopy(dict(data or {}))
        _logger.verbose(f"Step '{key}' completed")

    def is_complete(self, key: str) -> bool:
        return self.completed.get(key, False)

    def get_data(self, key: str) -> dict[str, Any] | None:
        return self.captured.get(key)

    def completed_keys(self) -> list[str]:
        return [key for key, done in self.completed.items() if done]

    def reset(self) -> None:
        self.completed.clear()
        self.captured.clear()
        _logger.debug("Completion state cleared")

    def to_dict(self) -> dict[str, Any]:
        return {
            "completedSteps": dict(self.completed),
            "stepData": copy.deepcopy(self.captured),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CompletionTracker:
        """Rebuild state saved by a host from ``to_dict`` output."""
        completed = {str(k): bool(v) for k, v in dict(data.get("completedSteps") or {}).items()}
        captured = {
            str(k): copy.deepcopy(dict(v)) for k, v in dict(data.get("stepData") or {}).items()
            if isinstance(v, Mapping)
        }
        return cls(completed=completed, captured=captured)
