"""Submission assembly for a validated as-built package."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from asbuilt.core.context import WizardContext
from asbuilt.core.errors import PreconditionError
from asbuilt.core.logging import get_logger
from asbuilt.core.models import UtilityConfiguration, WorkType
from asbuilt.core.tracker import CompletionTracker
from asbuilt.core.validation import ValidationResult

_logger = get_logger(__name__)


def _utcnow_iso() -> str:
    return datetime.now(UTC).isoformat()


def _frozen(data: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(copy.deepcopy(dict(data)))


@dataclass(frozen=True)
class Submission:
    """Final payload handed to the host's transport.

    Mappings are deep-copied on construction and exposed read-only, so later
    changes to session state or caller-owned data never reach the payload.
    """

    utility_code: str
    work_type: str
    job_id: Any
    job_identifiers: Mapping[str, Any] = field(default_factory=dict)
    step_data: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    completed_steps: Mapping[str, bool] = field(default_factory=dict)
    submitted_at: str = ""
    submitted_by: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "job_identifiers", _frozen(self.job_identifiers))
        object.__setattr__(self, "completed_steps", _frozen(self.completed_steps))
        object.__setattr__(
            self,
            "step_data",
            MappingProxyType({key: _frozen(data) for key, data in self.step_data.items()}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "utilityCode": self.utility_code,
            "workType": self.work_type,
            "jobId": self.job_id,
            "jobIdentifiers": dict(self.job_identifiers),
            "stepData": {key: copy.deepcopy(dict(data)) for key, data in self.step_data.items()},
            "completedSteps": dict(self.completed_steps),
            "submittedAt": self.submitted_at,
            "submittedBy": self.submitted_by,
        }


def assemble(
    config: UtilityConfiguration,
    work_type: WorkType,
    tracker: CompletionTracker,
    context: WizardContext,
    validation: ValidationResult,
    *,
    now: datetime | None = None,
) -> Submission:
    """Build the submission payload.

    Validation is not re-run; the caller passes the current gate result.

    Args:
        config: Utility configuration
        work_type: Selected work type
        tracker: Completion state of the session
        context: Job and user the package belongs to
        validation: Current validation result; must be valid
        now: Submission time (defaults to the wall clock, UTC)

    Returns:
        Submission

    Raises:
        PreconditionError: If the validation result is not valid
    """
    if not validation.valid:
        raise PreconditionError(
            "Cannot assemble a submission while validation errors remain",
            "Resolve: " + "; ".join(validation.errors),
        )

    job = context.job
    submitted_at = now.astimezone(UTC).isoformat() if now else _utcnow_iso()
    snapshot = tracker.to_dict()

    submission = Submission(
        utility_code=config.utility_code,
        work_type=work_type.code,
        job_id=job.job_id if job else None,
        job_identifiers={
            "pmNumber": job.pm_number if job else None,
            "notificationNumber": job.notification_number if job else None,
        },
        step_data=snapshot["stepData"],
        completed_steps=snapshot["completedSteps"],
        submitted_at=submitted_at,
        submitted_by=context.user.user_id if context.user else None,
    )
    _logger.verbose(
        f"Submission assembled: utility={submission.utility_code} "
        f"work_type={submission.work_type} job={submission.job_id}"
    )
    return submission
