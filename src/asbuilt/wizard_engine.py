"""Wizard Engine - drive one as-built completion session.

The engine is headless: step renderers (forms, checklists, PDF markup,
signature capture) live in the host. The host reads ``steps`` and
``active_step``, hands completed step data back through ``mark_complete`` (or
one of the convenience completions), and submits once ``validation`` is valid.

Example:
    wizard = AsBuiltWizard(config, {"job": job, "user": user})
    wizard.select_work_type("ec_corrective")
    wizard.mark_complete("ec_tag", ec_tag_data)
    wizard.complete_checklist({"OH": {1, 2, 3}}, signed=True)
    if wizard.validation.valid:
        submission = wizard.submit()
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from asbuilt.core.autofill import AutofillResult, prefill_fields
from asbuilt.core.checklist import checklist_data, evaluate_checklist
from asbuilt.core.config import ConfigResolver
from asbuilt.core.context import WizardContext, as_context, as_text
from asbuilt.core.detection import detect_scope, guess_work_type
from asbuilt.core.errors import (
    ConfigurationMissingError,
    PreconditionError,
    UnknownStepError,
    UnknownWorkTypeError,
)
from asbuilt.core.events import (
    STEP_COMPLETED,
    SUBMISSION_ASSEMBLED,
    VALIDATION_CHANGED,
    WORK_TYPE_SELECTED,
    EventBus,
    StepCompleted,
    SubmissionAssembled,
    ValidationChanged,
    WorkTypeSelected,
)
from asbuilt.core.logging import get_logger
from asbuilt.core.models import UtilityConfiguration, WorkType
from asbuilt.core.steps import (
    CCSC,
    REVIEW,
    SKETCH,
    WORK_TYPE,
    Step,
    compute_next_active_index,
    derive_steps,
    index_of,
    step_keys,
)
from asbuilt.core.submission import Submission, assemble
from asbuilt.core.tracker import CompletionTracker
from asbuilt.core.validation import (
    MSG_WORK_TYPE_NOT_SELECTED,
    ValidationResult,
    validate,
    validate_fields,
)

_logger = get_logger(__name__)


class AsBuiltWizard:
    """One wizard session: selected work type, completion state, active step.

    Each session owns its state; discard the session to cancel.
    """

    def __init__(
        self,
        config: UtilityConfiguration | None,
        context: WizardContext | Mapping[str, Any] | None = None,
        *,
        resolver: ConfigResolver | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        """Initialize a session.

        Args:
            config: Utility configuration for the job's utility
            context: Job/user context (typed or JSON-shaped)
            resolver: Engine settings (date format, auto-detection)
            event_bus: Bus for progress events; a private bus when omitted

        Raises:
            ConfigurationMissingError: If no configuration is available
        """
        if config is None:
            raise ConfigurationMissingError()

        self.config = config
        self.context = as_context(context)
        self.resolver = resolver or ConfigResolver()
        self.events = event_bus or EventBus()
        self.tracker = CompletionTracker()

        self._work_type: WorkType | None = None
        self._active_index = 0
        self._date_format = self.resolver.resolve_date_format()

        if self.resolver.resolve_bool("wizard.auto_detect_work_type", default=True):
            guess = guess_work_type(self.context.job, config.work_types)
            if guess is not None:
                self._work_type = guess
                _logger.verbose(f"Work type pre-selected from job data: {guess.code}")

    # ---- state ----

    @property
    def work_type(self) -> WorkType | None:
        return self._work_type

    @property
    def steps(self) -> list[Step]:
        return derive_steps(self.config, self._work_type)

    @property
    def active_index(self) -> int:
        return self._active_index

    @property
    def active_step(self) -> Step:
        return self.steps[self._active_index]

    @property
    def validation(self) -> ValidationResult:
        """Current submission gate.

        A pre-selected work type still counts as not selected until the
        work type step is completed.
        """
        result = validate(self.tracker, self._work_type, self.config)
        if self._work_type is not None and not self.tracker.is_complete(WORK_TYPE):
            return ValidationResult(
                errors=[MSG_WORK_TYPE_NOT_SELECTED, *result.errors],
                warnings=result.warnings,
            )
        return result

    @property
    def equipment_scope(self) -> frozenset[str]:
        return detect_scope(self.context.job)

    def review_items(self) -> list[dict[str, Any]]:
        """Every step but review with its completion flag."""
        return [
            {"key": step.key, "label": step.label, "complete": self.tracker.is_complete(step.key)}
            for step in self.steps
            if step.key != REVIEW
        ]

    # ---- completion ----

    def select_work_type(self, code: str) -> None:
        """Select (or confirm) the work type.

        Changing the work type clears every completion and captured value.

        Raises:
            UnknownWorkTypeError: If the code is not configured
        """
        work_type = self.config.work_type(code)
        if work_type is None:
            raise UnknownWorkTypeError(code, self.config.utility_code)

        if self._work_type is None or self._work_type.code != work_type.code:
            if self.tracker.completed_keys():
                _logger.verbose(
                    f"Work type changed to '{work_type.code}'; clearing completed steps"
                )
            self.tracker.reset()
            self._work_type = work_type

        self._active_index = index_of(self.steps, WORK_TYPE) or 0
        self.events.publish(
            WORK_TYPE_SELECTED,
            WorkTypeSelected(work_type=work_type.code, steps=step_keys(self.steps)),
        )
        self.mark_complete(
            WORK_TYPE, {"workType": work_type.code, "workTypeLabel": work_type.label}
        )

    def mark_complete(self, key: str, data: Mapping[str, Any] | None = None) -> None:
        """Record a step's completion and advance to the next step.

        Raises:
            UnknownStepError: If the key is not part of the derived steps
        """
        steps = self.steps
        if index_of(steps, key) is None:
            raise UnknownStepError(key)

        self.tracker.record_completion(key, data)
        self._active_index = compute_next_active_index(steps, self._active_index)

        self.events.publish(
            STEP_COMPLETED, StepCompleted(step=key, active_index=self._active_index)
        )
        result = self.validation
        self.events.publish(
            VALIDATION_CHANGED,
            ValidationChanged(
                valid=result.valid, errors=list(result.errors), warnings=list(result.warnings)
            ),
        )

    def mark_built_as_designed(self) -> None:
        """Complete the sketch step without markup."""
        if self._work_type is None or not self._work_type.allow_built_as_designed:
            raise PreconditionError(
                "Built As Designed is not allowed for this work type",
                "Redline/blueline the construction sketch instead",
            )
        self.mark_complete(SKETCH, {"builtAsDesigned": True})

    def record_pdf_save(
        self, key: str, document_name: str, *, saved_at: datetime | None = None
    ) -> None:
        """Complete a PDF-backed step once its pages were saved."""
        step = next((s for s in self.steps if s.key == key), None)
        if step is None:
            raise UnknownStepError(key)
        if not step.is_pdf_step:
            raise PreconditionError(f"Step '{key}' is not completed on the job package PDF")

        self.mark_complete(
            key,
            {
                "pdfSaved": True,
                "documentName": document_name,
                "savedAt": (saved_at or datetime.now(UTC)).isoformat(),
            },
        )

    def prefill(self, section_type: str) -> AutofillResult:
        """Auto-filled values for a document section; empty if not configured."""
        document = self.config.document_completion(section_type)
        if document is None:
            return AutofillResult(section_type=section_type)
        return prefill_fields(document, self.context, date_format=self._date_format)

    def complete_document(self, key: str, values: Mapping[str, Any]) -> ValidationResult:
        """Check required fields of a document step, then complete it.

        The step stays incomplete when a required field is empty.
        """
        document = self.config.document_completion(key)
        result = validate_fields(document, values) if document else ValidationResult()
        if result.valid:
            self.mark_complete(key, values)
        else:
            _logger.debug(f"Step '{key}' not completed: {result.errors}")
        return result

    def complete_checklist(
        self,
        checked: Mapping[str, Iterable[int]],
        *,
        signed: bool = False,
        supervisor_signed: bool = False,
        **extra: Any,
    ) -> ValidationResult:
        """Evaluate the completion checklist, then complete its step.

        The step stays incomplete while safety-critical items are unchecked,
        a required signature is missing or required comments are blank.
        """
        checklist = self.config.checklist
        job_scope = as_text(self.context.job.job_scope) if self.context.job else None
        result = evaluate_checklist(
            checklist,
            checked,
            job_scope,
            signed=signed,
            supervisor_signed=supervisor_signed,
            comments=extra.get("comments"),
        )
        if not result.valid:
            _logger.debug(f"Checklist not completed: {result.errors}")
            return result

        if checklist is not None:
            data = checklist_data(checklist, checked, job_scope, **extra)
        else:
            data = dict(extra)
        self.mark_complete(CCSC, data)
        return result

    # ---- navigation ----

    def go_to(self, key: str) -> None:
        index = index_of(self.steps, key)
        if index is None:
            raise UnknownStepError(key)
        self._active_index = index

    def back(self) -> None:
        self._active_index = max(0, self._active_index - 1)

    def forward(self) -> None:
        self._active_index = compute_next_active_index(self.steps, self._active_index)

    # ---- submission ----

    def submit(self, *, now: datetime | None = None) -> Submission:
        """Assemble the submission.

        Raises:
            PreconditionError: If validation errors remain
        """
        if self._work_type is None:
            raise PreconditionError(MSG_WORK_TYPE_NOT_SELECTED, "Select a work type first")

        submission = assemble(
            self.config, self._work_type, self.tracker, self.context, self.validation, now=now
        )
        self.events.publish(
            SUBMISSION_ASSEMBLED, SubmissionAssembled(submission=submission.to_dict())
        )
        return submission
