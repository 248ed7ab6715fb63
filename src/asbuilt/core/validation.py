"""Validation gate run before an as-built package may be submitted.

Errors block submission; warnings never do. Results are plain return values:
a failing gate is an expected, user-recoverable state, not an exception.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from asbuilt.core.logging import get_logger
from asbuilt.core.models import (
    DocumentCompletion,
    RuleKind,
    Severity,
    UtilityConfiguration,
    ValidationRule,
    WorkType,
)
from asbuilt.core.steps import CCSC, EC_TAG, SKETCH, requires_sketch
from asbuilt.core.tracker import CompletionTracker

_logger = get_logger(__name__)

MSG_WORK_TYPE_NOT_SELECTED = "Work type not selected"
MSG_EC_TAG_REQUIRED = "EC Tag completion required"
MSG_SKETCH_REQUIRED = "Construction sketch markup required"
MSG_CHECKLIST_REQUIRED = "Completion checklist required"

SKETCH_MARKUP_TARGET = "sketch_markup"
BUILT_AS_DESIGNED = "built_as_designed"


@dataclass(frozen=True)
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}


def _as_tracker(state: CompletionTracker | Mapping[str, Any] | None) -> CompletionTracker:
    if isinstance(state, CompletionTracker):
        return state
    return CompletionTracker.from_dict(state or {})


def _mandatory_step_errors(tracker: CompletionTracker, work_type: WorkType) -> list[str]:
    errors = []
    if work_type.requires(EC_TAG) and not tracker.is_complete(EC_TAG):
        errors.append(MSG_EC_TAG_REQUIRED)
    if requires_sketch(work_type) and not tracker.is_complete(SKETCH):
        errors.append(MSG_SKETCH_REQUIRED)
    if work_type.requires(CCSC) and not tracker.is_complete(CCSC):
        errors.append(MSG_CHECKLIST_REQUIRED)
    return errors


def _built_as_designed(tracker: CompletionTracker) -> bool:
    return (tracker.get_data(SKETCH) or {}).get("builtAsDesigned") is True


# rule condition -> exemption check; a rule without a condition uses built-as-designed
_EXEMPTIONS = {
    BUILT_AS_DESIGNED: _built_as_designed,
}


def _exempt(rule: ValidationRule, tracker: CompletionTracker) -> bool:
    check = _EXEMPTIONS.get(rule.condition or BUILT_AS_DESIGNED)
    return check is not None and check(tracker)


def _rule_unmet(rule: ValidationRule, tracker: CompletionTracker) -> bool:
    match rule.rule:
        case RuleKind.REQUIRED_UNLESS if rule.target == SKETCH_MARKUP_TARGET:
            return not tracker.is_complete(SKETCH) and not _exempt(rule, tracker)
        case _:
            # Other kinds and targets are not interpreted by the wizard gate.
            return False


def validate(
    state: CompletionTracker | Mapping[str, Any] | None,
    work_type: WorkType | None,
    config: UtilityConfiguration | None,
) -> ValidationResult:
    """Evaluate the submission gate.

    Rules, in order:
    1. A work type must be selected.
    2. Each mandatory step required by the work type must be complete
       (EC tag, construction sketch, completion checklist).
    3. Utility 'required_unless' rules on the sketch markup: unmet while the
       sketch is incomplete and the rule's condition (built-as-designed
       unless named otherwise) does not hold; reported by the rule's
       severity. An unrecognized condition never exempts.

    Args:
        state: Completion tracker (or its ``to_dict`` mapping)
        work_type: Selected work type or None
        config: Utility configuration or None

    Returns:
        ValidationResult; valid iff there are no errors
    """
    tracker = _as_tracker(state)
    errors: list[str] = []
    warnings: list[str] = []

    if work_type is None:
        errors.append(MSG_WORK_TYPE_NOT_SELECTED)
    else:
        errors.extend(_mandatory_step_errors(tracker, work_type))

    for rule in config.validation_rules if config else ():
        if not _rule_unmet(rule, tracker):
            continue
        if rule.severity is Severity.ERROR:
            errors.append(rule.description)
        else:
            warnings.append(rule.description)

    result = ValidationResult(errors=errors, warnings=warnings)
    _logger.debug(
        f"Validation: valid={result.valid} errors={len(errors)} warnings={len(warnings)}"
    )
    return result


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, list | tuple | dict | set):
        return len(value) == 0
    return False


def validate_fields(document: DocumentCompletion, values: Mapping[str, Any]) -> ValidationResult:
    """Check a document step's form values before the step completes.

    One error per required field left empty (``False`` counts as a value) and
    per field whose value is not one of its configured options.
    """
    errors: list[str] = []
    for fld in document.fields:
        value = values.get(fld.name)
        if _is_empty(value):
            if fld.required:
                errors.append(f"{fld.label} is required")
        elif fld.options and str(value) not in fld.options:
            errors.append(f"{fld.label} must be one of: {', '.join(fld.options)}")
    return ValidationResult(errors=errors)
