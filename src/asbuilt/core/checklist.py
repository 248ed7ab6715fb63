"""Completion checklist (CCSC) evaluation.

Sections are keyed by code ('OH', 'UG'); a job scope of None shows both.
Checked items are tracked per section as sets of item numbers.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from asbuilt.core.logging import get_logger
from asbuilt.core.models import Checklist, ChecklistItem, ChecklistSection
from asbuilt.core.validation import ValidationResult

_logger = get_logger(__name__)

MSG_CREW_LEAD_SIGNATURE = "Crew lead signature required"
MSG_SUPERVISOR_SIGNATURE = "Supervisor signature required"
MSG_COMMENTS_REQUIRED = "Checklist comments required"

CheckedItems = Mapping[str, Iterable[int]]


def applicable_items(section: ChecklistSection, job_scope: str | None) -> list[ChecklistItem]:
    """Items of a section that apply to the job scope.

    Items without scopes apply everywhere; no job scope means every item.
    """
    if not job_scope:
        return list(section.items)
    return [
        item
        for item in section.items
        if not item.applicable_scopes or job_scope in item.applicable_scopes
    ]


def visible_sections(checklist: Checklist | None, job_scope: str | None) -> list[ChecklistSection]:
    if checklist is None:
        return []
    if not job_scope:
        return list(checklist.sections)
    return [section for section in checklist.sections if section.code == job_scope]


def check_all(section: ChecklistSection, job_scope: str | None = None) -> set[int]:
    """Item numbers that mark every applicable item of a section checked."""
    return {item.number for item in applicable_items(section, job_scope)}


def _checked_for(checked: CheckedItems, code: str) -> set[int]:
    return set(checked.get(code) or ())


def evaluate_checklist(
    checklist: Checklist | None,
    checked: CheckedItems,
    job_scope: str | None = None,
    *,
    signed: bool = False,
    supervisor_signed: bool = False,
    comments: str | None = None,
) -> ValidationResult:
    """Evaluate checked items before the checklist step may complete.

    Per visible section: unchecked safety-critical items give one error;
    otherwise unchecked items give one warning. Missing crew lead or
    supervisor signatures and blank comments are errors when the checklist
    requires them.

    Args:
        checklist: Checklist definition (None yields a valid empty result)
        checked: Section code -> checked item numbers
        job_scope: 'OH', 'UG' or None for both
        signed: Whether the crew lead signature was captured
        supervisor_signed: Whether the supervisor signature was captured
        comments: Free-text checklist comments

    Returns:
        ValidationResult
    """
    errors: list[str] = []
    warnings: list[str] = []
    if checklist is None:
        return ValidationResult()

    for section in visible_sections(checklist, job_scope):
        done = _checked_for(checked, section.code)
        unchecked = [i for i in applicable_items(section, job_scope) if i.number not in done]
        critical = [i for i in unchecked if i.safety_critical]
        if critical:
            errors.append(f"{section.label}: {len(critical)} safety-critical item(s) not checked")
        elif unchecked:
            warnings.append(f"{section.label}: {len(unchecked)} item(s) not checked")

    if checklist.requires_crew_lead_signature and not signed:
        errors.append(MSG_CREW_LEAD_SIGNATURE)
    if checklist.requires_supervisor_signature and not supervisor_signed:
        errors.append(MSG_SUPERVISOR_SIGNATURE)
    if checklist.requires_comments and not str(comments or "").strip():
        errors.append(MSG_COMMENTS_REQUIRED)

    _logger.debug(f"Checklist {checklist.form_id}: errors={len(errors)} warnings={len(warnings)}")
    return ValidationResult(errors=errors, warnings=warnings)


def checklist_progress(
    checklist: Checklist | None, checked: CheckedItems, job_scope: str | None = None
) -> int:
    """Percent of visible items checked, rounded."""
    total = 0
    done = 0
    for section in visible_sections(checklist, job_scope):
        numbers = {item.number for item in section.items}
        total += len(numbers)
        done += len(_checked_for(checked, section.code) & numbers)
    return round(done / total * 100) if total else 0


def checklist_data(
    checklist: Checklist,
    checked: CheckedItems,
    job_scope: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Captured data for the checklist step.

    Keyword arguments (pmNumber, comments, signatureData, ...) are carried
    through unchanged.
    """
    sections: dict[str, Any] = {}
    for section in visible_sections(checklist, job_scope):
        done = _checked_for(checked, section.code)
        sections[section.code] = {
            "items": [
                {
                    "number": item.number,
                    "text": item.text,
                    "checked": item.number in done,
                    "safetyCritical": item.safety_critical,
                }
                for item in section.items
            ],
            "allChecked": all(item.number in done for item in section.items),
        }
    return {
        "formId": checklist.form_id,
        "formName": checklist.form_name,
        **extra,
        "sections": sections,
    }
