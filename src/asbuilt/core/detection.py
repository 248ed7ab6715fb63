"""Detection heuristics run before a step is shown.

These helpers guess from free-text job fields; they are not authoritative.
Equipment keyword matching favors recall: a missed category hides an
optional attribute section, an extra one only adds a section.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from asbuilt.core.context import JobContext, as_text
from asbuilt.core.logging import get_logger
from asbuilt.core.models import WorkType

_logger = get_logger(__name__)

POLE = "pole"
TRANSFORMER = "transformer"
CONDUCTOR = "conductor"
SWITCHGEAR = "switchgear"
OTHER_EQUIPMENT = "other_equipment"

# 'trans' also matches abbreviations such as "trans bank".
EQUIPMENT_KEYWORDS: dict[str, tuple[str, ...]] = {
    TRANSFORMER: ("xfmr", "transformer", "trans"),
    CONDUCTOR: ("conductor", "reconductor", "wire", "cable"),
    SWITCHGEAR: ("switch", "fuse", "recloser", "sectionalizer"),
    OTHER_EQUIPMENT: ("capacitor", "regulator", "streetlight", "riser"),
}

EC_CORRECTIVE = "ec_corrective"
ESTIMATED = "estimated"


def _job(job: JobContext | Mapping[str, Any] | None) -> JobContext | None:
    if job is None or isinstance(job, JobContext):
        return job
    return JobContext.from_dict(job)


def detect_scope(job: JobContext | Mapping[str, Any] | None) -> frozenset[str]:
    """Equipment categories relevant to a job.

    Args:
        job: Job context (or its mapping); may be None

    Returns:
        Set of categories; always contains 'pole'
    """
    scope = {POLE}
    record = _job(job)
    if record is None:
        return frozenset(scope)

    text = f"{as_text(record.description) or ''} {as_text(record.ec_tag_item_type) or ''}".lower()
    for category, keywords in EQUIPMENT_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            scope.add(category)

    _logger.debug(f"Equipment in scope for job {record.job_id}: {sorted(scope)}")
    return frozenset(scope)


def guess_work_type(
    job: JobContext | Mapping[str, Any] | None, work_types: Iterable[WorkType]
) -> WorkType | None:
    """Try to pick the work type from job data.

    Order:
    - order type equals a work type code, or appears in its label
    - notification number without PM number -> EC corrective work
    - PM number -> estimated work

    Returns:
        Matching work type or None
    """
    record = _job(job)
    candidates = list(work_types)
    if record is None or not candidates:
        return None

    def _by_code(code: str) -> WorkType | None:
        return next((wt for wt in candidates if wt.code == code), None)

    order_code = as_text(record.order_type)
    if order_code:
        order_type = order_code.lower()
        for wt in candidates:
            if wt.code == order_code or order_type in wt.label.lower():
                return wt

    if record.notification_number and not record.pm_number:
        match = _by_code(EC_CORRECTIVE)
        if match:
            return match

    if record.pm_number:
        return _by_code(ESTIMATED)

    return None
