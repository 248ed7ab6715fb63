"""Auto-fill resolution for document completion fields.

A field's ``autoFillFrom`` is a dotted path into the wizard context:

    today                 -> current date (MM/DD/YYYY by default)
    job.pmNumber          -> job field, typed or from the job's extras
    user.lanId            -> LAN ID, username, email local part or name
    timesheet.totalHours  -> timesheet hours

A path that cannot be resolved yields None ("no auto-fill available"); the
resolver never raises.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from asbuilt.core.config import DEFAULT_DATE_FORMAT
from asbuilt.core.context import WizardContext, as_context
from asbuilt.core.logging import get_logger
from asbuilt.core.models import DocumentCompletion

_logger = get_logger(__name__)

TODAY = "today"
HOURS_PATH = "timesheet.totalHours"

_KNOWN_PATHS: dict[str, Callable[[WizardContext], Any]] = {
    "user.lanId": lambda ctx: ctx.user.derived_lan_id() if ctx.user else None,
    HOURS_PATH: lambda ctx: ctx.timesheet_hours,
}


def _walk(value: Any, parts: list[str]) -> Any:
    current = value
    for part in parts:
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def _walk_record(record: Any, rest: str) -> Any:
    if record is None or not rest:
        return None
    head, _, tail = rest.partition(".")
    value = record.get(head)
    if value is None or not tail:
        return value
    return _walk(value, tail.split("."))


def resolve(
    path: str | None,
    context: WizardContext | Mapping[str, Any] | None,
    *,
    today: date | None = None,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> Any:
    """Resolve a dotted auto-fill path against the context.

    Args:
        path: Auto-fill source path
        context: WizardContext or its JSON-shaped mapping
        today: Date used for the 'today' source (defaults to the wall clock)
        date_format: strftime pattern for 'today'

    Returns:
        Resolved value or None
    """
    if not path:
        return None
    if path == TODAY:
        return (today or date.today()).strftime(date_format)

    ctx = as_context(context)
    known = _KNOWN_PATHS.get(path)
    if known is not None:
        return known(ctx)

    root, _, rest = path.partition(".")
    if root == "job":
        return _walk_record(ctx.job, rest)
    if root == "user":
        return _walk_record(ctx.user, rest)

    if isinstance(context, Mapping):
        return _walk(context, path.split("."))
    return None


def labor_hours(context: WizardContext | Mapping[str, Any] | None) -> tuple[float | None, str]:
    """Best available crew hours and where they came from.

    Summed labor entries (ST + OT + DT per worker) win over timesheet hours.

    Returns:
        (hours, source) where source is 'labor', 'timesheet' or 'manual'
    """
    ctx = as_context(context)
    if ctx.labor:
        return sum(entry.total for entry in ctx.labor), "labor"
    if ctx.timesheet_hours:
        return ctx.timesheet_hours, "timesheet"
    return None, "manual"


@dataclass
class AutofillResult:
    """Pre-filled values for one document section."""

    section_type: str
    values: dict[str, Any] = field(default_factory=dict)
    sources: dict[str, str] = field(default_factory=dict)
    manual_fields: list[str] = field(default_factory=list)

    @property
    def filled_ratio(self) -> float:
        total = len(self.values) + len(self.manual_fields)
        return len(self.values) / total if total else 0.0


def prefill_fields(
    document: DocumentCompletion,
    context: WizardContext | Mapping[str, Any] | None,
    *,
    today: date | None = None,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> AutofillResult:
    """Pre-fill every field of a document section that has an auto-fill source.

    Fields without a source, or whose source resolves to nothing, are listed
    in ``manual_fields``.
    """
    ctx = as_context(context)
    result = AutofillResult(section_type=document.section_type)

    for fld in document.fields:
        source = fld.auto_fill_from
        if not source:
            result.manual_fields.append(fld.name)
            continue

        if source == HOURS_PATH:
            value, origin = labor_hours(ctx)
            label = source if origin == "timesheet" else origin
        else:
            value = resolve(source, ctx, today=today, date_format=date_format)
            label = source

        if value is None:
            result.manual_fields.append(fld.name)
            continue
        result.values[fld.name] = value
        result.sources[fld.name] = label

    _logger.debug(
        f"Prefilled {document.section_type}: {sorted(result.values)} "
        f"(manual: {result.manual_fields})"
    )
    return result
