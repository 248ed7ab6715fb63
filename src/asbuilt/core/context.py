"""Job and user context records consumed by the wizard.

Jobs and users carry different optional fields per utility. Known fields are
typed; anything else lands in ``extras`` and stays reachable by key.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

# camelCase wire key -> attribute name
_JOB_FIELDS: dict[str, str] = {
    "_id": "job_id",
    "id": "job_id",
    "jobId": "job_id",
    "pmNumber": "pm_number",
    "notificationNumber": "notification_number",
    "woNumber": "wo_number",
    "orderType": "order_type",
    "description": "description",
    "ecTagItemType": "ec_tag_item_type",
    "address": "address",
    "city": "city",
    "division": "division",
    "jobScope": "job_scope",
}

_USER_FIELDS: dict[str, str] = {
    "_id": "user_id",
    "id": "user_id",
    "userId": "user_id",
    "name": "name",
    "email": "email",
    "username": "username",
    "lanId": "lan_id",
    "employeeId": "employee_id",
}


def _split_known(
    data: Mapping[str, Any], known: dict[str, str]
) -> tuple[dict[str, Any], dict[str, Any]]:
    attrs: dict[str, Any] = {}
    extras: dict[str, Any] = {}
    attr_names = set(known.values())
    for key, value in data.items():
        if key in known:
            attrs.setdefault(known[key], value)
        elif key in attr_names:
            attrs.setdefault(key, value)
        else:
            extras[key] = value
    return attrs, extras


def as_text(value: Any) -> str | None:
    """String form of a scalar field for matching; None for empty or nested values."""
    if value is None or isinstance(value, (Mapping, list, tuple, set)):
        return None
    return str(value)


# Known fields keep the value as it arrived: a PM number may be an int and a
# division may be a nested record.
@dataclass(frozen=True)
class JobContext:
    job_id: Any = None
    pm_number: Any = None
    notification_number: Any = None
    wo_number: Any = None
    order_type: Any = None
    description: Any = None
    ec_tag_item_type: Any = None
    address: Any = None
    city: Any = None
    division: Any = None
    job_scope: Any = None  # 'OH', 'UG' or None for both
    extras: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        """Look up a field by wire name, attribute name or extras key."""
        attr = _JOB_FIELDS.get(key, key)
        if attr != "extras" and attr in self.__dataclass_fields__:
            return getattr(self, attr)
        return self.extras.get(key)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> JobContext:
        attrs, extras = _split_known(data or {}, _JOB_FIELDS)
        return cls(**attrs, extras=extras)


@dataclass(frozen=True)
class UserContext:
    user_id: Any = None
    name: Any = None
    email: Any = None
    username: Any = None
    lan_id: Any = None
    employee_id: Any = None
    extras: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        attr = _USER_FIELDS.get(key, key)
        if attr != "extras" and attr in self.__dataclass_fields__:
            return getattr(self, attr)
        return self.extras.get(key)

    def derived_lan_id(self) -> str | None:
        """LAN ID, else username, else the email local part, else the name."""
        for candidate in (self.lan_id, self.username):
            if as_text(candidate):
                return as_text(candidate)
        email = as_text(self.email)
        if email and email.split("@")[0]:
            return email.split("@")[0]
        return as_text(self.name) or None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> UserContext:
        attrs, extras = _split_known(data or {}, _USER_FIELDS)
        return cls(**attrs, extras=extras)


@dataclass(frozen=True)
class LaborEntry:
    """One worker's hours from the labor/material/equipment sheet."""

    st_hours: float = 0.0
    ot_hours: float = 0.0
    dt_hours: float = 0.0

    @property
    def total(self) -> float:
        return self.st_hours + self.ot_hours + self.dt_hours

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LaborEntry:
        def _hours(camel: str, snake: str) -> float:
            value = data.get(camel, data.get(snake))
            try:
                return float(value) if value is not None else 0.0
            except (TypeError, ValueError):
                return 0.0

        return cls(
            st_hours=_hours("stHours", "st_hours"),
            ot_hours=_hours("otHours", "ot_hours"),
            dt_hours=_hours("dtHours", "dt_hours"),
        )


@dataclass(frozen=True)
class WizardContext:
    """Everything the wizard reads about the job being closed out."""

    job: JobContext | None = None
    user: UserContext | None = None
    timesheet_hours: float | None = None
    labor: tuple[LaborEntry, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> WizardContext:
        data = data or {}
        job = data.get("job")
        user = data.get("user")

        hours = data.get("timesheetHours", data.get("timesheet_hours"))
        if hours is None and isinstance(data.get("timesheet"), Mapping):
            hours = data["timesheet"].get("totalHours")
        try:
            timesheet_hours = float(hours) if hours is not None else None
        except (TypeError, ValueError):
            timesheet_hours = None

        labor_raw = data.get("labor") or ()
        labor = tuple(
            LaborEntry.from_dict(entry) for entry in labor_raw if isinstance(entry, Mapping)
        )

        return cls(
            job=JobContext.from_dict(job) if isinstance(job, Mapping) else None,
            user=UserContext.from_dict(user) if isinstance(user, Mapping) else None,
            timesheet_hours=timesheet_hours,
            labor=labor,
        )


def as_context(context: WizardContext | Mapping[str, Any] | None) -> WizardContext:
    """Accept either a typed context or its JSON-shaped mapping."""
    if isinstance(context, WizardContext):
        return context
    return WizardContext.from_dict(context)
