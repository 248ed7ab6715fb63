"""Utility configuration data model.

A UtilityConfiguration is supplied per utility by an external configuration
service and stays immutable for the duration of a wizard session. Documents
arrive JSON/YAML-shaped with camelCase keys (``requiredDocs``,
``autoFillFrom``); snake_case keys are accepted as well.

Only structural validation is done here. Semantic checks (unknown document
identifiers, unknown rule kinds) are tolerated and ignored downstream.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml

from asbuilt.core.config import ConfigResolver, parse_bool
from asbuilt.core.errors import ConfigurationLoadError
from asbuilt.core.logging import get_logger

_logger = get_logger(__name__)


class RuleKind(StrEnum):
    REQUIRED = "required"
    REQUIRED_UNLESS = "required_unless"
    MIN_COUNT = "min_count"
    SIGNATURE_REQUIRED = "signature_required"
    PHOTO_REQUIRED = "photo_required"
    GPS_REQUIRED = "gps_required"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> RuleKind:
        try:
            return cls(str(value))
        except ValueError:
            return cls.UNKNOWN


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"

    @classmethod
    def parse(cls, value: Any) -> Severity:
        """Only an explicit 'error' blocks; anything else is a warning."""
        if isinstance(value, str) and value.strip().lower() == cls.ERROR:
            return cls.ERROR
        return cls.WARNING


def _get(data: dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _flag(data: dict[str, Any], camel: str, snake: str, default: bool, where: str) -> bool:
    value = _get(data, camel, snake)
    if value is None:
        return default
    parsed = parse_bool(value)
    if parsed is None:
        raise ConfigurationLoadError(f"{where}.{camel} must be a boolean")
    return parsed


def _str_tuple(value: Any, where: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list | tuple):
        raise ConfigurationLoadError(f"{where} must be a list")
    return tuple(str(v) for v in value)


def _object_list(value: Any, where: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list | tuple):
        raise ConfigurationLoadError(f"{where} must be a list")
    for i, item in enumerate(value):
        if not isinstance(item, dict):
            raise ConfigurationLoadError(f"{where}[{i}] must be an object")
    return list(value)


@dataclass(frozen=True)
class WorkType:
    """One selectable classification of work; determines which steps exist."""

    code: str
    label: str
    description: str = ""
    required_docs: tuple[str, ...] = ()
    requires_sketch_markup: bool = False
    allow_built_as_designed: bool = True

    def requires(self, doc: str) -> bool:
        return doc in self.required_docs

    @classmethod
    def from_dict(cls, data: dict[str, Any], index: int = 0) -> WorkType:
        where = f"workTypes[{index}]"
        code = data.get("code")
        if not isinstance(code, str) or not code:
            raise ConfigurationLoadError(f"{where} missing valid 'code'")
        return cls(
            code=code,
            label=str(data.get("label") or code),
            description=str(data.get("description") or ""),
            required_docs=_str_tuple(
                _get(data, "requiredDocs", "required_docs"), f"{where}.requiredDocs"
            ),
            requires_sketch_markup=_flag(
                data, "requiresSketchMarkup", "requires_sketch_markup", False, where
            ),
            allow_built_as_designed=_flag(
                data, "allowBuiltAsDesigned", "allow_built_as_designed", True, where
            ),
        )


@dataclass(frozen=True)
class ChecklistItem:
    number: int
    text: str
    applicable_scopes: tuple[str, ...] = ()
    safety_critical: bool = False


@dataclass(frozen=True)
class ChecklistSection:
    code: str
    label: str
    items: tuple[ChecklistItem, ...] = ()


@dataclass(frozen=True)
class Checklist:
    """Completion checklist definition (CCSC or a utility's equivalent)."""

    form_id: str
    form_name: str
    version: str = ""
    sections: tuple[ChecklistSection, ...] = ()
    requires_crew_lead_signature: bool = True
    requires_supervisor_signature: bool = False
    requires_comments: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Checklist:
        sections: list[ChecklistSection] = []
        for i, raw in enumerate(_object_list(data.get("sections"), "checklist.sections")):
            items = []
            for j, item in enumerate(
                _object_list(raw.get("items"), f"checklist.sections[{i}].items")
            ):
                try:
                    number = int(item["number"])
                except (KeyError, TypeError, ValueError) as e:
                    raise ConfigurationLoadError(
                        f"checklist.sections[{i}].items[{j}] missing valid 'number'"
                    ) from e
                items.append(
                    ChecklistItem(
                        number=number,
                        text=str(item.get("text") or ""),
                        applicable_scopes=_str_tuple(
                            _get(item, "applicableScopes", "applicable_scopes"),
                            f"checklist.sections[{i}].items[{j}].applicableScopes",
                        ),
                        safety_critical=_flag(
                            item,
                            "safetyCritical",
                            "safety_critical",
                            False,
                            f"checklist.sections[{i}].items[{j}]",
                        ),
                    )
                )
            sections.append(
                ChecklistSection(
                    code=str(raw.get("code") or f"section_{i}"),
                    label=str(raw.get("label") or raw.get("code") or ""),
                    items=tuple(items),
                )
            )
        return cls(
            form_id=str(_get(data, "formId", "form_id", "")),
            form_name=str(_get(data, "formName", "form_name", "")),
            version=str(data.get("version") or ""),
            sections=tuple(sections),
            requires_crew_lead_signature=_flag(
                data,
                "requiresCrewLeadSignature",
                "requires_crew_lead_signature",
                True,
                "checklist",
            ),
            requires_supervisor_signature=_flag(
                data,
                "requiresSupervisorSignature",
                "requires_supervisor_signature",
                False,
                "checklist",
            ),
            requires_comments=_flag(
                data, "requiresComments", "requires_comments", False, "checklist"
            ),
        )


@dataclass(frozen=True)
class FieldDefinition:
    name: str
    label: str
    type: str = "text"
    required: bool = False
    auto_fill_from: str | None = None
    options: tuple[str, ...] = ()


@dataclass(frozen=True)
class DocumentCompletion:
    """Fields the foreman completes on one document section."""

    section_type: str
    label: str
    fields: tuple[FieldDefinition, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any], index: int = 0) -> DocumentCompletion:
        where = f"documentCompletions[{index}]"
        section_type = _get(data, "sectionType", "section_type")
        if not isinstance(section_type, str) or not section_type:
            raise ConfigurationLoadError(f"{where} missing valid 'sectionType'")
        fields: list[FieldDefinition] = []
        for j, raw in enumerate(_object_list(data.get("fields"), f"{where}.fields")):
            name = _get(raw, "fieldName", "name")
            if not isinstance(name, str) or not name:
                raise ConfigurationLoadError(f"{where}.fields[{j}] missing valid 'fieldName'")
            fields.append(
                FieldDefinition(
                    name=name,
                    label=str(raw.get("label") or name),
                    type=str(raw.get("type") or "text"),
                    required=_flag(raw, "required", "required", False, f"{where}.fields[{j}]"),
                    auto_fill_from=_get(raw, "autoFillFrom", "auto_fill_from"),
                    options=_str_tuple(raw.get("options"), f"{where}.fields[{j}].options"),
                )
            )
        return cls(
            section_type=section_type,
            label=str(data.get("label") or section_type),
            fields=tuple(fields),
        )


@dataclass(frozen=True)
class ValidationRule:
    """Utility-supplied, severity-tagged validation rule."""

    code: str
    rule: RuleKind
    target: str
    description: str
    severity: Severity = Severity.WARNING
    condition: str | None = None
    min_value: int | None = None

    @property
    def is_blocking(self) -> bool:
        return self.severity is Severity.ERROR

    @classmethod
    def from_dict(cls, data: dict[str, Any], index: int = 0) -> ValidationRule:
        min_value = _get(data, "minValue", "min_value")
        condition = data.get("condition")
        return cls(
            code=str(data.get("code") or f"rule_{index}"),
            rule=RuleKind.parse(data.get("rule")),
            target=str(data.get("target") or ""),
            description=str(data.get("description") or ""),
            severity=Severity.parse(data.get("severity")),
            condition=str(condition) if condition is not None else None,
            min_value=int(min_value) if isinstance(min_value, int | float) else None,
        )


@dataclass(frozen=True)
class UtilityConfiguration:
    """Per-utility configuration driving the as-built wizard."""

    utility_code: str
    utility_name: str = ""
    procedure_id: str = ""
    procedure_version: str = ""
    work_types: tuple[WorkType, ...] = ()
    checklist: Checklist | None = None
    document_completions: tuple[DocumentCompletion, ...] = ()
    validation_rules: tuple[ValidationRule, ...] = ()

    def work_type(self, code: str | None) -> WorkType | None:
        for wt in self.work_types:
            if wt.code == code:
                return wt
        return None

    def required_docs(self, code: str) -> tuple[str, ...]:
        wt = self.work_type(code)
        return wt.required_docs if wt else ()

    def document_completion(self, section_type: str) -> DocumentCompletion | None:
        for dc in self.document_completions:
            if dc.section_type == section_type:
                return dc
        return None

    @classmethod
    def from_dict(cls, data: Any) -> UtilityConfiguration:
        if not isinstance(data, dict):
            raise ConfigurationLoadError("Utility configuration must be an object")

        utility_code = _get(data, "utilityCode", "utility_code")
        if not isinstance(utility_code, str) or not utility_code:
            raise ConfigurationLoadError("Utility configuration missing valid 'utilityCode'")

        work_types = tuple(
            WorkType.from_dict(raw, i)
            for i, raw in enumerate(
                _object_list(_get(data, "workTypes", "work_types"), "workTypes")
            )
        )
        seen: set[str] = set()
        for wt in work_types:
            if wt.code in seen:
                raise ConfigurationLoadError(f"Duplicate work type code '{wt.code}'")
            seen.add(wt.code)

        checklist_raw = data.get("checklist")
        if checklist_raw is not None and not isinstance(checklist_raw, dict):
            raise ConfigurationLoadError("checklist must be an object")

        return cls(
            utility_code=utility_code,
            utility_name=str(_get(data, "utilityName", "utility_name", "") or ""),
            procedure_id=str(_get(data, "procedureId", "procedure_id", "") or ""),
            procedure_version=str(_get(data, "procedureVersion", "procedure_version", "") or ""),
            work_types=work_types,
            checklist=Checklist.from_dict(checklist_raw) if checklist_raw else None,
            document_completions=tuple(
                DocumentCompletion.from_dict(raw, i)
                for i, raw in enumerate(
                    _object_list(
                        _get(data, "documentCompletions", "document_completions"),
                        "documentCompletions",
                    )
                )
            ),
            validation_rules=tuple(
                ValidationRule.from_dict(raw, i)
                for i, raw in enumerate(
                    _object_list(
                        _get(data, "validationRules", "validation_rules"), "validationRules"
                    )
                )
            ),
        )


def load_utility_configuration(
    source: str | Path, resolver: ConfigResolver | None = None
) -> UtilityConfiguration | None:
    """Load a utility configuration document.

    Args:
        source: Path to a YAML/JSON document, or a utility code looked up as
            ``<wizard.configs_dir>/<code>.yaml``
        resolver: Engine settings (defaults used when omitted)

    Returns:
        The configuration, or None when no document exists for the source

    Raises:
        ConfigurationLoadError: If the document exists but is malformed
    """
    path = Path(source)
    if path.suffix.lower() not in {".yaml", ".yml", ".json"}:
        configs_dir = (resolver or ConfigResolver()).resolve_configs_dir()
        path = configs_dir / f"{source}.yaml"

    if not path.exists():
        _logger.warning(f"No as-built configuration found at {path}")
        return None

    try:
        with open(path, encoding="utf-8") as f:
            _logger.debug(f"Loading utility configuration from: {path}")
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationLoadError(f"Invalid YAML in {path}: {e}") from e

    config = UtilityConfiguration.from_dict(data)
    _logger.verbose(
        f"Utility configuration loaded: {config.utility_code} "
        f"({len(config.work_types)} work types, {len(config.validation_rules)} rules)"
    )
    return config
