"""As-built completion engine - core.

Pure step derivation, completion tracking, auto-fill, validation and
submission assembly. The session facade lives in ``asbuilt.wizard_engine``.
"""

__version__ = "1.0.0"

from asbuilt.core.autofill import AutofillResult, labor_hours, prefill_fields, resolve
from asbuilt.core.checklist import (
    applicable_items,
    check_all,
    checklist_data,
    checklist_progress,
    evaluate_checklist,
    visible_sections,
)
from asbuilt.core.config import ConfigResolver, apply_logging_config
from asbuilt.core.context import JobContext, LaborEntry, UserContext, WizardContext
from asbuilt.core.detection import detect_scope, guess_work_type
from asbuilt.core.errors import (
    AsBuiltError,
    ConfigError,
    ConfigurationLoadError,
    ConfigurationMissingError,
    PreconditionError,
    UnknownStepError,
    UnknownWorkTypeError,
)
from asbuilt.core.events import EventBus
from asbuilt.core.logging import (
    VerbosityLevel,
    get_logger,
    get_verbosity,
    set_colors,
    set_log_sink,
    set_verbosity,
)
from asbuilt.core.models import (
    Checklist,
    ChecklistItem,
    ChecklistSection,
    DocumentCompletion,
    FieldDefinition,
    RuleKind,
    Severity,
    UtilityConfiguration,
    ValidationRule,
    WorkType,
    load_utility_configuration,
)
from asbuilt.core.steps import Step, compute_next_active_index, derive_steps, index_of, step_keys
from asbuilt.core.submission import Submission, assemble
from asbuilt.core.tracker import CompletionTracker
from asbuilt.core.validation import ValidationResult, validate, validate_fields

__all__ = [
    # Configuration model
    "UtilityConfiguration",
    "WorkType",
    "Checklist",
    "ChecklistSection",
    "ChecklistItem",
    "DocumentCompletion",
    "FieldDefinition",
    "ValidationRule",
    "RuleKind",
    "Severity",
    "load_utility_configuration",
    # Context
    "WizardContext",
    "JobContext",
    "UserContext",
    "LaborEntry",
    # Auto-fill
    "resolve",
    "labor_hours",
    "prefill_fields",
    "AutofillResult",
    # Detection
    "detect_scope",
    "guess_work_type",
    # Steps
    "Step",
    "derive_steps",
    "step_keys",
    "index_of",
    "compute_next_active_index",
    # Completion / validation / submission
    "CompletionTracker",
    "ValidationResult",
    "validate",
    "validate_fields",
    "Submission",
    "assemble",
    # Checklist
    "applicable_items",
    "visible_sections",
    "check_all",
    "evaluate_checklist",
    "checklist_progress",
    "checklist_data",
    # Settings
    "ConfigResolver",
    "apply_logging_config",
    # Errors
    "AsBuiltError",
    "ConfigError",
    "ConfigurationMissingError",
    "ConfigurationLoadError",
    "UnknownWorkTypeError",
    "UnknownStepError",
    "PreconditionError",
    # Events
    "EventBus",
    # Logging
    "VerbosityLevel",
    "get_logger",
    "set_verbosity",
    "get_verbosity",
    "set_colors",
    "set_log_sink",
]
