"""Step derivation for the as-built wizard.

The step list is derived from the selected work type's required documents;
it is never stored. Order is fixed:

    work_type, ec_tag, face_sheet, equipment_info, sketch, ccsc,
    billing_form, fda, review

Steps whose trigger does not hold are left out. Work type selection is always
first and review is always last.
"""

from __future__ import annotations

from dataclasses import dataclass

from asbuilt.core.logging import get_logger
from asbuilt.core.models import UtilityConfiguration, WorkType

_logger = get_logger(__name__)

WORK_TYPE = "work_type"
EC_TAG = "ec_tag"
FACE_SHEET = "face_sheet"
EQUIPMENT_INFO = "equipment_info"
SKETCH = "sketch"
CCSC = "ccsc"
BILLING_FORM = "billing_form"
FDA = "fda"
REVIEW = "review"

# Document identifiers that appear in a work type's requiredDocs
DOC_CONSTRUCTION_SKETCH = "construction_sketch"


@dataclass(frozen=True)
class Step:
    """One wizard step; ``key`` is its identity across renders."""

    key: str
    label: str
    description: str
    is_pdf_step: bool = False
    section_type: str | None = None

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {
            "key": self.key,
            "label": self.label,
            "description": self.description,
        }
        if self.is_pdf_step:
            out["isPdfStep"] = True
            out["sectionType"] = self.section_type
        return out


WORK_TYPE_STEP = Step(WORK_TYPE, "Work Type", "Confirm the type of work performed")
REVIEW_STEP = Step(REVIEW, "Review & Submit", "Verify completeness and submit the as-built package")


def requires_sketch(work_type: WorkType | None) -> bool:
    if work_type is None:
        return False
    return work_type.requires(DOC_CONSTRUCTION_SKETCH) or work_type.requires_sketch_markup


def _pdf_step(key: str, label: str, description: str) -> Step:
    return Step(key, label, description, is_pdf_step=True, section_type=key)


def derive_steps(config: UtilityConfiguration | None, work_type: WorkType | None) -> list[Step]:
    """Derive the ordered step list for a work type.

    Args:
        config: Utility configuration (only used for step wording)
        work_type: Selected work type, or None before selection

    Returns:
        Ordered steps; [work_type] when nothing is selected
    """
    if work_type is None:
        return [WORK_TYPE_STEP]

    steps = [WORK_TYPE_STEP]
    docs = work_type.required_docs

    if EC_TAG in docs:
        steps.append(
            Step(
                EC_TAG,
                "EC Tag Completion",
                "Complete the EC tag with hours, status, and signature",
            )
        )

    if FACE_SHEET in docs:
        steps.append(_pdf_step(FACE_SHEET, "Face Sheet", "Review and sign the face sheet"))

    if EQUIPMENT_INFO in docs or EC_TAG in docs:
        steps.append(
            _pdf_step(
                EQUIPMENT_INFO,
                "Equipment Info",
                "Fill in old/new pole numbers, equipment serial numbers",
            )
        )

    if requires_sketch(work_type):
        if work_type.allow_built_as_designed:
            description = 'Redline/blueline the sketch, or mark "Built As Designed"'
        else:
            description = "Redline/blueline the construction sketch"
        steps.append(Step(SKETCH, "Construction Sketch", description))

    if CCSC in docs:
        form_name = config.checklist.form_name if config and config.checklist else ""
        steps.append(
            Step(CCSC, "Completion Checklist", form_name or "Complete the construction checklist")
        )

    if BILLING_FORM in docs:
        steps.append(
            _pdf_step(
                BILLING_FORM,
                "Billing Form",
                "Complete the progress billing / project completion form",
            )
        )

    if FDA in docs and (EC_TAG in docs or work_type.code == "estimated"):
        steps.append(
            Step(
                FDA,
                "Equipment Attributes",
                "Record equipment details for the Asset Registry (GIS/SAP)",
            )
        )

    steps.append(REVIEW_STEP)

    _logger.debug(f"Derived steps for '{work_type.code}': {', '.join(step_keys(steps))}")
    return steps


def step_keys(steps: list[Step]) -> list[str]:
    return [step.key for step in steps]


def index_of(steps: list[Step], key: str) -> int | None:
    for i, step in enumerate(steps):
        if step.key == key:
            return i
    return None


def compute_next_active_index(steps: list[Step], index: int) -> int:
    """Index after auto-advance, clamped to the last step."""
    if not steps:
        return 0
    return max(0, min(index + 1, len(steps) - 1))
