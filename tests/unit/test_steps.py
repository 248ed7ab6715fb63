"""Unit tests for core.steps module."""

from asbuilt.core.models import Checklist, UtilityConfiguration, WorkType
from asbuilt.core.steps import (
    compute_next_active_index,
    derive_steps,
    index_of,
    requires_sketch,
    step_keys,
)


def _config(*work_types, checklist=None):
    return UtilityConfiguration(utility_code="TEST", work_types=work_types, checklist=checklist)


class TestDeriveSteps:
    """Tests for derive_steps."""

    def test_no_work_type_yields_only_selection(self):
        """Test nothing but work type selection before a work type is chosen."""
        assert step_keys(derive_steps(_config(), None)) == ["work_type"]

    def test_ec_corrective_implies_equipment_info(self):
        """Test ec_tag pulls in the equipment info step."""
        wt = WorkType(code="ec_corrective", label="EC Tag Work", required_docs=("ec_tag", "ccsc"))

        keys = step_keys(derive_steps(_config(wt), wt))

        assert keys == ["work_type", "ec_tag", "equipment_info", "ccsc", "review"]

    def test_fixed_order_regardless_of_required_docs_order(self):
        """Test steps follow the fixed priority, not requiredDocs order."""
        wt = WorkType(
            code="estimated",
            label="Estimated",
            required_docs=(
                "billing_form",
                "ccsc",
                "construction_sketch",
                "equipment_info",
                "face_sheet",
                "ec_tag",
            ),
        )

        keys = step_keys(derive_steps(_config(wt), wt))

        assert keys == [
            "work_type",
            "ec_tag",
            "face_sheet",
            "equipment_info",
            "sketch",
            "ccsc",
            "billing_form",
            "review",
        ]

    def test_empty_required_docs(self):
        """Test empty requiredDocs still yields selection and review."""
        wt = WorkType(code="misc", label="Misc")
        assert step_keys(derive_steps(_config(wt), wt)) == ["work_type", "review"]

    def test_sketch_markup_flag_adds_sketch(self):
        """Test requires_sketch_markup alone adds the sketch step."""
        wt = WorkType(code="misc", label="Misc", requires_sketch_markup=True)
        assert step_keys(derive_steps(_config(wt), wt)) == ["work_type", "sketch", "review"]

    def test_fda_needs_ec_or_estimated_work(self):
        """Test the equipment attributes step for EC and estimated work only."""
        ec = WorkType(code="ec_corrective", label="EC", required_docs=("ec_tag", "fda"))
        est = WorkType(code="estimated", label="Est", required_docs=("fda",))
        other = WorkType(code="service", label="Service", required_docs=("fda",))

        assert "fda" in step_keys(derive_steps(_config(ec), ec))
        assert "fda" in step_keys(derive_steps(_config(est), est))
        assert "fda" not in step_keys(derive_steps(_config(other), other))

    def test_fda_needs_capability_flag(self):
        """Test no equipment attributes step without 'fda' in requiredDocs."""
        est = WorkType(code="estimated", label="Est", required_docs=("ec_tag",))
        assert "fda" not in step_keys(derive_steps(_config(est), est))

    def test_review_is_last_and_keys_unique(self):
        """Test review is last and no key repeats."""
        wt = WorkType(
            code="estimated",
            label="Est",
            required_docs=("ec_tag", "equipment_info", "construction_sketch", "fda"),
            requires_sketch_markup=True,
        )

        keys = step_keys(derive_steps(_config(wt), wt))

        assert keys[-1] == "review"
        assert keys[0] == "work_type"
        assert len(keys) == len(set(keys))

    def test_deterministic(self):
        """Test identical inputs give identical step lists."""
        wt = WorkType(code="ec", label="EC", required_docs=("ec_tag", "ccsc"))
        config = _config(wt)
        assert derive_steps(config, wt) == derive_steps(config, wt)

    def test_pdf_steps_carry_section_type(self):
        """Test PDF-backed steps expose their section type."""
        wt = WorkType(code="est", label="Est", required_docs=("face_sheet", "billing_form"))

        steps = {s.key: s for s in derive_steps(_config(wt), wt)}

        assert steps["face_sheet"].is_pdf_step
        assert steps["face_sheet"].section_type == "face_sheet"
        assert steps["billing_form"].to_dict()["isPdfStep"] is True
        assert "isPdfStep" not in steps["review"].to_dict()

    def test_sketch_description_follows_built_as_designed(self):
        """Test sketch wording mentions Built As Designed only when allowed."""
        allowed = WorkType(code="a", label="A", required_docs=("construction_sketch",))
        denied = WorkType(
            code="b",
            label="B",
            required_docs=("construction_sketch",),
            allow_built_as_designed=False,
        )

        sketch_a = derive_steps(_config(allowed), allowed)[1]
        sketch_b = derive_steps(_config(denied), denied)[1]

        assert "Built As Designed" in sketch_a.description
        assert "Built As Designed" not in sketch_b.description

    def test_ccsc_description_is_form_name(self):
        """Test the checklist step is described by the configured form name."""
        wt = WorkType(code="a", label="A", required_docs=("ccsc",))
        checklist = Checklist(form_id="F01", form_name="Completion Standards Checklist")

        ccsc = derive_steps(_config(wt, checklist=checklist), wt)[1]

        assert ccsc.key == "ccsc"
        assert ccsc.description == "Completion Standards Checklist"

    def test_config_may_be_missing(self):
        """Test derivation works without a configuration."""
        wt = WorkType(code="a", label="A", required_docs=("ccsc",))
        assert step_keys(derive_steps(None, wt)) == ["work_type", "ccsc", "review"]


class TestRequiresSketch:
    """Tests for requires_sketch."""

    def test_construction_sketch_doc(self):
        wt = WorkType(code="a", label="A", required_docs=("construction_sketch",))
        assert requires_sketch(wt)

    def test_flag(self):
        assert requires_sketch(WorkType(code="a", label="A", requires_sketch_markup=True))

    def test_neither(self):
        assert not requires_sketch(WorkType(code="a", label="A", required_docs=("ec_tag",)))
        assert not requires_sketch(None)


class TestNavigationHelpers:
    """Tests for index_of and compute_next_active_index."""

    def test_index_of(self):
        wt = WorkType(code="a", label="A", required_docs=("ec_tag",))
        steps = derive_steps(None, wt)

        assert index_of(steps, "ec_tag") == 1
        assert index_of(steps, "ccsc") is None

    def test_next_index_advances(self):
        steps = derive_steps(None, WorkType(code="a", label="A", required_docs=("ec_tag",)))
        assert compute_next_active_index(steps, 0) == 1

    def test_next_index_never_passes_last_step(self):
        """Test auto-advance is clamped to the last step."""
        steps = derive_steps(None, WorkType(code="a", label="A"))
        last = len(steps) - 1

        assert compute_next_active_index(steps, last) == last
        assert compute_next_active_index(steps, last + 5) == last

    def test_next_index_empty_steps(self):
        assert compute_next_active_index([], 3) == 0
