"""Unit tests for core.submission module."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from asbuilt.core.context import WizardContext
from asbuilt.core.errors import PreconditionError
from asbuilt.core.submission import assemble
from asbuilt.core.tracker import CompletionTracker
from asbuilt.core.validation import ValidationResult, validate


@pytest.fixture
def completed_tracker():
    tracker = CompletionTracker()
    tracker.record_completion("work_type", {"workType": "ec_corrective"})
    tracker.record_completion("ec_tag", {"actualHours": 8, "pmNumber": "FROM-STEP-DATA"})
    tracker.record_completion("ccsc", {"formId": "F01"})
    return tracker


class TestAssemble:
    """Tests for assemble."""

    def test_assemble(self, simple_config, completed_tracker, context_data):
        wt = simple_config.work_type("ec_corrective")
        validation = validate(completed_tracker, wt, simple_config)
        now = datetime(2025, 2, 10, 17, 30, tzinfo=UTC)

        submission = assemble(
            simple_config,
            wt,
            completed_tracker,
            WizardContext.from_dict(context_data),
            validation,
            now=now,
        )

        assert submission.utility_code == "TEST"
        assert submission.work_type == "ec_corrective"
        assert submission.job_id == "job-42"
        assert submission.job_identifiers == {
            "pmNumber": "35589054",
            "notificationNumber": "119080350",
        }
        assert submission.submitted_by == "user-7"
        assert submission.submitted_at == "2025-02-10T17:30:00+00:00"
        assert submission.step_data["ec_tag"]["actualHours"] == 8
        assert submission.completed_steps == {"work_type": True, "ec_tag": True, "ccsc": True}

    def test_identifiers_come_from_context(self, simple_config, completed_tracker, context_data):
        """Test step data never overrides job identifiers."""
        wt = simple_config.work_type("ec_corrective")

        submission = assemble(
            simple_config,
            wt,
            completed_tracker,
            WizardContext.from_dict(context_data),
            ValidationResult(),
        )

        assert submission.job_identifiers["pmNumber"] == "35589054"

    def test_timestamp_normalized_to_utc(self, simple_config, completed_tracker):
        wt = simple_config.work_type("ec_corrective")
        pacific = timezone(timedelta(hours=-8))

        submission = assemble(
            simple_config,
            wt,
            completed_tracker,
            WizardContext(),
            ValidationResult(),
            now=datetime(2025, 2, 10, 9, 30, tzinfo=pacific),
        )

        assert submission.submitted_at == "2025-02-10T17:30:00+00:00"
        assert submission.job_id is None
        assert submission.submitted_by is None

    def test_default_timestamp_is_utc(self, simple_config, completed_tracker):
        wt = simple_config.work_type("ec_corrective")

        submission = assemble(
            simple_config, wt, completed_tracker, WizardContext(), ValidationResult()
        )

        assert datetime.fromisoformat(submission.submitted_at).utcoffset() == timedelta(0)

    def test_invalid_validation_raises(self, simple_config, completed_tracker):
        """Test assembling while errors remain is a precondition failure."""
        wt = simple_config.work_type("ec_corrective")
        invalid = ValidationResult(errors=["Completion checklist required"])

        with pytest.raises(PreconditionError) as exc_info:
            assemble(simple_config, wt, completed_tracker, WizardContext(), invalid)

        assert "Completion checklist required" in str(exc_info.value)

    def test_to_dict(self, simple_config, completed_tracker, context_data):
        wt = simple_config.work_type("ec_corrective")

        payload = assemble(
            simple_config,
            wt,
            completed_tracker,
            WizardContext.from_dict(context_data),
            ValidationResult(),
            now=datetime(2025, 2, 10, tzinfo=UTC),
        ).to_dict()

        assert set(payload) == {
            "utilityCode",
            "workType",
            "jobId",
            "jobIdentifiers",
            "stepData",
            "completedSteps",
            "submittedAt",
            "submittedBy",
        }
        assert payload["stepData"]["ccsc"] == {"formId": "F01"}

    def test_submission_is_a_snapshot(self, simple_config, completed_tracker):
        """Test later tracker changes do not alter an assembled submission."""
        wt = simple_config.work_type("ec_corrective")
        submission = assemble(
            simple_config, wt, completed_tracker, WizardContext(), ValidationResult()
        )

        completed_tracker.reset()

        assert submission.completed_steps["ccsc"] is True

    def test_nested_caller_data_is_copied(self, simple_config):
        """Test editing data the caller passed in never changes the payload."""
        wt = simple_config.work_type("ec_corrective")
        photos = ["a.jpg"]
        tracker = CompletionTracker()
        tracker.record_completion("work_type", {"workType": "ec_corrective"})
        tracker.record_completion("ec_tag", {"photos": photos})
        tracker.record_completion("ccsc")

        submission = assemble(simple_config, wt, tracker, WizardContext(), ValidationResult())
        photos.append("tampered.jpg")
        tracker.get_data("ec_tag")["photos"].append("late.jpg")

        assert submission.step_data["ec_tag"]["photos"] == ["a.jpg"]
        assert submission.to_dict()["stepData"]["ec_tag"]["photos"] == ["a.jpg"]

    def test_mappings_are_read_only(self, simple_config, completed_tracker):
        wt = simple_config.work_type("ec_corrective")
        submission = assemble(
            simple_config, wt, completed_tracker, WizardContext(), ValidationResult()
        )

        with pytest.raises(TypeError):
            submission.step_data["injected"] = {"x": 1}
        with pytest.raises(TypeError):
            submission.step_data["ec_tag"]["actualHours"] = 99
        with pytest.raises(TypeError):
            submission.completed_steps["review"] = True

    def test_to_dict_is_a_copy(self, simple_config, completed_tracker):
        wt = simple_config.work_type("ec_corrective")
        submission = assemble(
            simple_config, wt, completed_tracker, WizardContext(), ValidationResult()
        )

        payload = submission.to_dict()
        payload["stepData"]["ec_tag"]["actualHours"] = 0

        assert submission.step_data["ec_tag"]["actualHours"] == 8
