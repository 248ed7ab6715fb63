"""Unit tests for core.events module."""

import pytest

from asbuilt.core.events import STEP_COMPLETED, VALIDATION_CHANGED, EventBus, StepCompleted


class TestEventBus:
    """Tests for EventBus."""

    def test_publish_to_subscriber(self):
        bus = EventBus()
        received = []
        bus.subscribe(STEP_COMPLETED, received.append)

        bus.publish(STEP_COMPLETED, {"step": "ec_tag", "active_index": 2})

        assert received == [{"step": "ec_tag", "active_index": 2}]

    def test_other_events_not_delivered(self):
        bus = EventBus()
        received = []
        bus.subscribe(STEP_COMPLETED, received.append)

        bus.publish(VALIDATION_CHANGED, {"valid": True})

        assert received == []

    def test_subscribe_all(self):
        bus = EventBus()
        received = []
        bus.subscribe_all(lambda event, data: received.append((event, data)))

        bus.publish(STEP_COMPLETED)

        assert received == [(STEP_COMPLETED, {})]

    def test_unsubscribe_and_clear(self):
        bus = EventBus()
        received = []
        bus.subscribe(STEP_COMPLETED, received.append)
        bus.unsubscribe(STEP_COMPLETED, received.append)
        bus.publish(STEP_COMPLETED, {"step": "x"})

        bus.subscribe_all(lambda event, data: received.append(event))
        bus.clear()
        bus.publish(STEP_COMPLETED, {"step": "y"})

        assert received == []

    def test_failing_handler_does_not_stop_others(self, capsys):
        """Test a raising handler is logged and the next handler still runs."""
        bus = EventBus()
        received = []

        def boom(_data):
            raise ValueError("host handler failed")

        bus.subscribe(STEP_COMPLETED, boom)
        bus.subscribe(STEP_COMPLETED, received.append)

        bus.publish(STEP_COMPLETED, {"step": "ccsc"})

        assert received == [{"step": "ccsc"}]
        assert "host handler failed" in capsys.readouterr().err

    def test_handlers_cannot_alter_payload(self):
        """Test each handler sees the payload as published."""
        bus = EventBus()
        received = []

        def rewrite(data):
            data["step"] = "review"

        bus.subscribe(STEP_COMPLETED, rewrite)
        bus.subscribe(STEP_COMPLETED, received.append)

        bus.publish(STEP_COMPLETED, StepCompleted(step="ec_tag", active_index=2))

        assert received == [{"step": "ec_tag", "active_index": 2}]
        with pytest.raises(TypeError):
            received[0]["step"] = "review"
