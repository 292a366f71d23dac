"""
Profile Comparer - Action Gate Tests

Verifies roast action enablement across generations.
"""

import pytest

from comparer.client.gate import ActionGate

ACTIONS = ["user1", "user2", "both"]


@pytest.fixture
def gate() -> ActionGate:
    return ActionGate(ACTIONS)


class TestActionGate:
    """Test action enablement."""

    def test_all_enabled_initially(self, gate):
        assert gate.enabled_actions() == ACTIONS

    def test_everything_disabled_while_busy(self, gate):
        assert gate.begin(None)
        assert gate.enabled_actions() == []
        assert not gate.begin("user1")

    def test_completed_action_is_disabled(self, gate):
        gate.begin("user1")
        gate.complete()
        assert gate.enabled_actions() == ["user2", "both"]
        assert not gate.begin("user1")

    def test_disabled_set_is_replaced(self, gate):
        """Only the most recent roast stays disabled."""
        gate.begin("user1")
        gate.complete()
        gate.begin("both")
        gate.complete()

        assert gate.disabled == frozenset({"both"})
        assert gate.is_enabled("user1")

    def test_neutral_completion_enables_everything(self, gate):
        gate.begin("user2")
        gate.complete()
        gate.begin(None)
        gate.complete()
        assert gate.enabled_actions() == ACTIONS

    def test_failure_enables_everything(self, gate):
        gate.begin("user1")
        gate.complete()
        gate.begin("user2")
        gate.complete(failed=True)
        assert gate.enabled_actions() == ACTIONS

    def test_rejected_begin_changes_nothing(self, gate):
        gate.begin("both")
        gate.complete()

        assert not gate.begin("both")
        assert not gate.busy
        assert gate.disabled == frozenset({"both"})

    def test_unknown_action(self, gate):
        assert not gate.is_enabled("nobody")
        assert not gate.begin("nobody")

    def test_complete_when_idle_is_noop(self, gate):
        gate.complete()
        assert gate.enabled_actions() == ACTIONS

    def test_reset(self, gate):
        gate.begin("user1")
        gate.reset()
        assert not gate.busy
        assert gate.enabled_actions() == ACTIONS
