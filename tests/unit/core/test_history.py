"""Unit Tests for HistoryLedger."""

import pytest

from pagepilot.core.domain.history import HistoryLedger
from pagepilot.core.domain.models import ActionRecord, AgentBrain, StepRecord, TokenUsage


def _record(name: str) -> StepRecord:
    return StepRecord(
        brain=AgentBrain(next_goal=f"run {name}"),
        action=ActionRecord(name=name, input={}, output="ok"),
        usage=TokenUsage(total_tokens=10),
    )


class TestHistoryLedger:
    """Tests for the append-only ledger."""

    def test_append_preserves_order(self):
        """Test records keep their append order."""
        ledger = HistoryLedger()
        ledger.append(_record("scroll"))
        ledger.append(_record("done"))

        assert len(ledger) == 2
        assert [step.action.name for step in ledger] == ["scroll", "done"]
        assert ledger[-1].action.name == "done"

    def test_rejects_non_records(self):
        """Test only StepRecord instances can be appended."""
        with pytest.raises(TypeError):
            HistoryLedger().append({"action": "done"})

    def test_snapshot_is_a_copy(self):
        """Test snapshots are unaffected by later appends."""
        ledger = HistoryLedger()
        ledger.append(_record("scroll"))
        snapshot = ledger.snapshot()

        ledger.append(_record("done"))

        assert len(snapshot) == 1
        assert len(ledger) == 2

    def test_slices_are_immutable(self):
        """Test slicing yields a tuple."""
        ledger = HistoryLedger()
        ledger.append(_record("scroll"))

        assert ledger[:1] == (ledger[0],)
        assert not hasattr(ledger, "insert")
        assert not hasattr(ledger, "pop")

    def test_step_record_to_dict(self):
        """Test records serialize to plain dicts."""
        data = _record("done").to_dict()

        assert data["action"]["name"] == "done"
        assert data["brain"]["next_goal"] == "run done"
        assert data["usage"]["total_tokens"] == 10
