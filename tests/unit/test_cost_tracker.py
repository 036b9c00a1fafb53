"""
Unit tests for the cost ledger.
"""
import json
import pytest
import yaml

from ai_dev_team.core.cost_tracker import CostTracker, estimate_workflow_cost, format_cost_estimate
from ai_dev_team.core.exceptions import ValidationError


class TestCostTracker:
    """Test CostTracker functionality."""

    def test_empty_ledger(self, cost_tracker):
        assert cost_tracker.get_total_cost() == 0
        assert cost_tracker.entries == ()
        assert "No completions recorded." in cost_tracker.get_report()

    def test_track_returns_entry(self, cost_tracker):
        entry = cost_tracker.track("anthropic", "claude", 100, 50, 0.002, "product-manager")

        assert entry.total_tokens == 150
        assert cost_tracker.entries == (entry,)

    def test_total_is_sum_of_entries(self, cost_tracker):
        cost_tracker.track("mock", "m", 1, 1, 0.25, "a")
        cost_tracker.track("mock", "m", 1, 1, 0.5, "b")
        cost_tracker.track("openai", "gpt-4o", 1, 1, 0.125, "a")

        assert cost_tracker.get_total_cost() == pytest.approx(0.875)
        assert cost_tracker.get_cost_by_purpose("a") == pytest.approx(0.375)
        assert cost_tracker.get_cost_by_provider("mock") == pytest.approx(0.75)
        assert cost_tracker.get_total_tokens() == 6
        assert cost_tracker.get_total_tokens("b") == 2

    def test_entries_snapshot_is_read_only(self, cost_tracker):
        cost_tracker.track("mock", "m", 1, 1, 0.1, "a")
        snapshot = cost_tracker.entries

        cost_tracker.track("mock", "m", 1, 1, 0.1, "a")

        assert len(snapshot) == 1
        assert isinstance(snapshot, tuple)

    @pytest.mark.parametrize("prompt, completion, cost", [(-1, 0, 0.0), (0, -1, 0.0), (0, 0, -0.01)])
    def test_negative_values_rejected(self, cost_tracker, prompt, completion, cost):
        with pytest.raises(ValidationError):
            cost_tracker.track("mock", "m", prompt, completion, cost, "a")
        assert cost_tracker.entries == ()

    def test_report_breakdown(self, cost_tracker):
        cost_tracker.track("anthropic", "sonnet", 1000, 500, 0.0105, "product-manager")
        cost_tracker.track("anthropic", "sonnet", 10, 5, 0.0005, "frontend-developer")

        report = cost_tracker.get_report()

        assert report.startswith("Cost Report\n===========")
        assert "  anthropic/sonnet: 2 calls, 1515 tokens, $0.0110" in report
        assert "  product-manager: $0.0105" in report
        assert report.endswith("Total: $0.0110")

    def test_export_json_and_yaml(self, cost_tracker):
        cost_tracker.track("mock", "m", 1, 2, 0.5, "a")

        as_json = json.loads(cost_tracker.export("json"))
        as_yaml = yaml.safe_load(cost_tracker.export("yaml"))

        assert as_json[0]["prompt_tokens"] == 1
        assert as_yaml[0]["cost"] == 0.5

    def test_export_unknown_format(self, cost_tracker):
        with pytest.raises(ValueError):
            cost_tracker.export("xml")

    def test_statistics(self, cost_tracker):
        cost_tracker.track("mock", "m", 1, 1, 0.5, "a")
        cost_tracker.track("mock", "m", 1, 1, 0.5, "a")

        stats = cost_tracker.get_statistics()

        assert stats["total_calls"] == 2
        assert stats["purposes"]["a"] == {"calls": 2, "cost": 1.0, "tokens": 4}


class TestCostEstimate:

    def test_estimate_uses_half_output(self):
        # 3 * 2000 input at $3/M + 3 * 1000 output at $15/M
        assert estimate_workflow_cost(3) == pytest.approx(0.018 + 0.045)

    def test_format_dollars(self):
        assert format_cost_estimate(0.063) == "$0.06"

    def test_format_sub_cent(self):
        assert format_cost_estimate(0.0042) == "0.42¢"
