"""
Cost tracker: append-only ledger of completion charges.
Tracks spend only; never resets.
"""

import json
import yaml
from typing import List, Optional, Dict, Any, Tuple

from .exceptions import ValidationError
from .models import CostEntry


class CostTracker:
    """
    Ledger of every completion charge.

    One instance is handed explicitly to the completion service (the only
    writer) and to the orchestrator (which reads the running total for the
    budget check). Sharing an instance between runs makes their spend
    accumulate together.
    """

    def __init__(self):
        self._entries: List[CostEntry] = []

    def track(self, provider: str, model: str, prompt_tokens: int,
              completion_tokens: int, cost: float, purpose: str) -> CostEntry:
        """Append one charge and return the recorded entry"""
        if prompt_tokens < 0 or completion_tokens < 0:
            raise ValidationError(
                "Token counts must be non-negative",
                field="tokens",
                value=(prompt_tokens, completion_tokens),
            )
        if cost < 0:
            raise ValidationError("Cost must be non-negative", field="cost", value=cost)

        entry = CostEntry(
            provider=provider,
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            cost=cost,
            purpose=purpose,
        )
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> Tuple[CostEntry, ...]:
        return tuple(self._entries)

    def get_total_cost(self) -> float:
        return sum(e.cost for e in self._entries)

    def get_cost_by_purpose(self, purpose: str) -> float:
        return sum(e.cost for e in self._entries if e.purpose == purpose)

    def get_cost_by_provider(self, provider: str) -> float:
        return sum(e.cost for e in self._entries if e.provider == provider)

    def get_total_tokens(self, purpose: Optional[str] = None) -> int:
        return sum(
            e.total_tokens for e in self._entries
            if purpose is None or e.purpose == purpose
        )

    def get_report(self) -> str:
        """Human-readable breakdown by provider/model and by purpose"""
        lines = ["Cost Report", "==========="]
        if not self._entries:
            lines.append("No completions recorded.")
            lines.append("Total: $0.0000")
            return "\n".join(lines)

        by_model: Dict[Tuple[str, str], Dict[str, float]] = {}
        by_purpose: Dict[str, float] = {}
        for e in self._entries:
            bucket = by_model.setdefault((e.provider, e.model), {"calls": 0, "tokens": 0, "cost": 0.0})
            bucket["calls"] += 1
            bucket["tokens"] += e.total_tokens
            bucket["cost"] += e.cost
            by_purpose[e.purpose] = by_purpose.get(e.purpose, 0.0) + e.cost

        lines.append("")
        lines.append("By provider/model:")
        for (provider, model), bucket in sorted(by_model.items()):
            lines.append(
                f"  {provider}/{model}: {int(bucket['calls'])} calls, "
                f"{int(bucket['tokens'])} tokens, ${bucket['cost']:.4f}"
            )

        lines.append("")
        lines.append("By purpose:")
        for purpose, cost in sorted(by_purpose.items()):
            lines.append(f"  {purpose}: ${cost:.4f}")

        lines.append("")
        lines.append(f"Total: ${self.get_total_cost():.4f}")
        return "\n".join(lines)

    def export(self, format: str = "json") -> str:
        """Export the ledger in the specified format"""
        entries = [e.to_dict() for e in self._entries]
        if format == "json":
            return json.dumps(entries, indent=2, default=str)
        elif format == "yaml":
            return yaml.dump(entries, default_flow_style=False, allow_unicode=True)
        else:
            raise ValueError(f"Unsupported export format: {format}")

    def get_statistics(self) -> Dict[str, Any]:
        """Get overall statistics"""
        purposes = sorted(set(e.purpose for e in self._entries))
        stats: Dict[str, Any] = {
            "total_calls": len(self._entries),
            "total_cost": self.get_total_cost(),
            "total_tokens": self.get_total_tokens(),
            "purposes": {},
        }
        for purpose in purposes:
            calls = [e for e in self._entries if e.purpose == purpose]
            stats["purposes"][purpose] = {
                "calls": len(calls),
                "cost": self.get_cost_by_purpose(purpose),
                "tokens": self.get_total_tokens(purpose),
            }
        return stats


# Per million tokens, input / output
ESTIMATE_PRICING = (3.0, 15.0)


def estimate_workflow_cost(steps: int, tokens_per_step: int = 2000) -> float:
    """Rough up-front estimate; output is assumed to be half the input"""
    input_tokens = steps * tokens_per_step
    output_tokens = steps * (tokens_per_step / 2)
    input_price, output_price = ESTIMATE_PRICING
    return (input_tokens / 1_000_000) * input_price + (output_tokens / 1_000_000) * output_price


def format_cost_estimate(cost: float) -> str:
    if cost < 0.01:
        return f"{cost * 100:.2f}¢"
    return f"${cost:.2f}"
