"""
CLI commands for workflows and the team: run, roles, estimate
"""

import json
import sys
from pathlib import Path

from .base import _init_team
from ..core.cost_tracker import estimate_workflow_cost, format_cost_estimate
from ..core.exceptions import ValidationError, WorkflowError
from ..core.orchestrator import load_workflow, new_run_id
from ..core.template_resolver import to_display_text


def cmd_run(args):
    """Run a workflow file step by step"""
    try:
        team = _init_team(args)
        steps = load_workflow(Path(args.workflow_file))
    except Exception as e:
        print(f"❌ Failed to load workflow: {e}", file=sys.stderr)
        sys.exit(1)

    run_id = new_run_id()
    context = {}
    print(f"🚀 Running {len(steps)} steps (run: {run_id})")
    try:
        team.orchestrator.run_workflow(steps, run_id=run_id, context=context)
    except (WorkflowError, ValidationError) as e:
        print(f"❌ Workflow failed: {e}", file=sys.stderr)
        if context:
            print(f"   Completed outputs: {', '.join(context)}", file=sys.stderr)
        sys.exit(1)

    print(f"✅ Workflow complete: {', '.join(context)}\n")
    for key, value in context.items():
        print(f"## {key}\n")
        print(to_display_text(value))
        print()
    print(team.orchestrator.get_cost_report())

    if args.save_context:
        output_file = Path(args.save_context)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with output_file.open('w', encoding='utf-8') as f:
            json.dump(context, f, indent=2, ensure_ascii=False, default=str)
        print(f"\n📄 Context saved to {output_file}")


def cmd_roles(args):
    """List team roles and marketplace roles"""
    try:
        team = _init_team(args)
    except Exception as e:
        print(f"❌ Failed to load roles: {e}", file=sys.stderr)
        sys.exit(1)

    print("👥 Team roles:")
    for role_id in team.registry.list_roles():
        role = team.registry.get_role(role_id)
        print(f"  - {role_id}: {role.name}")

    print("\n🛒 Marketplace roles:")
    for meta in team.marketplace.list_roles():
        owned = " (licensed)" if team.marketplace.has_license(meta.id, team.config.user_id) else ""
        print(f"  - {meta.id}: {meta.name} ${meta.price}{owned}")
        print(f"    {meta.description}")
        print(f"    Capabilities: {', '.join(meta.capabilities)}")
        print(f"    ⭐ {meta.rating} | {meta.downloads} downloads | by {meta.author} v{meta.version}")


def cmd_estimate(args):
    """Estimate what a workflow of N steps would cost"""
    if args.steps < 0 or args.tokens_per_step < 0:
        print("❌ Steps and tokens per step must not be negative", file=sys.stderr)
        sys.exit(1)
    cost = estimate_workflow_cost(args.steps, args.tokens_per_step)
    print(f"Estimated cost: {format_cost_estimate(cost)}")
