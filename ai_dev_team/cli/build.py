"""
CLI commands for the build flow: build, progress, purchase, call
"""

import json
import sys

from .base import _init_team, _load_config
from ..core.enums import BuildStatus
from ..core.exceptions import ValidationError
from ..core.models import BuildOptions
from ..core.progress_tracker import ProgressTracker


def cmd_build(args):
    """Build an app from a description"""
    try:
        team = _init_team(args)
        options = BuildOptions(
            use_marketplace=not args.no_marketplace,
            streaming=team.config.stream_output,
        )
        result = team.builder.build_app(args.description, options)
    except Exception as e:
        print(f"❌ Build failed: {e}", file=sys.stderr)
        sys.exit(1)

    if result.status == BuildStatus.MARKETPLACE_SUGGESTION:
        print(f"💡 {result.message}")
        print(f"\nTo add it: ai-dev-team purchase {result.suggestion['role_id']} --license-key <KEY>")
        print("Then run the build again.")
        return
    if result.status == BuildStatus.ERROR:
        print(f"❌ {result.message}", file=sys.stderr)
        print(f"   Run: {result.run_id}", file=sys.stderr)
        sys.exit(1)

    print("✅ App successfully built!\n")
    print(result.summary)
    print(f"\n📁 Output: {result.deployment_location}")
    print(f"💰 Total cost: ${result.total_cost:.2f}")
    print(f"🆔 Run: {result.run_id}")


def cmd_progress(args):
    """Show the persisted progress of a run"""
    try:
        config = _load_config(args)
        tracker = ProgressTracker(config.progress_dir)
        if tracker.load(args.run_id) is None:
            print(f"❌ Run not found: {args.run_id}", file=sys.stderr)
            sys.exit(1)
        print(tracker.get_progress_markdown(args.run_id))
    except ValidationError as e:
        print(f"❌ Failed to read progress: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_purchase(args):
    """Purchase a marketplace role or redeem a license key"""
    try:
        team = _init_team(args)
        result = team.builder.purchase_role(args.role_id, license_key=args.license_key)
    except Exception as e:
        print(f"❌ Purchase failed: {e}", file=sys.stderr)
        sys.exit(1)

    if result.success:
        print(f"✅ {result.message}")
    else:
        print(f"❌ {result.message}", file=sys.stderr)
        sys.exit(1)


def cmd_call(args):
    """Call a control-plane tool, or list tools when none is named"""
    try:
        plane = _init_team(args).control_plane()
        if not args.tool:
            for tool in plane.list_tools():
                print(f"  {tool['name']}: {tool['description']}")
            return
        try:
            arguments = json.loads(args.arguments)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Tool arguments are not valid JSON: {e}", field="arguments") from None
        print(plane.call_tool(args.tool, arguments))
    except Exception as e:
        print(f"❌ Tool call failed: {e}", file=sys.stderr)
        sys.exit(1)
