"""
CLI parser setup.
"""

import argparse
from .build import cmd_build, cmd_progress, cmd_purchase, cmd_call
from .workflow import cmd_run, cmd_roles, cmd_estimate


def setup_parser():
    parser = argparse.ArgumentParser(
        prog="ai-dev-team",
        description="AI development team: turn an app description into a project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s build "Build a todo app with user accounts"
  %(prog)s progress run-0123456789ab
  %(prog)s purchase stripe-expert --license-key DEMO-2024
  %(prog)s run workflow.yaml
  %(prog)s estimate 3
        """
    )

    parser.add_argument("--workspace", "-w", help="Workspace path (default: current directory)")
    parser.add_argument("--provider", "-p", choices=["mock", "anthropic", "openai"],
                        help="Completion backend (default: from config or API keys)")
    parser.add_argument("--model", "-m", help="Model name for the chosen backend")
    parser.add_argument("--max-cost", type=float, help="Stop between steps once spend exceeds this (USD)")
    parser.add_argument("--stream", action="store_true", help="Stream completions")
    parser.add_argument("--verbose", "-v", action="store_true", help="Print step progress and streamed text")

    subparsers = parser.add_subparsers(dest="command", help="Command")

    # build
    build_parser = subparsers.add_parser("build", help="Build an app from a description")
    build_parser.add_argument("description", help="Natural language description of the app")
    build_parser.add_argument("--no-marketplace", action="store_true", help="Don't suggest premium roles")
    build_parser.add_argument("--user", "-u", help="User id for marketplace licenses")
    build_parser.add_argument("--output", "-o", help="Directory for generated apps")
    build_parser.set_defaults(func=cmd_build)

    # progress
    progress_parser = subparsers.add_parser("progress", help="Show progress of a run")
    progress_parser.add_argument("run_id", help="Run id printed by build or run")
    progress_parser.set_defaults(func=cmd_progress)

    # purchase
    purchase_parser = subparsers.add_parser("purchase", help="Purchase a marketplace role")
    purchase_parser.add_argument("role_id", help="Marketplace role id")
    purchase_parser.add_argument("--license-key", "-k", help="Redeem a license key")
    purchase_parser.add_argument("--user", "-u", help="User id to license")
    purchase_parser.set_defaults(func=cmd_purchase)

    # call
    call_parser = subparsers.add_parser("call", help="Call a control-plane tool with JSON arguments")
    call_parser.add_argument("tool", nargs="?", help="Tool name (omit to list tools)")
    call_parser.add_argument("arguments", nargs="?", default="{}", help="Tool arguments (JSON)")
    call_parser.set_defaults(func=cmd_call)

    # run
    run_parser = subparsers.add_parser("run", help="Run a workflow file (YAML or JSON)")
    run_parser.add_argument("workflow_file", help="Workflow definition with a 'steps' list")
    run_parser.add_argument("--save-context", help="Write the final context to this JSON file")
    run_parser.set_defaults(func=cmd_run)

    # roles
    roles_parser = subparsers.add_parser("roles", help="List team and marketplace roles")
    roles_parser.set_defaults(func=cmd_roles)

    # estimate
    estimate_parser = subparsers.add_parser("estimate", help="Estimate the cost of a workflow")
    estimate_parser.add_argument("steps", type=int, help="Number of steps")
    estimate_parser.add_argument("--tokens-per-step", type=int, default=2000, help="Input tokens per step")
    estimate_parser.set_defaults(func=cmd_estimate)

    return parser
