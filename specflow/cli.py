#!/usr/bin/env python3
"""specflow CLI entrypoint."""

import sys
import logging
import argparse
from pathlib import Path

from specflow.backlog.lifecycle import InvalidTransition
from specflow.lib.config import load_config
from specflow.lib.constants import EXIT_ERROR, EXIT_LOCKED, EXIT_USAGE, MERGE_METHODS, DEFAULT_MERGE_METHOD
from specflow.lib.errors import SpecflowError
from specflow.lib.locking import LockTimeout
from specflow.lib.validate import ValidationError
from specflow.commands import intake as cmd_intake_module
from specflow.commands import create_issues as cmd_create_issues_module
from specflow.commands import backfill as cmd_backfill_module
from specflow.commands import provision as cmd_provision_module
from specflow.commands import create_pr as cmd_create_pr_module
from specflow.commands import merge_pr as cmd_merge_pr_module
from specflow.commands import cleanup as cmd_cleanup_module
from specflow.commands import status as cmd_status_module
from specflow.commands.common import parse_issue_number


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='specflow', description='Backlog to issues, worktrees and PRs')
    parser.add_argument('--state', help='State file (default: .specflow/backlog.json)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log progress to stderr')
    subparsers = parser.add_subparsers(dest='command')

    # --state is also accepted after the subcommand
    state_parent = argparse.ArgumentParser(add_help=False)
    state_parent.add_argument('--state', default=argparse.SUPPRESS, help='State file (overrides --state before the subcommand)')

    # specflow intake
    p_intake = subparsers.add_parser('intake', help='Parse a raw backlog file into a new state file', parents=[state_parent])
    p_intake.add_argument('--input', '-i', required=True, help='Raw backlog file')
    p_intake.add_argument('--plan', help='Grouped plan output (default: .specflow/grouped-plan.md)')
    p_intake.add_argument('--force', action='store_true', help='Replace an existing state file (drops recorded issues)')
    p_intake.set_defaults(func=cmd_intake_module.cmd_intake)

    # specflow create-issues
    p_issues = subparsers.add_parser('create-issues', help='Create issues and link development branches', parents=[state_parent])
    p_issues.set_defaults(func=cmd_create_issues_module.cmd_create_issues)

    # specflow backfill-development-branches
    p_backfill = subparsers.add_parser(
        'backfill-development-branches', help='Link branches for issued items, skipping failures',
        parents=[state_parent],
    )
    p_backfill.set_defaults(func=cmd_backfill_module.cmd_backfill)

    # specflow provision-worktrees
    p_provision = subparsers.add_parser('provision-worktrees', help='Claim worktree slots by priority', parents=[state_parent])
    p_provision.add_argument('--worktree-root', help='Directory for managed worktrees (default: ../worktrees)')
    p_provision.add_argument('--agent', action='store_true', help='Prepare an agent workspace in each worktree')
    p_provision.add_argument('--agent-subdir', help='Agent workspace directory inside the worktree')
    p_provision.add_argument('--agent-skill', help='Reference document copied into the agent workspace')
    p_provision.add_argument('--agent-command', help='Command template run in the worktree (implies --agent)')
    p_provision.add_argument('--agent-required', action='store_true', help='Abort when the agent run fails')
    p_provision.set_defaults(func=cmd_provision_module.cmd_provision)

    # specflow create-pr
    p_pr = subparsers.add_parser('create-pr', help='Push the branch and open a pull request', parents=[state_parent])
    p_pr.add_argument('--issue', required=True, type=parse_issue_number, help='Issue number')
    p_pr.add_argument('--base', help='Base branch (default: configured default branch)')
    p_pr.add_argument('--ready', action='store_true', help='Open ready for review instead of draft')
    p_pr.set_defaults(func=cmd_create_pr_module.cmd_create_pr)

    # specflow merge-pr
    p_merge = subparsers.add_parser('merge-pr', help='Merge a PR after its checks pass', parents=[state_parent])
    p_merge.add_argument('--pr', required=True, help='PR number, URL or branch')
    p_merge.add_argument('--method', choices=MERGE_METHODS, default=DEFAULT_MERGE_METHOD, help='Merge method')
    p_merge.add_argument('--keep-branch', action='store_true', help='Keep the branch and local worktree')
    p_merge.set_defaults(func=cmd_merge_pr_module.cmd_merge_pr)

    # specflow cleanup
    p_cleanup = subparsers.add_parser('cleanup', help='Close a worktree and delete its local branch', parents=[state_parent])
    p_cleanup.add_argument('--branch', help='Branch name')
    p_cleanup.add_argument('--pr', help='PR number, URL or branch')
    p_cleanup.add_argument('--issue', type=parse_issue_number, help='Issue number')
    p_cleanup.set_defaults(func=cmd_cleanup_module.cmd_cleanup)

    # specflow status
    p_status = subparsers.add_parser('status', help='List backlog items and their stage', parents=[state_parent])
    p_status.set_defaults(func=cmd_status_module.cmd_status)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, 'func', None):
        parser.print_usage(sys.stderr)
        return EXIT_USAGE

    configure_logging(args.verbose)
    config = load_config(Path.cwd(), Path(args.state) if args.state else None)

    try:
        return args.func(args, config)
    except LockTimeout as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_LOCKED
    except ValidationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR
    except InvalidTransition as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE
    except SpecflowError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return e.exit_code


if __name__ == '__main__':
    sys.exit(main())
