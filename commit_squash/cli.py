"""Command line interface for the commit squash tool."""

from pathlib import Path
from typing import List, Optional
import argparse
import logging
import os
import sys

from .core.config import SquashConfig
from .core.types import (
    Commit, SquashError, SquashResult, NoMessageProvidedError
)
from .git.gateway import GitGateway
from .git.history import CommitHistoryReader
from .prompts.interface import SquashPrompter
from .prompts.scripted import ScriptedPrompter
from .prompts.terminal import TerminalPrompter, display_commits
from .engine import SquashEngine

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the command line argument parser."""
    parser = argparse.ArgumentParser(
        description='Commit Squash Tool - squash any selection of commits into one',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                              # Pick commits interactively
  %(prog)s --list                       # Show recent commits only
  %(prog)s --commits a1b2c3 d4e5f6      # Squash two commits, default message
  %(prog)s --commits a1b2c3 d4e5f6 -m "Add parser" --yes
  %(prog)s --timeout 60                 # Roll back if not done within 60s

Environment Variables:
  GIT_EDITOR, VISUAL, EDITOR   Editor for the squashed commit message
  COMMIT_SQUASH_VERBOSE        Set to enable debug logging
        """
    )

    parser.add_argument(
        '--repo', '-C',
        type=Path,
        help='Path to the git repository (default: current directory)',
        metavar='PATH'
    )

    parser.add_argument(
        '--limit', '-n',
        type=int,
        default=10,
        help='Number of recent commits to offer (default: %(default)s)',
        metavar='N'
    )

    parser.add_argument(
        '--list',
        action='store_true',
        help='List recent commits and exit'
    )

    selection_group = parser.add_argument_group('non-interactive selection')

    selection_group.add_argument(
        '--commits',
        nargs='+',
        help='Commits to squash (ids or refs); skips the interactive picker',
        metavar='REV'
    )

    selection_group.add_argument(
        '--message', '-m',
        help='Message for the squashed commit (default: derived from the commits)',
        metavar='TEXT'
    )

    selection_group.add_argument(
        '--yes', '-y',
        action='store_true',
        help='Do not ask for confirmation before rewriting history'
    )

    parser.add_argument(
        '--timeout',
        type=float,
        help='Abort and roll back if the squash takes longer than this',
        metavar='SECONDS'
    )

    parser.add_argument(
        '--scratch-prefix',
        default='temp-squash',
        help='Prefix for the temporary branch (default: %(default)s)',
        metavar='PREFIX'
    )

    parser.add_argument(
        '--keep-untracked',
        action='store_true',
        help='Leave untracked files in place instead of stashing them'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    return parser


def create_prompter(args, history: CommitHistoryReader) -> SquashPrompter:
    """Create the prompter matching the arguments."""
    if args.commits:
        logger.info("Using commits from the command line")
        return ScriptedPrompter(history.read_commits(args.commits), message=args.message)
    return TerminalPrompter()


def confirm_execution(branch: str, count: int) -> bool:
    """Ask user to confirm the rewrite."""
    while True:
        response = input(
            f"\nSquash {count} commits and rewrite '{branch}'? (y/n): ").lower().strip()
        if response in ('y', 'yes'):
            return True
        elif response in ('n', 'no'):
            return False
        else:
            print("Please enter 'y' or 'n'")


def display_result(result: SquashResult) -> None:
    """Display the outcome of a squash."""
    print("\n" + "=" * 80)
    print("SQUASH COMPLETE")
    print("=" * 80)
    print(f"Branch: {result.branch}")
    print(f"Was: {result.original_head_id[:8]}  Now: {result.new_head_id[:8]}")
    print(f"Squashed commit: {result.squashed_commit_id[:8]}")

    for commit in result.skipped:
        print(f"Skipped (no changes left): {commit.display_name}")

    print("\nCommit message:")
    print("-" * 40)
    print(result.message)
    print("-" * 40)
    print(f"\nSummary: {result.summary_stats()}")
    print(f"To undo: git reset --hard {result.original_head_id}")

    if result.cleanup_errors:
        print("\nWarning: cleanup did not finish:", file=sys.stderr)
        for error in result.cleanup_errors:
            print(f"  - {error}", file=sys.stderr)


def report_error(error: SquashError) -> None:
    """Print a failure, then any cleanup problems that followed it."""
    print(f"Error: {error}", file=sys.stderr)
    if error.cleanup_errors:
        print("\nRestoring the repository also failed; manual intervention may be needed:",
              file=sys.stderr)
        for cleanup_error in error.cleanup_errors:
            print(f"  - {cleanup_error}", file=sys.stderr)


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    parsed_args = parser.parse_args(args)

    env_verbose = bool(os.environ.get('COMMIT_SQUASH_VERBOSE', ""))
    setup_logging(parsed_args.verbose or env_verbose)

    try:
        config = SquashConfig.from_cli_args(parsed_args)
        logger.debug("Configuration: %s", config)

        gateway = GitGateway(parsed_args.repo, config=config)
        history = CommitHistoryReader(gateway, config)

        if parsed_args.list:
            display_commits(history.list_recent_commits())
            return 0

        prompter = create_prompter(parsed_args, history)
        candidates: List[Commit] = [] if parsed_args.commits else history.list_recent_commits()

        selected = prompter.select_commits(candidates)
        if not selected:
            print("Aborted.")
            return 0

        engine = SquashEngine.from_gateway(gateway, config)
        if not parsed_args.yes:
            branch = gateway.run(["rev-parse", "--abbrev-ref", "HEAD"]).strip()
            if not confirm_execution(branch, len(selected)):
                print("Aborted.")
                return 0

        result = engine.squash(selected, prompter.edit_message)
        display_result(result)
        return 0

    except NoMessageProvidedError as e:
        print(f"Aborted: {e}", file=sys.stderr)
        return 0

    except SquashError as e:
        logger.error("Commit squash error: %s", e)
        report_error(e)
        return 1

    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted by user.", file=sys.stderr)
        return 1

    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
