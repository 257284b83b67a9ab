#!/usr/bin/env python3
"""
CLI Router for the front-page publisher.

Routes `<command> <subcommand>` invocations to the command classes.
"""

import argparse
import logging
import sys
from typing import Optional, List

# Load environment variables first
import core.env_loader  # Auto-loads .env file

from commands import get_command, COMMANDS
from core.config import get_config_manager

logger = logging.getLogger(__name__)


class CLIRouter:
    """
    CLI router for publish commands.

    Command structure:
    - python run.py publish run --date 2025-06-01
    - python run.py publish scheduled --secret $CRON_SECRET
    - python run.py publish analyze --all-pages
    - python run.py integrations status
    """

    def __init__(self):
        """Initialize CLI router."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the main argument parser."""
        parser = argparse.ArgumentParser(
            description="People's Daily front-page analysis and publisher",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=self._get_examples_text()
        )

        subparsers = parser.add_subparsers(
            dest='command',
            help='Available commands',
            metavar='{command}'
        )

        self._add_publish_parser(subparsers)
        self._add_integrations_parser(subparsers)

        return parser

    def _add_publish_parser(self, subparsers):
        """Add publish command parser."""
        publish_parser = subparsers.add_parser(
            'publish',
            help='Fetch, analyze and publish a front page'
        )

        publish_subparsers = publish_parser.add_subparsers(
            dest='subcommand',
            help='Publish operations',
            metavar='{run,scheduled,analyze}'
        )

        # Run subcommand
        run_parser = publish_subparsers.add_parser('run', help='Run the full pipeline for one edition')
        run_parser.add_argument('--date', help='Edition date YYYY-MM-DD (default: today in Beijing)')
        run_parser.add_argument('--context', help='Extra context passed to the commentary prompts')
        run_parser.add_argument('--dry-run', action='store_true', help='Generate everything but do not post')
        run_parser.add_argument('--json', action='store_true', help='Print the run as JSON')

        # Scheduled subcommand
        scheduled_parser = publish_subparsers.add_parser('scheduled', help="Scheduler trigger: publish today's edition")
        scheduled_parser.add_argument('--secret', required=True, help='Must match CRON_SECRET')
        scheduled_parser.add_argument('--dry-run', action='store_true', help='Generate everything but do not post')
        scheduled_parser.add_argument('--json', action='store_true', help='Print the run as JSON')

        # Analyze subcommand
        analyze_parser = publish_subparsers.add_parser('analyze', help='Fetch and analyze without rendering or posting')
        analyze_parser.add_argument('--date', help='Edition date YYYY-MM-DD (default: today in Beijing)')
        analyze_parser.add_argument('--context', help='Extra context passed to the commentary prompts')
        analyze_parser.add_argument('--all-pages', action='store_true', help='Analyze every page, not only the front page')
        analyze_parser.add_argument('--json', action='store_true', help='Print the result as JSON')

    def _add_integrations_parser(self, subparsers):
        """Add integrations command parser."""
        integrations_parser = subparsers.add_parser(
            'integrations',
            help='External integration management'
        )

        integrations_subparsers = integrations_parser.add_subparsers(
            dest='subcommand',
            help='Integration operations',
            metavar='{test,status}'
        )

        integrations_subparsers.add_parser('test', help='Test all integrations')
        integrations_subparsers.add_parser('status', help='Show integration status')

    def _get_examples_text(self) -> str:
        """Get examples text for help."""
        return """
Examples:
  # Publish today's front page
  python run.py publish run

  # A specific edition, without posting
  python run.py publish run --date 2025-06-01 --dry-run

  # Scheduler entry point
  python run.py publish scheduled --secret "$CRON_SECRET"

  # Analysis only
  python run.py publish analyze --date 2025-06-01 --all-pages --json

  # Integrations
  python run.py integrations status
  python run.py integrations test

"""

    def route_command(self, args: Optional[List[str]] = None) -> int:
        """
        Route command to appropriate handler.

        Args:
            args: Command line arguments (uses sys.argv if None)

        Returns:
            Exit code
        """
        try:
            if args is None:
                args = sys.argv[1:]

            parsed_args = self.parser.parse_args(args)

            if not parsed_args.command:
                self.parser.print_help()
                return 1

            return self._handle_command(parsed_args)

        except SystemExit as e:
            # argparse calls sys.exit() on error or help
            return e.code if e.code is not None else 0
        except Exception as e:
            logger.error(f"CLI routing error: {e}", exc_info=True)
            return 1

    def _handle_command(self, args: argparse.Namespace) -> int:
        """Handle command structure."""
        logger.debug(f"Handling command: {args.command}")

        if args.command not in COMMANDS:
            available = ', '.join(COMMANDS.keys())
            logger.error(f"Unknown command '{args.command}'. Available: {available}")
            return 1

        subcommand = getattr(args, 'subcommand', None)
        if not subcommand:
            logger.error(f"No subcommand specified for '{args.command}'")
            self.parser.parse_args([args.command, '--help'])  # Show help
            return 1

        try:
            command = get_command(args.command)
            return command.execute(subcommand, args)
        except Exception as e:
            logger.error(f"Error executing {args.command} {subcommand}: {e}", exc_info=True)
            return 1


def main(args: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code
    """
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        get_config_manager().update_logging()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 78

    router = CLIRouter()
    return router.route_command(args)


if __name__ == '__main__':
    exit_code = main()
    sys.exit(exit_code)
