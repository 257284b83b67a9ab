#!/usr/bin/env python3
"""
Publish command endpoints for running the front-page pipeline.
"""

import asyncio
import hmac
import json
import logging
from argparse import Namespace
from datetime import datetime
from typing import Optional

import pytz

from core.formatters import format_publish_run
from core.models.publish import PublishRun
from core.sources.peoples_daily import parse_edition_date
from .base import BaseCommand

logger = logging.getLogger(__name__)


class PublishCommand(BaseCommand):
    """Run, schedule and preview front-page publish runs."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute publish subcommand."""
        try:
            if subcommand == "run":
                return self.run(args)
            elif subcommand == "scheduled":
                return self.scheduled(args)
            elif subcommand == "analyze":
                return self.analyze(args)
            else:
                available = ", ".join(self.get_available_subcommands())
                self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
                return 1

        except Exception as e:
            return self.handle_error(e, f"publish {subcommand}")

    def run(self, args: Namespace) -> int:
        """Run the full pipeline for one edition date."""
        date = self._resolve_date(getattr(args, 'date', None))
        dry_run = getattr(args, 'dry_run', False)

        print(f"🗞️  Publishing front page for {date}{' (dry run)' if dry_run else ''}...")
        orchestrator = self.create_orchestrator(dry_run=dry_run)
        run = asyncio.run(orchestrator.run(date, custom_context=getattr(args, 'context', None), dry_run=dry_run))
        return self._report(run, getattr(args, 'json', False))

    def scheduled(self, args: Namespace) -> int:
        """Trigger entry point for schedulers: requires the shared cron secret."""
        expected = self.config.integrations.cron_secret
        provided = getattr(args, 'secret', None) or ""

        if not expected:
            self.logger.error("CRON_SECRET is not configured; refusing scheduled run")
            print("❌ Unauthorized: scheduled runs are disabled")
            return 1
        if not hmac.compare_digest(provided.encode('utf-8'), expected.encode('utf-8')):
            self.logger.warning("Scheduled run rejected: secret mismatch")
            print("❌ Unauthorized")
            return 1

        date = self._today()
        dry_run = getattr(args, 'dry_run', False)
        self.logger.info(f"Scheduled publish run triggered for {date}")

        orchestrator = self.create_orchestrator(dry_run=dry_run)
        run = asyncio.run(orchestrator.run(date, dry_run=dry_run))
        return self._report(run, getattr(args, 'json', False))

    def analyze(self, args: Namespace) -> int:
        """Fetch and analyze an edition and show the formatted commentary without posting."""
        date = self._resolve_date(getattr(args, 'date', None))
        front_page_only = not getattr(args, 'all_pages', False)

        print(f"🔍 Analyzing {'front page' if front_page_only else 'all pages'} for {date}...")
        orchestrator = self.create_orchestrator(dry_run=True)
        run = asyncio.run(orchestrator.preview(
            date, custom_context=getattr(args, 'context', None), front_page_only=front_page_only
        ))
        return self._report(run, getattr(args, 'json', False))

    def _today(self) -> str:
        timezone = pytz.timezone(self.config.app.reference_timezone)
        return datetime.now(timezone).strftime("%Y-%m-%d")

    def _resolve_date(self, value: Optional[str]) -> str:
        if not value:
            return self._today()
        # Normalizes YYYYMMDD too; raises ValueError for garbage
        return parse_edition_date(value).isoformat()

    @staticmethod
    def _report(run: PublishRun, as_json: bool) -> int:
        if as_json:
            print(json.dumps(run.to_dict(), ensure_ascii=False, indent=2))
        else:
            print(format_publish_run(run))
        return 0 if run.success else 1
