#!/usr/bin/env python3
"""
Integrations command endpoints for checking external service connections.
"""

import asyncio
import logging
from argparse import Namespace

from core.config import get_config_manager
from .base import BaseCommand

logger = logging.getLogger(__name__)


class IntegrationsCommand(BaseCommand):
    """Handle external integration operations."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute integrations subcommand."""
        try:
            if subcommand == "test":
                return self.test(args)
            elif subcommand == "status":
                return self.status(args)
            else:
                available = ", ".join(self.get_available_subcommands())
                self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
                return 1

        except Exception as e:
            return self.handle_error(e, f"integrations {subcommand}")

    def test(self, args: Namespace) -> int:
        """Test all integrations."""
        print("🔍 Testing integrations...")

        openai_status = self._test_openai()
        x_status = self._test_x()

        print(f"\n=== Integration Test Results ===")
        print(f"🤖 OpenAI API: {'✅ Connected' if openai_status else '❌ Failed'}")
        print(f"🐦 X API: {'✅ Connected' if x_status else '❌ Failed'}")

        if openai_status and x_status:
            print("✅ All integrations working")
            return 0
        print("⚠️  Some integrations failed - check configuration")
        return 1

    def status(self, args: Namespace) -> int:
        """Show integration configuration status."""
        status = get_config_manager().get_integration_status()
        app = self.config.app

        print("\n=== Integration Status ===")
        print(f"🤖 OpenAI: {'✅ Configured' if status['openai'] else '❌ Not configured'}")
        print(f"🐦 X: {'✅ Configured' if status['x'] else '❌ Not configured'}")
        print(f"⏰ Cron secret: {'✅ Configured' if status['cron_secret'] else '❌ Not configured'}")

        print("\n=== Models ===")
        print(f"  Primary: {app.primary_model}")
        print(f"  Fallback: {app.fallback_model}")
        print(f"  Image: {app.image_model}")

        return 0 if status['openai'] and status['x'] else 1

    def _test_openai(self) -> bool:
        """Test OpenAI connection."""
        if not self.config.has_openai():
            print("❌ OPENAI_API_KEY not set")
            return False
        try:
            language_model = self.create_language_model()
            return asyncio.run(language_model.test_connection())
        except Exception as e:
            self.logger.error(f"OpenAI test failed: {e}")
            return False

    def _test_x(self) -> bool:
        """Test X credentials."""
        if not self.config.has_x():
            print("❌ X credentials not set (X_APP_KEY, X_APP_SECRET, X_ACCESS_TOKEN, X_ACCESS_SECRET)")
            return False
        try:
            return self.create_social_publisher().verify_credentials()
        except Exception as e:
            self.logger.error(f"X test failed: {e}")
            return False
