#!/usr/bin/env python3
"""
Centralized Configuration Manager

Provides a single source of truth for all application configuration,
including environment variables, defaults, and validation.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional, Dict

import pytz

from core.env_loader import load_env_file

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_MODEL = "gpt-4o-mini"


@dataclass
class IntegrationConfig:
    """External integration configuration."""
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    # X (Twitter) OAuth 1.0a user context
    x_app_key: Optional[str] = None
    x_app_secret: Optional[str] = None
    x_access_token: Optional[str] = None
    x_access_secret: Optional[str] = None
    # Shared secret guarding the scheduled trigger
    cron_secret: Optional[str] = None


@dataclass
class ApplicationConfig:
    """Core application configuration."""
    # Analysis
    tracked_keyword: str = "习近平"

    # Models
    primary_model: str = "gpt-4o"
    fallback_model: str = DEFAULT_FALLBACK_MODEL
    image_model: str = "gpt-image-1"

    # Publishing
    post_delay_seconds: float = 2.0
    max_titles_for_images: int = 15

    # Fetching
    fetch_timeout: int = 15
    fetch_user_agent: str = "Mozilla/5.0 (compatible; FrontPagePublisher/1.0)"
    reference_timezone: str = "Asia/Shanghai"

    # Infographic rendering
    info_image_font_path: Optional[str] = None
    info_image_font_url: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    verbose_logging: bool = False


@dataclass
class Config:
    """Master configuration container."""
    integrations: IntegrationConfig
    app: ApplicationConfig

    def has_openai(self) -> bool:
        """Check if OpenAI integration is available."""
        return bool(self.integrations.openai_api_key)

    def has_x(self) -> bool:
        """Check if all four X credentials are present."""
        integrations = self.integrations
        return all([
            integrations.x_app_key,
            integrations.x_app_secret,
            integrations.x_access_token,
            integrations.x_access_secret,
        ])


class ConfigManager:
    """Manages application configuration with validation and environment loading."""

    def __init__(self, env_file_path: str = ".env"):
        """
        Initialize configuration manager.

        Args:
            env_file_path: Path to .env file relative to project root
        """
        self._config: Optional[Config] = None
        self._env_file_path = env_file_path
        load_env_file(env_file_path)

    def get_config(self, force_reload: bool = False) -> Config:
        """
        Get application configuration.

        Args:
            force_reload: Force reloading configuration from environment

        Returns:
            Complete configuration object
        """
        if self._config is None or force_reload:
            self._config = self._build_config()
        return self._config

    def _build_config(self) -> Config:
        """Build configuration from environment variables."""

        integration_config = IntegrationConfig(
            openai_api_key=os.getenv('OPENAI_API_KEY'),
            openai_base_url=os.getenv('OPENAI_BASE_URL'),
            x_app_key=os.getenv('X_APP_KEY'),
            x_app_secret=os.getenv('X_APP_SECRET'),
            x_access_token=os.getenv('X_ACCESS_TOKEN'),
            x_access_secret=os.getenv('X_ACCESS_SECRET'),
            cron_secret=os.getenv('CRON_SECRET')
        )

        app_config = ApplicationConfig(
            tracked_keyword=os.getenv('TRACKED_KEYWORD', '习近平'),
            primary_model=os.getenv('PRIMARY_MODEL', 'gpt-4o'),
            fallback_model=os.getenv('FALLBACK_MODEL', DEFAULT_FALLBACK_MODEL),
            image_model=os.getenv('IMAGE_MODEL', 'gpt-image-1'),
            post_delay_seconds=float(os.getenv('POST_DELAY_SECONDS', '2.0')),
            max_titles_for_images=int(os.getenv('MAX_TITLES_FOR_IMAGES', '15')),
            fetch_timeout=int(os.getenv('FETCH_TIMEOUT', '15')),
            fetch_user_agent=os.getenv('FETCH_USER_AGENT', 'Mozilla/5.0 (compatible; FrontPagePublisher/1.0)'),
            reference_timezone=os.getenv('REFERENCE_TIMEZONE', 'Asia/Shanghai'),
            info_image_font_path=os.getenv('INFO_IMAGE_FONT_PATH'),
            info_image_font_url=os.getenv('INFO_IMAGE_FONT_URL'),
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
            verbose_logging=os.getenv('VERBOSE_LOGGING', 'false').lower() == 'true'
        )

        config = Config(
            integrations=integration_config,
            app=app_config
        )

        self._validate_config(config)
        return config

    def _validate_config(self, config: Config) -> None:
        """Validate configuration values."""
        errors = []

        if not config.app.tracked_keyword.strip():
            errors.append("TRACKED_KEYWORD must not be empty")

        if config.app.post_delay_seconds < 0:
            errors.append("POST_DELAY_SECONDS must not be negative")

        if config.app.max_titles_for_images < 1:
            errors.append("MAX_TITLES_FOR_IMAGES must be at least 1")

        if config.app.fetch_timeout < 1:
            errors.append("FETCH_TIMEOUT must be at least 1 second")

        if config.app.reference_timezone not in pytz.all_timezones_set:
            errors.append(f"REFERENCE_TIMEZONE is not a known timezone: {config.app.reference_timezone}")

        # Validate log level
        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if config.app.log_level not in valid_log_levels:
            errors.append(f"LOG_LEVEL must be one of: {', '.join(valid_log_levels)}")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

        logger.info("Configuration validation passed")

    def update_logging(self) -> None:
        """Configure logging based on current configuration."""
        config = self.get_config()

        numeric_level = getattr(logging, config.app.log_level)
        logging.getLogger().setLevel(numeric_level)

        if config.app.verbose_logging:
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
        else:
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

        for handler in logging.getLogger().handlers:
            handler.setLevel(numeric_level)
            formatter = logging.Formatter(format_str, datefmt='%Y-%m-%d %H:%M:%S')
            handler.setFormatter(formatter)

    def get_integration_status(self) -> Dict[str, bool]:
        """Get status of all integrations."""
        config = self.get_config()
        return {
            'openai': config.has_openai(),
            'x': config.has_x(),
            'cron_secret': bool(config.integrations.cron_secret)
        }


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_config() -> Config:
    """Get application configuration."""
    return get_config_manager().get_config()


def reset_config() -> None:
    """Reset configuration manager (useful for testing)."""
    global _config_manager
    _config_manager = None
