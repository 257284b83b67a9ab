#!/usr/bin/env python3
"""
Dependency Injection Container

Provides a centralized way to manage dependencies and avoid scattered
instantiation throughout the codebase. Supports singleton and factory patterns.
"""

import logging
from typing import Any, Dict, Callable, TypeVar, Optional
from functools import wraps
import threading

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Container:
    """Simple dependency injection container with lifecycle management."""
    
    def __init__(self):
        """Initialize empty container."""
        self._factories: Dict[str, Callable] = {}
        self._singletons: Dict[str, Any] = {}
        self._lock = threading.RLock()  # factories may resolve their own dependencies
        
    def register_singleton(self, service_name: str, factory: Callable[[], T]) -> None:
        """
        Register a service as singleton (created once, reused).
        
        Args:
            service_name: Unique name for the service
            factory: Function that creates the service instance
        """
        with self._lock:
            self._factories[service_name] = factory if getattr(factory, "_is_singleton", False) else singleton(factory)
            # Remove any existing instance to force recreation
            if service_name in self._singletons:
                del self._singletons[service_name]
    
    def register_factory(self, service_name: str, factory: Callable[[], T]) -> None:
        """
        Register a service as factory (new instance each time).
        
        Args:
            service_name: Unique name for the service
            factory: Function that creates service instances
        """
        with self._lock:
            self._factories[service_name] = factory
    
    def register_instance(self, service_name: str, instance: T) -> None:
        """
        Register an existing instance as singleton.
        
        Args:
            service_name: Unique name for the service
            instance: Pre-created service instance
        """
        with self._lock:
            self._singletons[service_name] = instance
    
    def get(self, service_name: str) -> Any:
        """
        Get service instance by name.
        
        Args:
            service_name: Name of the service to retrieve
            
        Returns:
            Service instance
            
        Raises:
            KeyError: If service is not registered
        """
        # Check for existing singleton first
        if service_name in self._singletons:
            return self._singletons[service_name]
            
        # Check if factory is registered
        if service_name not in self._factories:
            raise KeyError(f"Service '{service_name}' not registered")
        
        with self._lock:
            factory = self._factories[service_name]
            
            # Check if it should be singleton
            if hasattr(factory, '_is_singleton') and factory._is_singleton:
                # Double-check pattern for thread safety
                if service_name not in self._singletons:
                    instance = factory()
                    self._singletons[service_name] = instance
                    logger.debug(f"Created singleton instance for '{service_name}'")
                return self._singletons[service_name]
            else:
                # Factory - create new instance each time
                instance = factory()
                logger.debug(f"Created new instance for '{service_name}'")
                return instance
    
    def has(self, service_name: str) -> bool:
        """Check if service is registered."""
        return service_name in self._factories or service_name in self._singletons
    
    def clear(self) -> None:
        """Clear all registered services and instances."""
        with self._lock:
            self._factories.clear()
            self._singletons.clear()
    
    def reset_singleton(self, service_name: str) -> None:
        """Reset a singleton instance (will be recreated on next get())."""
        with self._lock:
            if service_name in self._singletons:
                del self._singletons[service_name]
                logger.debug(f"Reset singleton '{service_name}'")


def singleton(factory_func: Callable[[], T]) -> Callable[[], T]:
    """
    Decorator to mark a factory function as singleton.
    
    Usage:
        @singleton  
        def create_publisher():
            return XPublisher(...)
    """
    @wraps(factory_func)
    def wrapper():
        return factory_func()
    
    wrapper._is_singleton = True
    return wrapper


# Global container instance
_container: Optional[Container] = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Get global container instance (thread-safe singleton)."""
    global _container
    if _container is None:
        with _container_lock:
            if _container is None:
                _container = Container()
                _setup_default_services(_container)
    return _container


def reset_container() -> None:
    """Reset global container (useful for testing)."""
    global _container
    with _container_lock:
        if _container:
            _container.clear()
        _container = None


def _setup_default_services(container: Container) -> None:
    """Set up default service registrations with configuration injection."""

    def create_config():
        from core.config import get_config
        return get_config()

    def create_content_source():
        from core.sources.peoples_daily import PeoplesDailySource
        config = container.get('config')
        return PeoplesDailySource(
            timeout=config.app.fetch_timeout,
            reference_timezone=config.app.reference_timezone,
            user_agent=config.app.fetch_user_agent
        )

    def create_openai_async_client():
        from openai import AsyncOpenAI
        from core.exceptions import ConfigurationError
        config = container.get('config')
        if not config.has_openai():
            raise ConfigurationError('OPENAI_API_KEY', "OpenAI API key not configured")
        return AsyncOpenAI(
            api_key=config.integrations.openai_api_key,
            base_url=config.integrations.openai_base_url
        )

    def create_language_model():
        from integrations.openai_client import OpenAILanguageModel
        config = container.get('config')
        return OpenAILanguageModel(
            model=config.app.primary_model,
            client=container.get('openai_async_client')
        )

    def create_content_analyzer():
        from core.analysis.content_analyzer import ContentAnalyzer
        return ContentAnalyzer(keyword=container.get('config').app.tracked_keyword)

    def create_commentary_generator():
        from core.analysis.commentary import CommentaryGenerator
        config = container.get('config')
        return CommentaryGenerator(
            language_model=container.get('language_model'),
            fallback_model=config.app.fallback_model
        )

    def create_commentary_formatter():
        from core.formatting.commentary_formatter import CommentaryFormatter
        return CommentaryFormatter()

    def create_image_renderer():
        from integrations.image_renderer import FontResolver, NewspaperImageRenderer
        config = container.get('config')
        client = container.get('openai_async_client') if config.has_openai() else None
        return NewspaperImageRenderer(
            client=client,
            image_model=config.app.image_model,
            fonts=FontResolver(
                font_path=config.app.info_image_font_path,
                font_url=config.app.info_image_font_url
            )
        )

    def create_social_publisher():
        from integrations.x_publisher import XPublisher
        integrations = container.get('config').integrations
        return XPublisher(
            app_key=integrations.x_app_key,
            app_secret=integrations.x_app_secret,
            access_token=integrations.x_access_token,
            access_secret=integrations.x_access_secret
        )

    def create_publish_orchestrator(dry_run: bool = False):
        from core.publishing.orchestrator import PublishOrchestrator
        config = container.get('config')
        return PublishOrchestrator(
            content_source=container.get('content_source'),
            analyzer=container.get('content_analyzer'),
            generator=container.get('commentary_generator'),
            image_renderer=container.get('image_renderer'),
            publisher=None if dry_run else container.get('social_publisher'),
            formatter=container.get('commentary_formatter'),
            post_delay_seconds=config.app.post_delay_seconds,
            max_titles_for_images=config.app.max_titles_for_images
        )

    # Register services
    container.register_singleton('config', create_config)
    container.register_singleton('openai_async_client', create_openai_async_client)
    container.register_singleton('content_analyzer', create_content_analyzer)
    container.register_singleton('commentary_formatter', create_commentary_formatter)

    # Non-singletons
    container.register_factory('content_source', create_content_source)
    container.register_factory('language_model', create_language_model)
    container.register_factory('commentary_generator', create_commentary_generator)
    container.register_factory('image_renderer', create_image_renderer)
    container.register_factory('social_publisher', create_social_publisher)
    container.register_factory('publish_orchestrator', create_publish_orchestrator)
    container.register_factory('preview_orchestrator', lambda: create_publish_orchestrator(dry_run=True))

    logger.debug("Default services registered in container")

