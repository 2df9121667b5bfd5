"""Provider implementations and selection."""

import importlib
from .base import Provider
from .simulated import SimulatedProvider
from ..config.settings import EngineSettings
from ..utils.errors import ConfigError
from ..utils.logging import get_logger

logger = get_logger("provider")

BUILTIN_PROVIDERS = {
    "simulated": SimulatedProvider,
}

__all__ = ["Provider", "SimulatedProvider", "load_provider"]


def load_provider(settings: EngineSettings) -> Provider:
    """
    Instantiate the configured provider.
    
    A 'module:callable' factory takes precedence over the built-in name; it
    is called with timeout and region keyword arguments.
    
    Raises:
        ConfigError: If the provider cannot be found or built
    """
    section = settings.provider
    if section.factory:
        module_name, _, attr = section.factory.partition(":")
        if not module_name or not attr:
            raise ConfigError(f"Provider factory must look like 'module:callable', got '{section.factory}'")
        try:
            factory = getattr(importlib.import_module(module_name), attr)
        except (ImportError, AttributeError) as e:
            raise ConfigError(f"Cannot load provider factory '{section.factory}': {e}")
        provider = factory(timeout=section.timeout_seconds, region=section.region)
        if not isinstance(provider, Provider):
            raise ConfigError(f"Provider factory '{section.factory}' did not return a Provider")
        logger.info(f"Using provider from factory {section.factory}")
        return provider
    
    provider_class = BUILTIN_PROVIDERS.get(section.name)
    if provider_class is None:
        raise ConfigError(
            f"Unknown provider '{section.name}'. Available: {', '.join(sorted(BUILTIN_PROVIDERS))}"
        )
    return provider_class(timeout=section.timeout_seconds, region=section.region)
