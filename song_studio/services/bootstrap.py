"""Build a registry wired with the default backends."""

from __future__ import annotations

import logging
import os
from typing import Any

from song_studio.models.plugin import PluginType
from song_studio.plugins.gemini_plugin import GeminiModelPlugin
from song_studio.plugins.mock_plugin import MockModelPlugin
from song_studio.services.registry import ModelRegistry

log = logging.getLogger(__name__)

BACKENDS = {
    "gemini": GeminiModelPlugin,
    "mock": MockModelPlugin,
}

# Environment variable -> plugin configuration key
ENV_CONFIG_KEYS = {
    "GEMINI_API_KEY": "API_KEY",
    "SONG_STUDIO_TEXT_MODEL": "textModel",
    "SONG_STUDIO_IMAGE_MODEL": "imageModel",
    "SONG_STUDIO_BASE_URL": "baseUrl",
    "SONG_STUDIO_TIMEOUT": "timeout",
}


def plugin_config_from_env() -> dict[str, Any]:
    """Collect plugin configuration from environment variables that are set."""
    config: dict[str, Any] = {}
    for env_name, key in ENV_CONFIG_KEYS.items():
        value = os.environ.get(env_name)
        if value:
            config[key] = value
    return config


def default_backend() -> str:
    return os.environ.get("SONG_STUDIO_BACKEND", "gemini")


def create_default_registry(backend: str | None = None) -> ModelRegistry:
    """Register one ``backend`` plugin per capability type, each active.

    Each capability gets its own instance (id ``<backend>-<type>``) so that
    unregistering one capability never disposes a client another relies on.
    """
    backend = backend or default_backend()
    try:
        plugin_cls = BACKENDS[backend]
    except KeyError:
        raise ValueError(
            f"Unknown backend {backend!r}; choose from {', '.join(BACKENDS)}"
        ) from None

    registry = ModelRegistry()
    for plugin_type in PluginType:
        plugin = plugin_cls(plugin_id=f"{backend}-{plugin_type.value}")
        registry.register_plugin(plugin_type, plugin, activate=True)
    return registry


async def initialize_registry(
    registry: ModelRegistry, config: dict[str, Any] | None = None
) -> None:
    """Initialize every registered plugin with the same configuration.

    Raises:
        PluginConfigError: on the first plugin whose required keys are missing.
    """
    config = plugin_config_from_env() if config is None else config
    for entry in registry.registered_plugins:
        await registry.initialize_plugin(entry.id, config)
    log.info("Initialized %d plugins", len(registry))
