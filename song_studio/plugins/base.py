"""Lifecycle shared by concrete model plugins."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from song_studio.models.plugin import PluginIdentity
from song_studio.plugins.errors import PluginConfigError, PluginNotReadyError

log = logging.getLogger(__name__)


class BaseModelPlugin:
    """Implements initialize / is_ready / dispose on top of two hooks.

    Subclasses set ``identity`` and override ``_connect`` (build the backend
    client from the resolved settings) and ``_disconnect`` (drop it).
    Capability methods call ``_ensure_ready`` first.
    """

    identity: PluginIdentity

    def __init__(self) -> None:
        self._settings: dict[str, Any] | None = None

    @property
    def id(self) -> str:
        return self.identity.id

    @property
    def settings(self) -> dict[str, Any]:
        """Settings resolved by the last successful initialize()."""
        self._ensure_ready()
        return dict(self._settings)

    async def initialize(self, config: Mapping[str, Any]) -> None:
        """Validate ``config`` and connect to the backend.

        Only keys named in the identity are kept; optional keys not supplied
        take their declared defaults. Unknown keys are ignored.

        Raises:
            PluginConfigError: if a required key is absent or empty.
        """
        missing = [
            key for key in self.identity.required_config if config.get(key) in (None, "")
        ]
        if missing:
            raise PluginConfigError(
                f"{', '.join(missing)} required for plugin {self.identity.id!r}"
            )

        settings = dict(self.identity.optional_config)
        for key in self.identity.recognized_keys:
            if config.get(key) is not None:
                settings[key] = config[key]

        ignored = sorted(set(config) - set(self.identity.recognized_keys))
        if ignored:
            log.debug("Plugin %s ignoring unknown config keys: %s", self.id, ignored)

        if self._settings is not None:
            self._disconnect()
            self._settings = None
        await self._connect(settings)
        self._settings = settings
        log.info("Initialized plugin %s (%s)", self.id, self.identity.version)

    def is_ready(self) -> bool:
        return self._settings is not None

    def dispose(self) -> None:
        if self._settings is None:
            return
        self._disconnect()
        self._settings = None
        log.info("Disposed plugin %s", self.id)

    def _ensure_ready(self) -> None:
        if self._settings is None:
            raise PluginNotReadyError(
                f"Plugin {self.identity.id!r} not initialized. Call initialize() first."
            )

    async def _connect(self, settings: dict[str, Any]) -> None:
        pass

    def _disconnect(self) -> None:
        pass
