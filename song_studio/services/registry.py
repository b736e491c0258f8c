"""Registry of model plugins with one active plugin per capability type."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Mapping

from song_studio.models.plugin import (
    PluginIdentity,
    PluginType,
    RegisteredPlugin,
    RegistrySummary,
)
from song_studio.plugins.contracts import (
    AnalysisModelPlugin,
    EvaluationModelPlugin,
    ImageModelPlugin,
    LyricsModelPlugin,
    MidiModelPlugin,
    ModelPlugin,
    supports,
)
from song_studio.plugins.errors import DuplicatePluginError, PluginNotFoundError

log = logging.getLogger(__name__)


class ModelRegistry:
    """Owns registered plugins and which one is active for each capability.

    Every mutation builds a new mapping and swaps it in as a single
    assignment, so readers never observe a half-applied activation. No
    method awaits while changing state.
    """

    def __init__(self) -> None:
        self._plugins: dict[str, RegisteredPlugin] = {}

    # ── Queries ────────────────────────────────────────

    @property
    def registered_plugins(self) -> list[RegisteredPlugin]:
        """All entries in registration order."""
        return list(self._plugins.values())

    def __len__(self) -> int:
        return len(self._plugins)

    def __contains__(self, plugin_id: object) -> bool:
        return plugin_id in self._plugins

    def get_entry(self, plugin_id: str) -> RegisteredPlugin | None:
        return self._plugins.get(plugin_id)

    def get_plugins_by_type(self, plugin_type: PluginType) -> list[RegisteredPlugin]:
        return [p for p in self._plugins.values() if p.plugin_type == plugin_type]

    def get_active_entry(self, plugin_type: PluginType) -> RegisteredPlugin | None:
        return next(
            (
                p
                for p in self._plugins.values()
                if p.plugin_type == plugin_type and p.is_active
            ),
            None,
        )

    def get_active_plugin(self, plugin_type: PluginType) -> Any | None:
        """The plugin currently serving ``plugin_type``, or None."""
        entry = self.get_active_entry(plugin_type)
        return entry.plugin if entry else None

    def get_active_lyrics_plugin(self) -> LyricsModelPlugin | None:
        return self.get_active_plugin(PluginType.LYRICS)

    def get_active_midi_plugin(self) -> MidiModelPlugin | None:
        return self.get_active_plugin(PluginType.MIDI)

    def get_active_image_plugin(self) -> ImageModelPlugin | None:
        return self.get_active_plugin(PluginType.IMAGE)

    def get_active_analysis_plugin(self) -> AnalysisModelPlugin | None:
        return self.get_active_plugin(PluginType.ANALYSIS)

    def get_active_evaluation_plugin(self) -> EvaluationModelPlugin | None:
        return self.get_active_plugin(PluginType.EVALUATION)

    def get_plugin_identity(self, plugin_id: str) -> PluginIdentity | None:
        entry = self._plugins.get(plugin_id)
        return entry.plugin.identity if entry else None

    def is_plugin_ready(self, plugin_id: str) -> bool:
        """False for unknown ids; otherwise the plugin's own readiness."""
        entry = self._plugins.get(plugin_id)
        return entry.plugin.is_ready() if entry else False

    def get_summary(self) -> RegistrySummary:
        by_type = {t: 0 for t in PluginType}
        active: dict[PluginType, str | None] = {t: None for t in PluginType}
        for plugin_id, entry in self._plugins.items():
            by_type[entry.plugin_type] += 1
            if entry.is_active:
                active[entry.plugin_type] = plugin_id
        return RegistrySummary(total=len(self._plugins), by_type=by_type, active=active)

    # ── Mutations ──────────────────────────────────────

    def register_plugin(
        self, plugin_type: PluginType, plugin: ModelPlugin, activate: bool = False
    ) -> RegisteredPlugin:
        """Add ``plugin`` under ``plugin_type``, inactive unless ``activate``.

        Raises:
            DuplicatePluginError: if a plugin with the same id is registered.
            TypeError: if the plugin does not implement the capability.
        """
        plugin_type = PluginType(plugin_type)
        plugin_id = plugin.identity.id
        if plugin_id in self._plugins:
            raise DuplicatePluginError(f'Plugin with ID "{plugin_id}" is already registered')
        if not supports(plugin, plugin_type):
            raise TypeError(
                f"{type(plugin).__name__} does not implement the {plugin_type.value} contract"
            )

        entry = RegisteredPlugin(
            plugin_type=plugin_type,
            plugin=plugin,
            is_active=False,
            registered_at=datetime.now(),
        )
        plugins = dict(self._plugins)
        plugins[plugin_id] = entry
        if activate:
            plugins = self._with_active(plugins, plugin_id)
        self._plugins = plugins

        log.info(
            "Registered plugin %s for %s%s",
            plugin_id,
            plugin_type.value,
            " (active)" if activate else "",
        )
        return self._plugins[plugin_id]

    def activate_plugin(self, plugin_id: str) -> None:
        """Make ``plugin_id`` the active plugin of its type, deactivating the rest."""
        self._require(plugin_id)
        self._plugins = self._with_active(self._plugins, plugin_id)
        log.info("Activated plugin %s", plugin_id)

    def deactivate_plugin(self, plugin_id: str) -> None:
        entry = self._require(plugin_id)
        plugins = dict(self._plugins)
        plugins[plugin_id] = replace(entry, is_active=False)
        self._plugins = plugins
        log.info("Deactivated plugin %s", plugin_id)

    def unregister_plugin(self, plugin_id: str) -> None:
        """Dispose and remove ``plugin_id``. Unknown ids are ignored."""
        entry = self._plugins.get(plugin_id)
        if entry is None:
            return
        entry.plugin.dispose()
        plugins = dict(self._plugins)
        del plugins[plugin_id]
        self._plugins = plugins
        log.info("Unregistered plugin %s", plugin_id)

    async def initialize_plugin(self, plugin_id: str, config: Mapping[str, Any]) -> None:
        entry = self._require(plugin_id)
        await entry.plugin.initialize(config)

    def dispose(self) -> None:
        """Unregister every plugin."""
        for plugin_id in list(self._plugins):
            self.unregister_plugin(plugin_id)

    # ── Internals ──────────────────────────────────────

    def _require(self, plugin_id: str) -> RegisteredPlugin:
        entry = self._plugins.get(plugin_id)
        if entry is None:
            raise PluginNotFoundError(f'Plugin "{plugin_id}" not found')
        return entry

    @staticmethod
    def _with_active(
        plugins: dict[str, RegisteredPlugin], plugin_id: str
    ) -> dict[str, RegisteredPlugin]:
        target = plugins[plugin_id]
        updated: dict[str, RegisteredPlugin] = {}
        for pid, entry in plugins.items():
            if pid == plugin_id:
                updated[pid] = replace(entry, is_active=True)
            elif entry.plugin_type == target.plugin_type and entry.is_active:
                updated[pid] = replace(entry, is_active=False)
            else:
                updated[pid] = entry
        return updated
