import pytest

from conftest import FakePlugin, LyricsOnlyPlugin
from song_studio.models.plugin import PluginType
from song_studio.plugins.errors import DuplicatePluginError, PluginNotFoundError
from song_studio.services.registry import ModelRegistry


def _active_count(registry: ModelRegistry, plugin_type: PluginType) -> int:
    return sum(1 for e in registry.get_plugins_by_type(plugin_type) if e.is_active)


class TestRegistration:
    def test_register_counts_entries(self, registry):
        for i in range(4):
            registry.register_plugin(PluginType.LYRICS, FakePlugin(f"p{i}"))
        assert registry.get_summary().total == 4

    def test_registered_inactive_by_default(self, registry):
        entry = registry.register_plugin(PluginType.MIDI, FakePlugin("a"))
        assert entry.is_active is False
        assert registry.get_active_plugin(PluginType.MIDI) is None

    def test_duplicate_id_rejected_and_state_unchanged(self, registry):
        first = FakePlugin("dup")
        registry.register_plugin(PluginType.LYRICS, first, activate=True)
        before = registry.registered_plugins

        with pytest.raises(DuplicatePluginError):
            registry.register_plugin(PluginType.IMAGE, FakePlugin("dup"))

        assert registry.registered_plugins == before
        assert registry.get_entry("dup").plugin is first
        assert registry.get_summary().total == 1

    def test_register_rejects_plugin_missing_capability(self, registry):
        with pytest.raises(TypeError):
            registry.register_plugin(PluginType.MIDI, LyricsOnlyPlugin("lyrics-only"))
        assert len(registry) == 0

    def test_register_accepts_type_value_string(self, registry):
        entry = registry.register_plugin("image", FakePlugin("img"))
        assert entry.plugin_type is PluginType.IMAGE

    def test_plugins_by_type_keeps_registration_order(self, registry):
        for pid in ("c", "a", "b"):
            registry.register_plugin(PluginType.LYRICS, FakePlugin(pid))
        registry.register_plugin(PluginType.MIDI, FakePlugin("m"))
        assert [e.id for e in registry.get_plugins_by_type(PluginType.LYRICS)] == ["c", "a", "b"]


class TestActivation:
    def test_register_with_activate_returns_same_instance(self, registry):
        plugin = FakePlugin("gemini-default")
        registry.register_plugin(PluginType.LYRICS, plugin, activate=True)
        assert registry.get_active_plugin(PluginType.LYRICS) is plugin
        assert registry.get_active_lyrics_plugin() is plugin

    def test_activating_switches_active_plugin(self, registry):
        a = FakePlugin("gemini-default")
        b = FakePlugin("alt-default")
        registry.register_plugin(PluginType.LYRICS, a)
        registry.activate_plugin("gemini-default")
        registry.register_plugin(PluginType.LYRICS, b)
        registry.activate_plugin("alt-default")

        assert registry.get_active_plugin(PluginType.LYRICS).id == "alt-default"
        assert registry.get_entry("gemini-default").is_active is False

    def test_register_with_activate_replaces_current_active(self, registry):
        registry.register_plugin(PluginType.IMAGE, FakePlugin("one"), activate=True)
        registry.register_plugin(PluginType.IMAGE, FakePlugin("two"), activate=True)
        assert registry.get_summary().active[PluginType.IMAGE] == "two"
        assert _active_count(registry, PluginType.IMAGE) == 1

    def test_activation_leaves_other_types_alone(self, registry):
        registry.register_plugin(PluginType.LYRICS, FakePlugin("lyr"), activate=True)
        registry.register_plugin(PluginType.MIDI, FakePlugin("midi-a"), activate=True)
        registry.register_plugin(PluginType.MIDI, FakePlugin("midi-b"))
        registry.activate_plugin("midi-b")
        assert registry.get_entry("lyr").is_active is True
        assert registry.get_entry("midi-a").is_active is False

    def test_at_most_one_active_per_type_over_history(self, registry):
        ids = [f"p{i}" for i in range(5)]
        for i, pid in enumerate(ids):
            plugin_type = PluginType.LYRICS if i % 2 == 0 else PluginType.EVALUATION
            registry.register_plugin(plugin_type, FakePlugin(pid))
        for pid in ["p0", "p1", "p2", "p3", "p4", "p0", "p3"]:
            registry.activate_plugin(pid)
            for plugin_type in PluginType:
                assert _active_count(registry, plugin_type) <= 1
        assert registry.get_active_plugin(PluginType.LYRICS).id == "p0"
        assert registry.get_active_plugin(PluginType.EVALUATION).id == "p3"

    def test_deactivate_only_affects_target(self, registry):
        registry.register_plugin(PluginType.LYRICS, FakePlugin("a"), activate=True)
        registry.register_plugin(PluginType.MIDI, FakePlugin("b"), activate=True)
        registry.deactivate_plugin("a")
        assert registry.get_active_plugin(PluginType.LYRICS) is None
        assert registry.get_active_plugin(PluginType.MIDI).id == "b"

    @pytest.mark.parametrize("operation", ["activate_plugin", "deactivate_plugin"])
    def test_unknown_id_raises_not_found(self, registry, operation):
        registry.register_plugin(PluginType.LYRICS, FakePlugin("a"), activate=True)
        before = registry.registered_plugins
        with pytest.raises(PluginNotFoundError):
            getattr(registry, operation)("missing")
        assert registry.registered_plugins == before


class TestUnregister:
    def test_unknown_id_is_noop(self, registry):
        registry.register_plugin(PluginType.LYRICS, FakePlugin("a"))
        registry.unregister_plugin("missing")
        assert len(registry) == 1

    def test_removes_entry_and_disposes_once(self, registry):
        plugin = FakePlugin("a")
        registry.register_plugin(PluginType.LYRICS, plugin, activate=True)
        registry.unregister_plugin("a")
        assert "a" not in registry
        assert plugin.dispose_calls == 1
        assert registry.get_active_plugin(PluginType.LYRICS) is None

    def test_dispose_unregisters_everything(self, registry):
        plugins = [FakePlugin(f"p{i}") for i in range(3)]
        for plugin in plugins:
            registry.register_plugin(PluginType.ANALYSIS, plugin)
        registry.dispose()
        assert len(registry) == 0
        assert [p.dispose_calls for p in plugins] == [1, 1, 1]


class TestReadinessAndSummary:
    def test_is_plugin_ready_unknown_id_is_false(self, registry):
        assert registry.is_plugin_ready("missing") is False

    @pytest.mark.asyncio
    async def test_is_plugin_ready_delegates(self, registry):
        registry.register_plugin(PluginType.LYRICS, FakePlugin("a"))
        assert registry.is_plugin_ready("a") is False
        await registry.initialize_plugin("a", {"API_KEY": "k"})
        assert registry.is_plugin_ready("a") is True

    @pytest.mark.asyncio
    async def test_initialize_unknown_plugin_raises(self, registry):
        with pytest.raises(PluginNotFoundError):
            await registry.initialize_plugin("missing", {"API_KEY": "k"})

    def test_readiness_independent_of_activation(self, registry):
        registry.register_plugin(PluginType.LYRICS, FakePlugin("a"), activate=True)
        assert registry.is_plugin_ready("a") is False

    def test_summary_counts_and_active(self, registry):
        registry.register_plugin(PluginType.LYRICS, FakePlugin("l1"), activate=True)
        registry.register_plugin(PluginType.LYRICS, FakePlugin("l2"))
        registry.register_plugin(PluginType.MIDI, FakePlugin("m1"))

        summary = registry.get_summary()
        assert summary.total == 3
        assert summary.by_type[PluginType.LYRICS] == 2
        assert summary.by_type[PluginType.MIDI] == 1
        assert summary.by_type[PluginType.EVALUATION] == 0
        assert summary.active[PluginType.LYRICS] == "l1"
        assert summary.active[PluginType.MIDI] is None

    def test_summary_has_no_side_effects(self, registry):
        registry.register_plugin(PluginType.IMAGE, FakePlugin("i"), activate=True)
        assert registry.get_summary() == registry.get_summary()
        assert registry.get_entry("i").is_active is True

    def test_plugin_identity_lookup(self, registry):
        registry.register_plugin(PluginType.LYRICS, FakePlugin("a"))
        assert registry.get_plugin_identity("a").required_config == ("API_KEY",)
        assert registry.get_plugin_identity("missing") is None
