"""Plugin identity, capability types and registry records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PluginType(str, Enum):
    """Capability a plugin is registered to serve."""

    LYRICS = "lyrics"
    MIDI = "midi"
    IMAGE = "image"
    ANALYSIS = "analysis"
    EVALUATION = "evaluation"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    PluginType.LYRICS: "Lyrics Generation",
    PluginType.MIDI: "MIDI Generation",
    PluginType.IMAGE: "Image Generation",
    PluginType.ANALYSIS: "Lyric Analysis",
    PluginType.EVALUATION: "Song Evaluation",
}


class PluginIdentity(BaseModel):
    """Identity and configuration requirements of a plugin."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique identifier for this plugin")
    name: str = Field(description="Display name")
    version: str = Field(description="Plugin version")
    description: str = Field(default="", description="What the plugin can do")
    required_config: tuple[str, ...] = Field(
        default=(), description="Configuration keys that must be supplied, e.g. API_KEY"
    )
    optional_config: dict[str, Any] = Field(
        default_factory=dict, description="Optional configuration keys with their defaults"
    )

    @property
    def recognized_keys(self) -> tuple[str, ...]:
        return self.required_config + tuple(
            k for k in self.optional_config if k not in self.required_config
        )


@dataclass(frozen=True)
class RegisteredPlugin:
    """One registry record. Replaced, never mutated, when its state changes."""

    plugin_type: PluginType
    plugin: Any
    is_active: bool
    registered_at: datetime

    @property
    def id(self) -> str:
        return self.plugin.identity.id


class RegistrySummary(BaseModel):
    """Counts and active plugin ids per capability type."""

    total: int
    by_type: dict[PluginType, int]
    active: dict[PluginType, str | None]


class PluginInfo(BaseModel):
    """Serializable view of a registry record."""

    id: str
    name: str
    version: str
    description: str
    type: PluginType
    is_active: bool
    is_ready: bool
    registered_at: datetime
    required_config: list[str]
    optional_config: dict[str, Any]

    @classmethod
    def from_entry(cls, entry: RegisteredPlugin) -> "PluginInfo":
        identity: PluginIdentity = entry.plugin.identity
        return cls(
            id=identity.id,
            name=identity.name,
            version=identity.version,
            description=identity.description,
            type=entry.plugin_type,
            is_active=entry.is_active,
            is_ready=entry.plugin.is_ready(),
            registered_at=entry.registered_at,
            required_config=list(identity.required_config),
            optional_config=dict(identity.optional_config),
        )
