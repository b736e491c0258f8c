"""Errors raised by plugins and the model registry."""


class PluginError(Exception):
    """Base class for plugin and registry failures."""


class PluginConfigError(PluginError):
    """A required configuration key was missing at initialize time."""


class PluginNotReadyError(PluginError):
    """A capability was invoked before initialize() succeeded, or after dispose()."""


class PluginNotFoundError(PluginError):
    """No plugin is registered under the given id."""


class DuplicatePluginError(PluginError):
    """A plugin with the same id is already registered."""


class NoActivePluginError(PluginError):
    """No plugin is active for the requested capability type."""


class BackendResponseError(PluginError):
    """The backend call failed or returned content that could not be parsed."""
