"""Registry of the plugin types known to a configuration."""

import threading
from warnings import warn

from nodebuild.errors import PluginRegistrationError

from .types import PluginType, plugin_type_of

__all__ = ["PluginRegistry", "default_registry"]


class PluginRegistry:
    """Maps plugin names onto plugin type descriptors.

    Names are matched case-insensitively. Plugin aliases are accepted but
    deprecated. The registry is filled at startup and frozen before any build
    starts; a frozen registry can be shared between threads.
    """

    def __init__(self):
        self._types = {}
        self._aliases = {}
        self._frozen = False
        self._lock = threading.Lock()

    def register(self, cls, plugin_type=None):
        """Registers a plugin class.

        Parameters
        ----------
        cls : type
            Plugin class. Must be decorated with `@plugin` unless a
            `plugin_type` is provided.
        plugin_type : PluginType, optional
            Descriptor to register the class under

        Returns
        -------
        PluginType
            Registered descriptor

        Raises
        ------
        PluginRegistrationError
            If the registry is frozen, the class is not a plugin or its name
            is already taken by another class
        """
        if plugin_type is None:
            plugin_type = plugin_type_of(cls)
            if plugin_type is None:
                plugin_type = PluginType.for_class(cls)

        with self._lock:
            if self._frozen:
                raise PluginRegistrationError(
                    f"Cannot register {cls.__name__}: the plugin registry is frozen."
                )

            key = plugin_type.name.lower()
            existing = self._types.get(key)
            if existing is not None and existing.plugin_class is not cls:
                raise PluginRegistrationError(
                    f"Plugin name '{plugin_type.name}' is already registered "
                    f"by {existing.plugin_class.__name__}."
                )

            self._types[key] = plugin_type
            for alias in plugin_type.aliases:
                self._aliases[alias.lower()] = key

        return plugin_type

    def register_module(self, module, category=None):
        """Registers every plugin class defined in a module.

        Private names and classes imported from other modules are skipped,
        as are classes which are not decorated with `@plugin`.

        Parameters
        ----------
        module : module
            Module from which to fetch the plugin classes
        category : str, optional
            If specified, only register plugins of this category

        Returns
        -------
        List[PluginType]
            Registered descriptors
        """
        registered = []
        names = getattr(module, "__all__", dir(module))
        for name in names:
            # Skip private objects
            if name[0] == "_":
                continue

            # Only consider plugin classes which belong to the module
            cls = getattr(module, name)
            plugin_type = plugin_type_of(cls)
            if plugin_type is None or not cls.__module__.startswith(module.__name__):
                continue

            if category is not None and plugin_type.category != category:
                continue

            registered.append(self.register(cls, plugin_type))

        return registered

    def get(self, name):
        """Returns the descriptor of a plugin name, or `None` if unknown.

        Parameters
        ----------
        name : str
            Plugin name or (deprecated) alias, any case

        Returns
        -------
        PluginType
            Plugin type descriptor
        """
        key = name.lower()
        if key in self._types:
            return self._types[key]

        if key in self._aliases:
            plugin_type = self._types[self._aliases[key]]
            warn(
                f"This name ({name}) is deprecated. Use {plugin_type.name} instead.",
                FutureWarning,
                stacklevel=2,
            )
            return plugin_type

        return None

    def __contains__(self, name):
        key = name.lower()
        return key in self._types or key in self._aliases

    def __len__(self):
        return len(self._types)

    def names(self):
        return sorted(t.name for t in self._types.values())

    def freeze(self):
        self._frozen = True
        return self

    @property
    def frozen(self):
        return self._frozen


# Process-wide registry
_DEFAULT = PluginRegistry()


def default_registry():
    """Returns the process-wide plugin registry."""
    return _DEFAULT
