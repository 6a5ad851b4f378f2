"""
Process-wide solver registry.

Provides:
- Registration and lookup of SolverPlugin descriptors by name
- Lazy registration of the built-in bridges
- On-demand loading of plugin modules found on a search path or as
  ``optimodel.solvers`` entry points
- Reference counting of loaded modules (their plugins are unregistered when
  the last holder releases them)

Registration, resolution and reference counting are serialized by a
re-entrant lock.

Discovery for a name that is not registered:
1. ``optimodel_plugin_<name>.py`` or a package directory ``optimodel_plugin_<name>/``
   in each search-path directory, in order (``-`` and other non-identifier
   characters in the name become ``_``)
2. an entry point called ``<name>`` in the ``optimodel.solvers`` group

The module must export ``get_solver_plugins()``.

Usage:
    registry = get_registry()
    registry.register(SolverPlugin.from_solver_class(MySolver, "mine"))
    plugin, handle = registry.resolve("mine")
"""

from importlib import metadata
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union
import importlib.util
import logging
import re
import sys
import threading

from ..errors import InvalidArgumentError, PluginLoadError, UnknownSolverError
from .plugin import ENTRY_SYMBOL, SolverPlugin

logger = logging.getLogger(__name__)

MODULE_PREFIX = "optimodel_plugin_"
ENTRY_POINT_GROUP = "optimodel.solvers"


def module_name_for(name: str) -> str:
    """Module name searched for solver ``name``."""
    return MODULE_PREFIX + re.sub(r"\W", "_", name)


def find_plugin_module(name: str, search_path: Iterable[Union[str, Path]]) -> Optional[Path]:
    """
    Locate the plugin module file for ``name`` on ``search_path``.

    Returns:
        Path of the module file (``__init__.py`` for packages), or None
    """
    stem = module_name_for(name)
    for directory in search_path:
        directory = Path(directory)
        candidate = directory / f"{stem}.py"
        if candidate.is_file():
            return candidate
        package = directory / stem / "__init__.py"
        if package.is_file():
            return package
    return None


class ModuleHandle:
    """Reference to a loaded plugin module, released once."""

    def __init__(self, registry: "SolverRegistry", key: str):
        self._registry = registry
        self.key = key
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if not self._released:
            self._released = True
            self._registry._release(self.key)

    def __repr__(self) -> str:
        state = "released" if self._released else "held"
        return f"ModuleHandle({self.key!r}, {state})"


class _LoadedModule:
    def __init__(self, key: str, module: ModuleType, owns_sys_module: bool):
        self.key = key
        self.module = module
        self.owns_sys_module = owns_sys_module
        self.plugin_names: List[str] = []
        self.refcount = 0


class SolverRegistry:
    """
    Registry of solver plugins.

    Usage:
        registry = SolverRegistry()
        registry.register(plugin)
        plugin = registry.get("dummy")
    """

    def __init__(self):
        self._plugins: Dict[str, SolverPlugin] = {}
        self._owners: Dict[str, str] = {}
        self._modules: Dict[str, _LoadedModule] = {}
        self._lock = threading.RLock()
        self._initialized = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, plugin: SolverPlugin, replace: bool = False) -> None:
        """
        Register a plugin under its name.

        Raises:
            InvalidArgumentError: If the name is taken and ``replace`` is False
        """
        if not isinstance(plugin, SolverPlugin):
            raise InvalidArgumentError(f"Expected a SolverPlugin, got {type(plugin).__name__}")
        with self._lock:
            self._ensure_initialized()
            self._register(plugin, replace)

    def _register(self, plugin: SolverPlugin, replace: bool, owner: Optional[str] = None) -> None:
        if plugin.name in self._plugins and not replace:
            raise InvalidArgumentError(f"Solver '{plugin.name}' is already registered")
        self._plugins[plugin.name] = plugin
        if owner is None:
            self._owners.pop(plugin.name, None)
        else:
            self._owners[plugin.name] = owner
        logger.debug(f"Registered solver: {plugin.name}")

    def unregister(self, name: str) -> SolverPlugin:
        """
        Remove a plugin.

        Raises:
            UnknownSolverError: If no plugin has this name
        """
        with self._lock:
            self._ensure_initialized()
            try:
                plugin = self._plugins.pop(name)
            except KeyError:
                raise UnknownSolverError(f"Solver '{name}' is not registered") from None
            self._owners.pop(name, None)
            logger.debug(f"Unregistered solver: {name}")
            return plugin

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> Optional[SolverPlugin]:
        """Registered plugin by name, or None (no discovery)."""
        with self._lock:
            self._ensure_initialized()
            return self._plugins.get(name)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def names(self) -> List[str]:
        with self._lock:
            self._ensure_initialized()
            return sorted(self._plugins)

    def list_all(self) -> Dict[str, Dict[str, Any]]:
        """
        List all plugins with their requirements.

        Returns:
            Dict mapping solver name to info dict
        """
        with self._lock:
            self._ensure_initialized()
            result = {}
            for name in sorted(self._plugins):
                info = self._plugins[name].info()
                info["module"] = self._owners.get(name)
                result[name] = info
            return result

    def loaded_modules(self) -> Dict[str, int]:
        """Reference count of each loaded plugin module."""
        with self._lock:
            return {key: entry.refcount for key, entry in self._modules.items()}

    def resolve(
        self, name: str, search_path: Optional[Sequence[Union[str, Path]]] = None
    ) -> Tuple[SolverPlugin, Optional[ModuleHandle]]:
        """
        Find the plugin for ``name``, loading its module if needed.

        Args:
            name: Solver name
            search_path: Directories searched for plugin modules

        Returns:
            (plugin, handle). ``handle`` is None for plugins not owned by a
            module; otherwise the caller must release it.

        Raises:
            UnknownSolverError: If no plugin or module is found
            PluginLoadError: If the module is malformed or does not register
                the requested name
        """
        with self._lock:
            self._ensure_initialized()

            plugin = self._plugins.get(name)
            if plugin is None:
                key = self._load(name, search_path or [])
                plugin = self._plugins.get(name)
                if plugin is None:
                    self._discard_if_unused(key)
                    raise PluginLoadError(f"Module {key} does not provide solver '{name}'")
                logger.info(f"Loaded solver '{name}' from {key}")

            owner = self._owners.get(name)
            if owner is None:
                return plugin, None
            self._modules[owner].refcount += 1
            return plugin, ModuleHandle(self, owner)

    # ------------------------------------------------------------------
    # Module loading
    # ------------------------------------------------------------------

    def _load(self, name: str, search_path: Sequence[Union[str, Path]]) -> str:
        path = find_plugin_module(name, search_path)
        if path is not None:
            return self._load_file(name, path)

        entry_point = _find_entry_point(name)
        if entry_point is not None:
            return self._load_entry_point(entry_point)

        searched = ", ".join(str(p) for p in search_path) or "<empty>"
        raise UnknownSolverError(
            f"Solver '{name}' is not registered and no plugin module was found "
            f"(searched: {searched}; entry point group: {ENTRY_POINT_GROUP})"
        )

    def _load_file(self, name: str, path: Path) -> str:
        key = str(path)
        if key in self._modules:
            return key

        module_name = module_name_for(name)
        locations = [str(path.parent)] if path.name == "__init__.py" else None
        spec = importlib.util.spec_from_file_location(
            module_name, path, submodule_search_locations=locations
        )
        if spec is None or spec.loader is None:
            raise PluginLoadError(f"Could not load module from {path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise PluginLoadError(f"Failed to import plugin module {path}: {e}") from e

        try:
            entry = getattr(module, ENTRY_SYMBOL, None)
            if entry is None:
                raise PluginLoadError(f"Plugin module {path} does not define {ENTRY_SYMBOL}()")
            self._install(key, module, entry, owns_sys_module=True)
        except PluginLoadError:
            sys.modules.pop(module_name, None)
            raise
        return key

    def _load_entry_point(self, entry_point) -> str:
        key = f"{ENTRY_POINT_GROUP}:{entry_point.name}"
        if key in self._modules:
            return key
        try:
            target = entry_point.load()
        except Exception as e:
            raise PluginLoadError(f"Failed to load entry point {entry_point.value}: {e}") from e

        if isinstance(target, ModuleType):
            module = target
            entry = getattr(module, ENTRY_SYMBOL, None)
            if entry is None:
                raise PluginLoadError(
                    f"Entry point module {module.__name__} does not define {ENTRY_SYMBOL}()"
                )
        else:
            module = sys.modules.get(getattr(target, "__module__", ""), None)
            entry = target
        self._install(key, module, entry, owns_sys_module=False)
        return key

    def _install(self, key: str, module: Optional[ModuleType], entry, owns_sys_module: bool) -> None:
        if not callable(entry):
            raise PluginLoadError(f"{key}: {ENTRY_SYMBOL} is not callable")
        try:
            plugins = entry()
        except Exception as e:
            raise PluginLoadError(f"{key}: {ENTRY_SYMBOL}() failed: {e}") from e

        if isinstance(plugins, SolverPlugin):
            plugins = [plugins]
        try:
            plugins = list(plugins)
        except TypeError:
            raise PluginLoadError(
                f"{key}: {ENTRY_SYMBOL}() must return a SolverPlugin or a list of them"
            ) from None
        for plugin in plugins:
            if not isinstance(plugin, SolverPlugin):
                raise PluginLoadError(
                    f"{key}: {ENTRY_SYMBOL}() returned {type(plugin).__name__}, "
                    f"expected SolverPlugin"
                )

        entry_record = _LoadedModule(key, module, owns_sys_module)
        for plugin in plugins:
            if plugin.name in self._plugins:
                logger.warning(f"{key}: solver '{plugin.name}' is already registered, skipped")
                continue
            self._register(plugin, replace=False, owner=key)
            entry_record.plugin_names.append(plugin.name)
        self._modules[key] = entry_record

    # ------------------------------------------------------------------
    # Reference counting
    # ------------------------------------------------------------------

    def _release(self, key: str) -> None:
        with self._lock:
            entry = self._modules.get(key)
            if entry is None:
                return
            entry.refcount -= 1
            self._discard_if_unused(key)

    def _discard_if_unused(self, key: str) -> None:
        entry = self._modules.get(key)
        if entry is None or entry.refcount > 0:
            return
        for name in entry.plugin_names:
            if self._owners.get(name) == key:
                self._plugins.pop(name, None)
                self._owners.pop(name, None)
        if entry.owns_sys_module and entry.module is not None:
            sys.modules.pop(entry.module.__name__, None)
        del self._modules[key]
        logger.info(f"Unloaded plugin module {key}")

    # ------------------------------------------------------------------
    # Built-ins
    # ------------------------------------------------------------------

    def _ensure_initialized(self) -> None:
        """Lazy registration of the built-in bridges."""
        if not self._initialized:
            self._initialized = True
            self._initialize_builtins()

    def _initialize_builtins(self) -> None:
        # Imported here to avoid circular imports
        from .backends import builtin_plugins

        for plugin in builtin_plugins():
            self._register(plugin, replace=False)
        logger.debug(f"Initialized {len(self._plugins)} built-in solvers")


def _find_entry_point(name: str):
    for entry_point in metadata.entry_points(group=ENTRY_POINT_GROUP):
        if entry_point.name == name:
            return entry_point
    return None


# Global registry instance
_REGISTRY: Optional[SolverRegistry] = None
_REGISTRY_LOCK = threading.Lock()


def get_registry() -> SolverRegistry:
    """Get the global solver registry."""
    global _REGISTRY
    with _REGISTRY_LOCK:
        if _REGISTRY is None:
            _REGISTRY = SolverRegistry()
        return _REGISTRY


def register_solver(plugin: SolverPlugin, replace: bool = False) -> None:
    """Register a plugin in the global registry (convenience function)."""
    get_registry().register(plugin, replace=replace)


def unregister_solver(name: str) -> SolverPlugin:
    """Remove a plugin from the global registry (convenience function)."""
    return get_registry().unregister(name)


def list_solvers() -> Dict[str, Dict[str, Any]]:
    """List registered solvers with their requirements (convenience function)."""
    return get_registry().list_all()
