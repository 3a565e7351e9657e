"""
Handler Registry

Instance-based registry of job handlers and their uniqueness options.
Lookups never raise: unknown names come back as unresolved descriptors.
"""

import importlib
import logging
from typing import Any, Callable, Dict, List, Optional

from ..errors import HandlerNotFoundError
from .descriptors import (
    OPTIONS_ATTR,
    CapableHandler,
    HandlerDescriptor,
    UniqueOptions,
    UnresolvedHandler,
    describe,
)

logger = logging.getLogger(__name__)


def handler_name(handler: Any) -> str:
    """Default registry name for a handler: ``module.QualName``."""
    qualname = getattr(handler, "__qualname__", None) or getattr(handler, "__name__")
    return f"{handler.__module__}.{qualname}"


def import_handler(path: str) -> Any:
    """
    Import an object from a dotted ``package.module.Attr`` path.

    Raises:
        HandlerNotFoundError: If the path is malformed, no module prefix of it
            imports, importing a module fails, or the remaining attributes are
            missing
    """
    parts = path.split(".")
    if not all(parts):
        raise HandlerNotFoundError(path, reason="empty segment in import path")

    for split in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:split])
        try:
            obj = importlib.import_module(module_name)
        except ImportError:
            continue
        except Exception as e:
            raise HandlerNotFoundError(
                path, reason=f"importing {module_name} failed: {e!r}"
            ) from e
        try:
            for attr in parts[split:]:
                obj = getattr(obj, attr)
        except AttributeError as e:
            raise HandlerNotFoundError(path, reason=str(e)) from e
        return obj

    raise HandlerNotFoundError(path, reason="no importable module in path")


class HandlerRegistry:
    """
    Instance-based handler registry.

    Maps handler names to capable descriptors. Handlers that were never
    registered are resolved by import path on lookup.
    """

    def __init__(self):
        """Initialize empty handler registry."""
        self._registry: Dict[str, CapableHandler] = {}
        self._aliases: Dict[str, List[str]] = {}

    def register_handler(
        self, handler: Any, name: Optional[str] = None, **options
    ) -> Any:
        """
        Register a handler with its uniqueness options.

        Options passed here take precedence over a ``unique_options`` mapping
        already defined on the handler. The merged options are written back to
        ``handler.unique_options`` so import-path lookups agree with the
        registry.

        Args:
            handler: Handler class or callable
            name: Registry name (default: ``module.QualName``)
            **options: unique_prefix, unique_on_all_queues,
                unique_args_enabled, unique_args

        Returns:
            The handler, unchanged apart from ``unique_options``

        Raises:
            ConfigurationError: If an option has an unsupported type
        """
        existing = getattr(handler, OPTIONS_ATTR, None) or {}
        if isinstance(existing, UniqueOptions):
            existing = existing.model_dump(exclude_none=True)
        merged = UniqueOptions.from_mapping({**existing, **options})

        name = name or handler_name(handler)
        setattr(handler, OPTIONS_ATTR, merged.model_dump(exclude_none=True))
        self._registry[name] = CapableHandler(name, handler, merged)

        short_name = getattr(handler, "__name__", None)
        if short_name and short_name != name:
            names = self._aliases.setdefault(short_name, [])
            if name not in names:
                names.append(name)

        logger.debug(f"Registered unique handler {name}")
        return handler

    def handler(self, **options) -> Callable[[Any], Any]:
        """Decorator form of register_handler()."""

        def decorator(handler: Any) -> Any:
            return self.register_handler(handler, **options)

        return decorator

    def get_handler(self, name: str) -> HandlerDescriptor:
        """
        Resolve a handler name strictly.

        Raises:
            HandlerNotFoundError: If the name is neither registered nor importable
        """
        if name in self._registry:
            return self._registry[name]

        candidates = self._aliases.get(name, [])
        if len(candidates) == 1:
            return self._registry[candidates[0]]
        if len(candidates) > 1:
            raise HandlerNotFoundError(
                name,
                available_handlers=candidates,
                reason="short name is ambiguous",
            )

        if "." not in name:
            raise HandlerNotFoundError(
                name,
                available_handlers=self.get_all_handlers(),
                reason="not registered and not an import path",
            )

        return describe(name, import_handler(name))

    def lookup(self, name: str) -> HandlerDescriptor:
        """
        Resolve a handler name without raising.

        Returns:
            CapableHandler, NotCapableHandler, or UnresolvedHandler
        """
        try:
            return self.get_handler(name)
        except HandlerNotFoundError as e:
            logger.debug(
                f"Handler {name} could not be resolved: {e.context.get('reason')}",
                extra={"event": "handler.unresolved", "handler_class": name},
            )
            return UnresolvedHandler(name, e.context.get("reason", e.message))

    def get_all_handlers(self) -> List[str]:
        """Get all registered handler names."""
        return list(self._registry.keys())

    def remove_handler(self, name: str) -> bool:
        """
        Remove a handler from the registry.

        Returns:
            True if handler was removed, False if not found
        """
        if name not in self._registry:
            return False
        descriptor = self._registry.pop(name)
        short_name = getattr(descriptor.handler, "__name__", None)
        if short_name in self._aliases:
            self._aliases[short_name] = [
                n for n in self._aliases[short_name] if n != name
            ]
            if not self._aliases[short_name]:
                del self._aliases[short_name]
        return True

    def clear(self):
        """Clear all registered handlers. Primarily for testing."""
        self._registry.clear()
        self._aliases.clear()

    def __len__(self) -> int:
        return len(self._registry)

    def __contains__(self, name: str) -> bool:
        return name in self._registry


# Global registry used by the module-level decorator
_global_registry = HandlerRegistry()


def unique_handler(**options):
    """
    Global handler decorator.

    Registers the decorated handler with the global registry.

    Examples:
        @unique_handler(unique_args="unique_args_for", unique_prefix="reports")
        class ReportJob:
            @classmethod
            def unique_args_for(cls, args):
                return args[:1]
    """
    return _global_registry.handler(**options)


def get_global_registry() -> HandlerRegistry:
    """Get the global handler registry instance."""
    return _global_registry
