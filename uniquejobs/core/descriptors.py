"""
Handler descriptors

A handler either exposes uniqueness options (capable) or it does not. Names
that cannot be resolved to a handler at all get their own variant so the
argument filter can fall back without catching exceptions.
"""

import inspect
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

OPTIONS_ATTR = "unique_options"

FilterSpec = Union[None, bool, str, Callable[[list], Any]]

OPTION_FORMATS = {
    "unique_prefix": "non-empty string",
    "unique_on_all_queues": "bool",
    "unique_args_enabled": "bool",
    "unique_args": "bool, callable, or name of a handler method",
}


class UniqueOptions(BaseModel):
    """Per-handler uniqueness overrides. Every field may be absent."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore", frozen=True)

    unique_prefix: Optional[str] = None
    unique_on_all_queues: Optional[bool] = None
    unique_args_enabled: Optional[bool] = None
    unique_args: Any = None

    @field_validator("unique_args")
    @classmethod
    def validate_unique_args(cls, v):
        if v is None or isinstance(v, (bool, str)) or callable(v):
            return v
        raise ValueError("unique_args must be a bool, a callable or a method name")

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "UniqueOptions":
        """
        Build options from a plain mapping, rejecting values of the wrong type.

        Raises:
            ConfigurationError: If an option has an unsupported type
        """
        if isinstance(options, UniqueOptions):
            return options
        try:
            return cls.model_validate(dict(options))
        except ValidationError as e:
            first = e.errors()[0]
            setting = ".".join(str(part) for part in first.get("loc", ())) or "unique_options"
            raise ConfigurationError(
                setting=setting,
                value=first.get("input"),
                reason=first.get("msg", str(e)),
                expected=OPTION_FORMATS.get(setting),
            ) from e

    @property
    def filter_spec(self) -> FilterSpec:
        return self.unique_args


def collect_methods(handler: Any) -> Dict[str, Callable[..., Any]]:
    """Map public callable attributes of a handler to their bound form."""
    methods = {}
    for name, member in inspect.getmembers(handler):
        if name.startswith("_") or inspect.isclass(member):
            continue
        if callable(member):
            methods[name] = member
    return methods


class HandlerDescriptor:
    """Base descriptor: the handler object plus what it can do."""

    capable = False
    resolved = True

    def __init__(self, name: str, handler: Any = None):
        self.name = name
        self.handler = handler
        self._methods: Dict[str, Callable[..., Any]] = {}

    @property
    def options(self) -> UniqueOptions:
        return UniqueOptions()

    def find_method(self, method_name: str) -> Optional[Callable[..., Any]]:
        """Return the handler method registered under ``method_name``, or None."""
        return self._methods.get(method_name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class CapableHandler(HandlerDescriptor):
    """A handler exposing uniqueness options."""

    capable = True

    def __init__(self, name: str, handler: Any, options: UniqueOptions):
        super().__init__(name, handler)
        self._options = options
        self._methods = collect_methods(handler)

    @property
    def options(self) -> UniqueOptions:
        return self._options


class NotCapableHandler(HandlerDescriptor):
    """A loadable handler without uniqueness options."""


class UnresolvedHandler(NotCapableHandler):
    """A handler name that does not correspond to a loadable type."""

    resolved = False

    def __init__(self, name: str, reason: str):
        super().__init__(name, None)
        self.reason = reason


def describe(name: str, handler: Any) -> HandlerDescriptor:
    """
    Build the descriptor for a loaded handler object.

    Objects carrying a ``unique_options`` mapping are capable; other classes
    and callables are not. Anything else is not a handler type at all.
    """
    if not (inspect.isclass(handler) or callable(handler)):
        return UnresolvedHandler(name, f"{type(handler).__name__} is not a handler type")

    options = getattr(handler, OPTIONS_ATTR, None)
    if isinstance(options, (Mapping, UniqueOptions)):
        try:
            return CapableHandler(name, handler, UniqueOptions.from_mapping(options))
        except ConfigurationError as e:
            logger.warning(
                f"{name} has invalid {OPTIONS_ATTR}: {e.context['reason']}",
                extra={"event": "handler.invalid_options", "handler_class": name},
            )
            return UnresolvedHandler(name, e.context["reason"])

    logger.debug(
        f"{name} does not expose {OPTIONS_ATTR}",
        extra={"event": "handler.not_capable", "handler_class": name},
    )
    return NotCapableHandler(name, handler)
