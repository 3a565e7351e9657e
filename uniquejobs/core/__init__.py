from .descriptors import (
    CapableHandler,
    HandlerDescriptor,
    NotCapableHandler,
    UniqueOptions,
    UnresolvedHandler,
)
from .digest import DigestComputer
from .filters import Fallback, Filtered, filter_unique_args
from .normalizer import normalize, normalize_args
from .policy import EffectivePolicy, resolve_policy
from .registry import HandlerRegistry, unique_handler
from .submission import JobSubmission

__all__ = [
    "CapableHandler",
    "DigestComputer",
    "EffectivePolicy",
    "Fallback",
    "Filtered",
    "HandlerDescriptor",
    "HandlerRegistry",
    "JobSubmission",
    "NotCapableHandler",
    "UniqueOptions",
    "UnresolvedHandler",
    "filter_unique_args",
    "normalize",
    "normalize_args",
    "resolve_policy",
    "unique_handler",
]
