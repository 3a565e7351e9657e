"""
Argument filtering

Reduces a submission's arguments to the ones that count toward uniqueness.
The result type tells callers whether filtering ran or fell back to the raw
arguments.

Callback and method filters run synchronously on the enqueueing thread, so a
slow filter delays enqueue. Exceptions raised by a callback filter propagate
to the caller.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Sequence, Union

from .descriptors import HandlerDescriptor
from .normalizer import normalize_args
from .policy import EffectivePolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Filtered:
    """Arguments produced by the configured filter branch."""

    args: Any
    branch: str


@dataclass(frozen=True)
class Fallback:
    """Raw arguments passed through because the handler could not be resolved."""

    args: Sequence[Any]
    reason: str
    branch: str = "unresolved"


FilterResult = Union[Filtered, Fallback]


def filter_unique_args(
    args: Sequence[Any], descriptor: HandlerDescriptor, policy: EffectivePolicy
) -> FilterResult:
    """
    Select the arguments that take part in the digest.

    Args:
        args: Raw positional arguments of the submission
        descriptor: Resolved handler descriptor
        policy: Effective policy for this submission

    Returns:
        Filtered with the selected arguments, or Fallback with ``args``
        unchanged when the handler is unresolved
    """
    name = descriptor.name

    if not descriptor.resolved:
        level = logging.WARNING if policy.args_enabled else logging.DEBUG
        logger.log(
            level,
            f"unique_args : {name} could not be resolved ({descriptor.reason}), "
            f"using {args} unfiltered",
            extra={
                "event": "unique_args.unresolved",
                "handler_class": name,
                "raw_args": args,
            },
        )
        return Fallback(args=args, reason=descriptor.reason)

    if not policy.args_enabled:
        logger.debug(
            "unique_args : unique arguments disabled",
            extra={
                "event": "unique_args.disabled",
                "handler_class": name,
                "raw_args": args,
            },
        )
        return Filtered(args=args, branch="disabled")

    if not args:
        logger.debug(
            "unique_args : no arguments to filter",
            extra={"event": "unique_args.empty", "handler_class": name},
        )
        return Filtered(args=args, branch="empty")

    json_args = normalize_args(args)
    logger.debug(
        f"filtered_args : {args} => {json_args}",
        extra={
            "event": "unique_args.normalized",
            "handler_class": name,
            "raw_args": args,
            "normalized_args": json_args,
        },
    )

    spec = policy.filter_spec
    if isinstance(spec, str):
        return filter_by_method(json_args, descriptor, spec)
    if callable(spec):
        return filter_by_callback(json_args, descriptor, spec)

    logger.debug(
        "arguments not filtered (the combined arguments count towards uniqueness)",
        extra={
            "event": "unique_args.unfiltered",
            "handler_class": name,
            "normalized_args": json_args,
        },
    )
    return Filtered(args=json_args, branch="unfiltered")


def filter_by_callback(
    args: List[Any], descriptor: HandlerDescriptor, callback
) -> Filtered:
    filtered = callback(args)
    logger.debug(
        f"filter_by_callback : {args} -> {filtered}",
        extra={
            "event": "unique_args.callback",
            "handler_class": descriptor.name,
            "normalized_args": args,
            "unique_args": filtered,
        },
    )
    return Filtered(args=filtered, branch="callback")


def filter_by_method(
    args: List[Any], descriptor: HandlerDescriptor, method_name: str
) -> Filtered:
    method = descriptor.find_method(method_name)
    if method is None:
        logger.warning(
            f"filter_by_method : {method_name} not defined in {descriptor.name}, "
            f"returning {args} unchanged",
            extra={
                "event": "unique_args.method_missing",
                "handler_class": descriptor.name,
                "method": method_name,
                "normalized_args": args,
            },
        )
        return Filtered(args=args, branch="method_missing")

    filtered = method(args)
    logger.debug(
        f"filter_by_method : {method_name}({args}) => {filtered}",
        extra={
            "event": "unique_args.method",
            "handler_class": descriptor.name,
            "method": method_name,
            "normalized_args": args,
            "unique_args": filtered,
        },
    )
    return Filtered(args=filtered, branch="method")
