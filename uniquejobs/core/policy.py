"""
Effective uniqueness policy

Merges a handler's uniqueness options over the global defaults. Pure
functions of their inputs; absent options fall back to the settings.
"""

from typing import NamedTuple

from ..settings import UniqueJobsSettings
from .descriptors import FilterSpec, HandlerDescriptor


class EffectivePolicy(NamedTuple):
    prefix: str
    args_enabled: bool
    filter_on_all_queues: bool
    filter_spec: FilterSpec


def resolve_prefix(descriptor: HandlerDescriptor, settings: UniqueJobsSettings) -> str:
    """Handler prefix when set and non-empty, otherwise the default prefix."""
    if not descriptor.capable:
        return settings.default_prefix
    return descriptor.options.unique_prefix or settings.default_prefix


def args_enabled_in_handler(descriptor: HandlerDescriptor) -> bool:
    # Either option turns argument filtering on
    if not descriptor.capable:
        return False
    options = descriptor.options
    return bool(options.unique_args_enabled or options.unique_args)


def args_enabled(descriptor: HandlerDescriptor, settings: UniqueJobsSettings) -> bool:
    return args_enabled_in_handler(descriptor) or bool(settings.args_enabled_by_default)


def all_queues(descriptor: HandlerDescriptor, settings: UniqueJobsSettings) -> bool:
    """Whether the queue is left out of the digest. Needs a capable handler with args enabled."""
    if not descriptor.capable or not args_enabled(descriptor, settings):
        return False
    return bool(descriptor.options.unique_on_all_queues)


def filter_spec(descriptor: HandlerDescriptor) -> FilterSpec:
    if not descriptor.capable:
        return None
    return descriptor.options.filter_spec


def resolve_policy(
    descriptor: HandlerDescriptor, settings: UniqueJobsSettings
) -> EffectivePolicy:
    """
    Compute the effective policy for one submission.

    Args:
        descriptor: Resolved handler descriptor
        settings: Global uniqueness configuration

    Returns:
        EffectivePolicy
    """
    return EffectivePolicy(
        prefix=resolve_prefix(descriptor, settings),
        args_enabled=args_enabled(descriptor, settings),
        filter_on_all_queues=all_queues(descriptor, settings),
        filter_spec=filter_spec(descriptor),
    )
