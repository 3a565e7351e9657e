"""
UniqueJobs Testing Utilities

Context managers that isolate the global handler registry and the global
instance while a test runs.
"""

import contextlib

import uniquejobs
from uniquejobs.client import UniqueJobs
from uniquejobs.core import registry as registry_module
from uniquejobs.core.registry import HandlerRegistry


@contextlib.contextmanager
def isolated_registry():
    """
    Swap in an empty global handler registry for the duration of the block.

    Example:
        from uniquejobs.testing import isolated_registry

        def test_handler_registration():
            with isolated_registry() as registry:
                @uniquejobs.handler(unique_args_enabled=True)
                class Mailer:
                    pass

                assert len(registry) == 1
    """
    original_registry = registry_module._global_registry
    original_app = uniquejobs._global_app
    registry = HandlerRegistry()
    registry_module._global_registry = registry
    uniquejobs._global_app = None
    try:
        yield registry
    finally:
        registry_module._global_registry = original_registry
        uniquejobs._global_app = original_app


@contextlib.contextmanager
def override_settings(**overrides):
    """
    Replace the global instance with one built from ``overrides``.

    The global handler registry is shared, so handlers registered before the
    block still resolve inside it.

    Example:
        with override_settings(default_prefix="test") as app:
            assert app.settings.default_prefix == "test"
    """
    original_app = uniquejobs._global_app
    app = UniqueJobs(registry=registry_module.get_global_registry(), **overrides)
    uniquejobs._global_app = app
    try:
        yield app
    finally:
        uniquejobs._global_app = original_app
