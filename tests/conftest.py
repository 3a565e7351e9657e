import os

import pytest

import uniquejobs
from uniquejobs import settings as settings_module
from uniquejobs.core.digest import DigestComputer
from uniquejobs.core.registry import HandlerRegistry
from uniquejobs.settings import UniqueJobsSettings


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate each test from UNIQUEJOBS_* variables and cached global state."""
    for key in list(os.environ):
        if key.startswith("UNIQUEJOBS_"):
            monkeypatch.delenv(key)

    settings_module._settings = None
    uniquejobs._global_app = None
    yield
    settings_module._settings = None
    uniquejobs._global_app = None


@pytest.fixture
def settings():
    return UniqueJobsSettings(default_prefix="uniquejobs", args_enabled_by_default=False)


@pytest.fixture
def registry():
    return HandlerRegistry()


@pytest.fixture
def computer(settings, registry):
    return DigestComputer(settings, registry)
