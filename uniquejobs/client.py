"""
UniqueJobs Application Instance

Instance-based architecture: each UniqueJobs object owns its settings, handler
registry and digest computer, so several can coexist with independent defaults.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from .core.descriptors import HandlerDescriptor
from .core.digest import DigestComputer
from .core.policy import EffectivePolicy
from .core.registry import HandlerRegistry
from .core.submission import JobSubmission
from .settings import UniqueJobsSettings, load_settings

logger = logging.getLogger(__name__)


class UniqueJobs:
    """
    UniqueJobs Application

    Examples:
        # Default settings from UNIQUEJOBS_* environment variables
        app = UniqueJobs()

        # Custom configuration
        app = UniqueJobs(default_prefix="myapp", args_enabled_by_default=True)

        @app.handler(unique_args="unique_args_for")
        class ReportJob:
            @classmethod
            def unique_args_for(cls, args):
                return args[:1]

        digest = app.unique_digest({"class": "ReportJob", "queue": "low", "args": [7, "pdf"]})
    """

    def __init__(
        self,
        settings: Optional[UniqueJobsSettings] = None,
        config_file: Optional[Path] = None,
        registry: Optional[HandlerRegistry] = None,
        **settings_overrides,
    ):
        """
        Initialize a UniqueJobs instance.

        Args:
            settings: Ready-made settings (overrides are ignored when given)
            config_file: Optional dotenv-style configuration file
            registry: Handler registry to use (default: a new, empty one)
            **settings_overrides: Override any UniqueJobsSettings field
        """
        if settings is None:
            settings = load_settings(config_file=config_file, **settings_overrides)

        self._settings = settings
        self._registry = registry if registry is not None else HandlerRegistry()
        self._computer = DigestComputer(self._settings, self._registry)

        logger.debug(
            f"Created UniqueJobs instance with prefix: {self._settings.default_prefix}"
        )

    @property
    def settings(self) -> UniqueJobsSettings:
        return self._settings

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    @property
    def computer(self) -> DigestComputer:
        return self._computer

    def handler(self, **options) -> Callable[[Any], Any]:
        """
        Decorator to register a handler with uniqueness options.

        Args:
            unique_prefix: Namespace prefix for this handler's digests
            unique_on_all_queues: Leave the queue out of the digest
            unique_args_enabled: Filter and normalize arguments
            unique_args: True, a callable, or the name of a handler method
        """
        return self._registry.handler(**options)

    def register_handler(self, handler: Any, name: Optional[str] = None, **options) -> Any:
        return self._registry.register_handler(handler, name=name, **options)

    def lookup(self, handler_class: str) -> HandlerDescriptor:
        return self._registry.lookup(handler_class)

    def policy_for(self, handler_class: str) -> EffectivePolicy:
        """Effective policy for a handler name."""
        return self._computer.policy_for(self.lookup(handler_class))

    def prepare(self, submission: JobSubmission) -> JobSubmission:
        return self._computer.prepare(submission)

    def unique_digest(self, submission: Union[JobSubmission, Dict[str, Any]]) -> str:
        """
        Compute the digest for a submission or wire payload dict.

        Missing unique_prefix, unique_args and unique_digest values are written
        back onto the submission (or into the dict).
        """
        return self._computer.unique_digest(submission)

    def digest_payload(self, payload: Dict[str, Any]) -> str:
        return self._computer.digest_payload(payload)
