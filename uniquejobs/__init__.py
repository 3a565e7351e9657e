"""
UniqueJobs: uniqueness digests for background job queues

Simple global usage:

    import uniquejobs

    @uniquejobs.handler(unique_args="unique_args_for", unique_on_all_queues=True)
    class ReportJob:
        @classmethod
        def unique_args_for(cls, args):
            return args[:1]

    digest = uniquejobs.unique_digest(
        {"class": "ReportJob", "queue": "low", "args": [7, "pdf"]}
    )

Instance-based usage for isolated configurations:

    app = UniqueJobs(default_prefix="myapp")

    @app.handler(unique_args_enabled=True)
    class Mailer:
        pass

    submission = JobSubmission(handler_class="Mailer", args=["a@example.com"])
    app.prepare(submission)
    submission.unique_digest
"""

from typing import Any, Dict, Optional, Union

from .client import UniqueJobs
from .core.descriptors import UniqueOptions
from .core.filters import Fallback, Filtered
from .core.policy import EffectivePolicy
from .core.registry import get_global_registry, unique_handler
from .core.submission import JobSubmission
from .errors import ConfigurationError, HandlerNotFoundError, UniqueJobsError
from .settings import UniqueJobsSettings, get_settings
from .utils.logging import configure_logging

__version__ = "0.1.0"

# Global UniqueJobs instance for convenience API
_global_app: Optional[UniqueJobs] = None

__all__ = [
    # Core classes
    "UniqueJobs",
    "JobSubmission",
    "UniqueOptions",
    "EffectivePolicy",
    "Filtered",
    "Fallback",
    "UniqueJobsSettings",
    # Errors
    "UniqueJobsError",
    "ConfigurationError",
    "HandlerNotFoundError",
    # Global convenience API
    "handler",
    "unique_handler",
    "configure",
    "prepare",
    "unique_digest",
]


def _get_global_app() -> UniqueJobs:
    """
    Get or create the global UniqueJobs instance.

    The global app is created lazily on first use with cached settings and
    shares the global handler registry.
    """
    global _global_app

    if _global_app is None:
        _global_app = UniqueJobs(
            settings=get_settings(), registry=get_global_registry()
        )

    return _global_app


def configure(**kwargs) -> UniqueJobs:
    """
    Configure the global UniqueJobs instance.

    Handlers registered through ``uniquejobs.handler()`` stay registered and
    the ``uniquejobs`` logger is set up from the new settings.

    Args:
        **kwargs: Overrides for any UniqueJobsSettings field

    Examples:
        import uniquejobs

        uniquejobs.configure(default_prefix="myapp", args_enabled_by_default=True)
    """
    global _global_app

    _global_app = UniqueJobs(registry=get_global_registry(), **kwargs)
    configure_logging(_global_app.settings)
    return _global_app


def handler(**options):
    """
    Global handler decorator.

    Equivalent to app.handler() on the global UniqueJobs instance.

    Examples:
        import uniquejobs

        @uniquejobs.handler(unique_prefix="mail", unique_args_enabled=True)
        class Mailer:
            pass
    """
    return unique_handler(**options)


def prepare(submission: JobSubmission) -> JobSubmission:
    """Populate a submission's unique fields using the global instance."""
    return _get_global_app().prepare(submission)


def unique_digest(submission: Union[JobSubmission, Dict[str, Any]]) -> str:
    """
    Compute a digest using the global instance.

    Examples:
        import uniquejobs

        digest = uniquejobs.unique_digest(
            {"class": "Mailer", "queue": "default", "args": [1, "x"]}
        )
    """
    return _get_global_app().unique_digest(submission)
