"""
UniqueJobs Exception Classes
Provides clear, actionable error messages for misconfigured handlers and settings.
"""

from typing import Any, Dict, List, Optional


class UniqueJobsError(Exception):
    """
    Base exception class for all UniqueJobs errors.

    Provides structured error information and actionable guidance.
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        documentation_url: Optional[str] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.suggestions = suggestions or []
        self.documentation_url = documentation_url

        super().__init__(self._format_error_message())

    def _format_error_message(self) -> str:
        """Format a comprehensive error message."""
        lines = [f"UniqueJobs Error [{self.error_code}]: {self.message}"]

        if self.context:
            lines.append("\nContext:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestions:
            lines.append("\nSuggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  • {suggestion}")

        if self.documentation_url:
            lines.append(f"\nDocumentation: {self.documentation_url}")

        return "\n".join(lines)


class HandlerNotFoundError(UniqueJobsError):
    """Raised when a handler class name cannot be resolved to a loadable type."""

    def __init__(
        self,
        handler_class: str,
        available_handlers: Optional[List[str]] = None,
        reason: Optional[str] = None,
    ):
        context = {
            "handler_class": handler_class,
            "available_handlers": available_handlers or [],
        }
        if reason:
            context["reason"] = reason

        suggestions = [
            f"Ensure handler '{handler_class}' is decorated with @uniquejobs.handler()",
            "Check that the module containing the handler is imported",
            "Use a fully qualified 'package.module.ClassName' path for unregistered handlers",
        ]

        if available_handlers:
            suggestions.append(f"Available handlers: {', '.join(available_handlers)}")

        super().__init__(
            message=f"Handler '{handler_class}' could not be resolved",
            error_code="HANDLER_NOT_FOUND",
            context=context,
            suggestions=suggestions,
        )


class ConfigurationError(UniqueJobsError):
    """Raised when configuration or uniqueness options are invalid."""

    def __init__(
        self, setting: str, value: Any, reason: str, expected: Optional[str] = None
    ):
        context = {
            "setting": setting,
            "provided_value": str(value) if value is not None else "None",
            "reason": reason,
        }

        if expected:
            context["expected"] = expected

        suggestions = [
            f"Check {setting} configuration value",
            "Verify UNIQUEJOBS_* environment variables are set correctly",
            "Ensure configuration values are of correct type",
        ]

        if expected:
            suggestions.append(f"Expected format: {expected}")

        super().__init__(
            message=f"Configuration error for '{setting}': {reason}",
            error_code="CONFIGURATION_ERROR",
            context=context,
            suggestions=suggestions,
        )
