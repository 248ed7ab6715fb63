"""Error handling with friendly messages.

User-facing validation failures are never raised; they are reported through
``ValidationResult``. Exceptions here cover configuration problems and
programming errors only.
"""

from __future__ import annotations


class AsBuiltError(Exception):
    """Base exception for all as-built engine errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(AsBuiltError):
    """Engine settings error."""

    pass


class ConfigurationMissingError(ConfigError):
    """No utility configuration is available for the wizard."""

    def __init__(self, utility_code: str | None = None) -> None:
        target = f"utility '{utility_code}'" if utility_code else "this job's utility"
        super().__init__(
            f"As-built configuration not found for {target}",
            "Contact your administrator to set up the utility configuration",
        )


class ConfigurationLoadError(AsBuiltError):
    """Utility configuration document is malformed."""

    pass


class UnknownWorkTypeError(AsBuiltError):
    """Work type code is not declared by the utility configuration."""

    def __init__(self, code: str, utility_code: str = "") -> None:
        super().__init__(
            f"Work type '{code}' is not defined for utility '{utility_code}'",
            "Pick one of the work types listed in the utility configuration",
        )


class UnknownStepError(AsBuiltError):
    """Step key is not part of the derived step list."""

    def __init__(self, key: str) -> None:
        super().__init__(
            f"Step '{key}' is not part of the current wizard",
            "Select a work type first; it determines which steps exist",
        )


class PreconditionError(AsBuiltError):
    """Operation invoked while its precondition does not hold."""

    pass
