"""Custom exceptions for the CSSD guideline package.

The guideline engine itself is permissive and never raises for malformed
numeric input. These exceptions cover the boundaries around it: strict
input policies, configuration, and worksheet template filling. All of
them inherit from CssdError.

Example:
    try:
        data = GuidelineInput.from_form(form, negative_policy="reject")
    except ValidationError as e:
        show_field_error(e.field, e.message)
    except CssdError as e:
        logger.error("guideline_failed", error=str(e))
"""

from typing import Any, Optional


class CssdError(Exception):
    """Base exception for all CSSD guideline errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
        recoverable: Whether the error is potentially recoverable.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        """Initialize CssdError.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context about the error.
            recoverable: Whether the error can be fixed by the caller
                (for example by correcting form input). Defaults to False.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation of the error."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )


class ValidationError(CssdError):
    """Error raised when guideline input violates a strict input policy.

    Only raised when the caller opts into rejection (for example
    ``NegativeInputPolicy.REJECT``); the default policy clamps instead.

    Attributes:
        field: The input field that failed validation.
        value: The offending value.
        constraint: The rule that was violated.

    Example:
        >>> raise ValidationError(
        ...     "Gross income cannot be negative",
        ...     field="mother_gross_annual",
        ...     value=-100,
        ...     constraint=">= 0",
        ... )
        ValidationError: Gross income cannot be negative
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraint: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.field = field
        self.value = value
        self.constraint = constraint

        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = value
        if constraint:
            self.details["constraint"] = constraint


class ConfigurationError(CssdError):
    """Error raised when configuration is invalid or missing.

    Attributes:
        config_key: The configuration key that is problematic.
        expected: Description of the expected value or format.
        actual: The actual value found (if any).
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.config_key = config_key
        self.expected = expected
        self.actual = actual

        if config_key:
            self.details["config_key"] = config_key
        if expected:
            self.details["expected"] = expected
        if actual is not None:
            self.details["actual"] = actual


class TemplateError(CssdError):
    """Error raised when a worksheet PDF template cannot be filled.

    Attributes:
        template: Path or identifier of the template.
        field: The form field involved (if applicable).

    Example:
        >>> raise TemplateError(
        ...     "Worksheet template not found",
        ...     template="templates/WorksheetA-template.pdf",
        ... )
        TemplateError: Worksheet template not found
    """

    def __init__(
        self,
        message: str,
        *,
        template: Optional[str] = None,
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.template = template
        self.field = field

        if template:
            self.details["template"] = template
        if field:
            self.details["field"] = field


__all__ = [
    "CssdError",
    "ValidationError",
    "ConfigurationError",
    "TemplateError",
]
