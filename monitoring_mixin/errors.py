"""
Error types raised while compiling a mixin.

Every error aborts the whole build. Errors carry the product and SLI id
that caused them so the deployment driver can report them precisely.
"""
from typing import Optional


class ErrorCode:
    """Machine-readable error codes used across the compiler."""

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UNKNOWN_METRIC_TYPE = "UNKNOWN_METRIC_TYPE"
    MISSING_SPEC_FIELD = "MISSING_SPEC_FIELD"
    MALFORMED_SPEC = "MALFORMED_SPEC"

    # Plugin errors
    TARGET_METRIC_UNRESOLVED = "TARGET_METRIC_UNRESOLVED"

    # Output validation errors
    INVALID_RULES = "INVALID_RULES"
    INVALID_DASHBOARD = "INVALID_DASHBOARD"


class MixinError(Exception):
    """Base class for all build errors."""

    error_code = ErrorCode.CONFIGURATION_ERROR

    def __init__(
        self,
        message: str,
        product: Optional[str] = None,
        sli_id: Optional[str] = None
    ):
        self.message = message
        self.product = product
        self.sli_id = sli_id
        super().__init__(str(self))

    @property
    def location(self) -> Optional[str]:
        """Dotted product.sli_id location of the error, if known."""
        parts = [p for p in (self.product, self.sli_id) if p]
        return ".".join(parts) if parts else None

    def with_location(self, product: str, sli_id: Optional[str] = None) -> "MixinError":
        """Fill in product/SLI id when the raising code did not know them."""
        if self.product is None:
            self.product = product
        if self.sli_id is None:
            self.sli_id = sli_id
        self.args = (str(self),)
        return self

    def __str__(self) -> str:
        if self.location:
            return f"[{self.error_code}] {self.location}: {self.message}"
        return f"[{self.error_code}] {self.message}"


class MixinConfigurationError(MixinError):
    """Raised when the mixin definition cannot be used as given."""
    error_code = ErrorCode.CONFIGURATION_ERROR


class UnknownMetricTypeError(MixinConfigurationError):
    """Raised when an SLI names a metricType with no registered plugin."""
    error_code = ErrorCode.UNKNOWN_METRIC_TYPE


class MissingSpecFieldError(MixinConfigurationError):
    """Raised when a plugin requires a spec field that is absent."""
    error_code = ErrorCode.MISSING_SPEC_FIELD


class MalformedSpecError(MixinConfigurationError):
    """Raised when an SLI spec fails schema validation."""
    error_code = ErrorCode.MALFORMED_SPEC


class TargetMetricResolutionError(MixinError):
    """Raised when a plugin cannot resolve a target metric name."""
    error_code = ErrorCode.TARGET_METRIC_UNRESOLVED


class RuleValidationError(MixinError):
    """Raised when the aggregated rule documents are inconsistent."""
    error_code = ErrorCode.INVALID_RULES


class DashboardValidationError(MixinError):
    """Raised when a generated dashboard is structurally invalid."""
    error_code = ErrorCode.INVALID_DASHBOARD
