"""
Checkout Rates Exception Hierarchy

Structured exception classes for rate quoting and its collaborators.
All exceptions include code, message, and details for logging and debugging.

Exception Hierarchy:
    RatesBaseError
    ├── ShippingError
    │   └── InvalidConfiguration
    ├── CarrierError
    │   ├── CarrierAuthError
    │   ├── CarrierRateError
    │   └── CarrierTimeoutError
    └── ConfigLoadError
"""
import logging
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


class RatesBaseError(Exception):
    """
    Base exception for all checkout rates errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging
        severity: P0-P3 severity level
    """

    default_code: str = "RATES_ERROR"
    default_severity: str = "P2"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[str] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        self.severity = severity or self.default_severity
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "severity": self.severity,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


# =============================================================================
# SHIPPING ERRORS
# =============================================================================

class ShippingError(RatesBaseError):
    """Base exception for shipping-related errors."""
    default_code = "SHIPPING_ERROR"
    default_severity = "P1"


class InvalidConfiguration(ShippingError):
    """Box catalog or fee tables cannot produce a quote."""
    default_code = "INVALID_CONFIGURATION"
    default_severity = "P0"


# =============================================================================
# CARRIER ERRORS
# =============================================================================

class CarrierError(RatesBaseError):
    """Base exception for carrier API failures."""
    default_code = "CARRIER_ERROR"
    default_severity = "P1"

    def __init__(
        self,
        message: str,
        carrier: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details.update({
            "carrier": carrier,
            "status_code": status_code,
        })
        super().__init__(message, details=details, **kwargs)


class CarrierAuthError(CarrierError):
    """OAuth token could not be obtained."""
    default_code = "CARRIER_AUTH_FAILED"
    default_severity = "P0"


class CarrierRateError(CarrierError):
    """Rate request rejected or returned errors."""
    default_code = "CARRIER_RATE_FAILED"


class CarrierTimeoutError(CarrierError):
    """Rate request exceeded the configured timeout."""
    default_code = "CARRIER_TIMEOUT"


# =============================================================================
# CONFIG ERRORS
# =============================================================================

class ConfigLoadError(RatesBaseError):
    """Rate config store missing or unreadable."""
    default_code = "CONFIG_LOAD_FAILED"
    default_severity = "P0"

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details["path"] = path
        super().__init__(message, details=details, **kwargs)


