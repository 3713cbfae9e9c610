from checkout_rates.core.config import settings
from checkout_rates.core.cache import ExpiringCache
from checkout_rates.core.exceptions import (
    RatesBaseError,
    ShippingError,
    InvalidConfiguration,
    CarrierError,
    CarrierAuthError,
    CarrierRateError,
    CarrierTimeoutError,
    ConfigLoadError,
)
