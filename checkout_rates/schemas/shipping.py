"""
Shipping Schemas for the Shopify CarrierService callback

Pydantic models for the rate request Shopify posts and the rate list we return.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ==================== Request Schemas ====================


class ShopifyAddress(BaseModel):
    """Origin or destination address as sent by Shopify."""
    model_config = ConfigDict(extra="ignore")

    country: str = ""
    postal_code: str = ""
    province: Optional[str] = None
    city: Optional[str] = None
    name: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    address3: Optional[str] = None
    phone: Optional[str] = None
    company_name: Optional[str] = None

    @field_validator("country", "postal_code", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v


class ShopifyCartItem(BaseModel):
    """One line of the cart."""
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    sku: Optional[str] = None
    quantity: int = Field(1, ge=1)
    grams: float = Field(0, ge=0)
    price: int = 0
    vendor: Optional[str] = None
    requires_shipping: bool = True
    taxable: Optional[bool] = None
    fulfillment_service: Optional[str] = None
    properties: Dict[str, str] = Field(default_factory=dict)
    product_id: Optional[int] = None
    variant_id: Optional[int] = None

    @field_validator("properties", mode="before")
    @classmethod
    def normalize_properties(cls, v):
        # Shopify sends null when the line has no properties
        if v is None:
            return {}
        if isinstance(v, dict):
            return {str(k): "" if val is None else str(val) for k, val in v.items()}
        return v


class RateRequestBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    origin: Optional[ShopifyAddress] = None
    destination: ShopifyAddress
    items: List[ShopifyCartItem] = Field(default_factory=list)
    currency: str = "USD"
    locale: Optional[str] = None


class RateRequestPayload(BaseModel):
    """Top-level callback payload: {"rate": {...}}."""
    rate: RateRequestBody


# ==================== Response Schemas ====================


class ShippingRateOut(BaseModel):
    """A single priced shipping option."""
    service_name: str
    service_code: str
    total_price: str = Field(..., description="Integer cents as a string")
    description: Optional[str] = None
    currency: str = "USD"
    min_delivery_date: Optional[str] = None
    max_delivery_date: Optional[str] = None


class RateListResponse(BaseModel):
    """Callback response. An empty list means no options for this cart."""
    rates: List[ShippingRateOut] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Dict[str, Any]] = None
