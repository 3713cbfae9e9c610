"""
Checkout Shipping Rates

Shopify CarrierService backend: routes each cart to local delivery, carrier
quotes or freight forwarding, packs it into boxes and prices FedEx services
with handling and priority fees.
"""
__version__ = "1.0.0"
