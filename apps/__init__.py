"""
Apps package - FastAPI services of the storefront backend.

- order_service: order creation, order reads and delivery-note emails
"""
