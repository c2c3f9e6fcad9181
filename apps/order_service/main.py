"""
Order Service FastAPI application.

Environment Variables:
    DATABASE_URL: PostgreSQL connection string
    JWT_SECRET: Secret shared with the account service for bearer tokens
    SMTP_HOST / SMTP_PORT / SMTP_USER / SMTP_PASSWORD: Outbound mail relay
    SENDGRID_API_KEY: Fallback mail provider (optional)
    MAIL_FROM: Sender address for delivery notes
    STORE_NAME / STORE_CURRENCY_SYMBOL: Delivery-note branding
    ORDER_NOTIFICATIONS_ENABLED: Send delivery notes after order creation (default: true)
    LOG_LEVEL: Logging level (default: INFO)

Usage:
    $ uvicorn apps.order_service.main:app --reload --port 8010
"""

from apps.order_service.app_factory import create_app
from config.settings import get_settings
from libs.common.logging import configure_logging

configure_logging(service_name="order_service", log_level=get_settings().log_level)

app = create_app()
