"""
Order Service - storefront order fulfillment.

Turns a submitted cart into a durable order record, a printable delivery
note and an outbound email, and serves the order read paths.

Components:
- line_validator: untyped request body -> ValidatedOrder (fail fast, no writes)
- authorization: single guard for owner/admin access decisions
- transaction: atomic header + lines insert with in-transaction re-read
- composition: composed-order assembly (frozen names, live catalog prices)
- document_builder: deterministic PDF delivery note
- notification: delivery-note email through the shared email channel
- pipeline: durable phase then best-effort phase
- query_service: read paths and document resend
- routes: FastAPI endpoints
"""

__version__ = "0.1.0"
