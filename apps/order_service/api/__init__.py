"""API-level helpers (authentication) for the Order Service."""
