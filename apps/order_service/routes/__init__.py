"""HTTP routers for the Order Service."""
