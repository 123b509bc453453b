"""API routers for dynfields."""
