"""HTTP API for dynfields."""
