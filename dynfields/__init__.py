"""dynfields: two-tier dynamic custom fields for user types and users."""

__version__ = "0.1.0"
