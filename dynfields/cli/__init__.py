"""Command line interface for dynfields."""
