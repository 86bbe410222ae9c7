"""HTTP API for the splice service."""
