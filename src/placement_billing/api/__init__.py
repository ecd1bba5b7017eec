"""HTTP API for placement billing."""
