"""HTTP API for pictorium."""
