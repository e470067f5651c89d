"""HTTP API for the Rollcall service."""
