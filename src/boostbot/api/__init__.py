"""HTTP API for the boost relay."""
