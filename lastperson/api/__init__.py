"""HTTP API for the Last Person Standing engine."""
