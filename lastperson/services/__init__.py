"""Resolution, elimination and standings services."""
