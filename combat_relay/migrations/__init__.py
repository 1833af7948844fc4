"""Schema migrations for the durable store."""
