"""Individual schema migration steps, one module per schema version."""
