"""Persistent local cache: ORM models, engine helpers, migrations and the store."""
