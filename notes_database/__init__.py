"""Durable string-keyed record store backed by SQLAlchemy."""
