"""Local HTTP API over the personal note store."""
