"""
Core of the personal notes store: credentials, the device session, the
per-user note repository and the list query engine.
"""

__version__ = "1.0.0"
