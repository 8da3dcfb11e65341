"""
Organization settings.

One row of preferences per organization, created with defaults on first read.
"""

from . import models  # noqa: F401
