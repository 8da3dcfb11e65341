"""
Catalog module.

Product master data and categories for each organization.
"""

from . import models  # noqa: F401
