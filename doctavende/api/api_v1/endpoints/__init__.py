"""
API v1 endpoints package.
Imports all endpoint modules for the API router.
"""

from . import (
    admin,
    auth,
    browse,
    dashboard,
)
