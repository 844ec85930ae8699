"""Routers package."""

from . import (
    health,
    auth,
    admin,
    generate,
)
