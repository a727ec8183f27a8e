"""HTTP routers of the time tracker."""

from . import admin, controlling, default, interpretation, tracking

__all__ = ["admin", "controlling", "default", "interpretation", "tracking"]
