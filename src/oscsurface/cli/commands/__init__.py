"""CLI commands for oscsurface."""

from .config import config
from .demo import demo
from .serve import serve

__all__ = ["config", "demo", "serve"]
