"""Host orchestration."""

from .host import SurfaceHost

__all__ = ["SurfaceHost"]
