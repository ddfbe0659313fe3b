"""OSC wire layer (python-osc based)."""

from . import addresses
from .server import OscServer
from .transport import OscTransport, encode_message

__all__ = ["OscServer", "OscTransport", "addresses", "encode_message"]
