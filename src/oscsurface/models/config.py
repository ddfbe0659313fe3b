"""Application configuration model."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from oscsurface.utils.persistence import PydanticPersistence

from .enums import WireFormat

DEFAULT_CONFIG_PATH = Path.home() / ".oscsurface" / "config.json"

# Largest device a client may ask for. A 64x64 surface is 4096 hex digits,
# well inside one UDP datagram.
MAX_SURFACE_SIDE = 64
MAX_RING_COUNT = 8
MAX_RING_LEDS = 256


class SurfaceConfig(BaseModel):
    """Defaults for virtual grid surfaces."""

    cols: int = Field(default=16, ge=1, le=MAX_SURFACE_SIDE, description="Physical columns when the client sends none")
    rows: int = Field(default=8, ge=1, le=MAX_SURFACE_SIDE, description="Physical rows when the client sends none")
    refresh_interval: float = Field(
        default=1 / 30,
        gt=0,
        description="Minimum seconds between two transmits of the same surface",
    )
    wire_format: WireFormat = Field(
        default=WireFormat.BULK,
        description="LED serialisation: 'bulk' hex string or serialosc 'level_map' quads",
    )

    @staticmethod
    def accepts(cols: int | None, rows: int | None) -> bool:
        """Whether a requested size is allowed (None means use the default)."""
        return (cols or 1) <= MAX_SURFACE_SIDE and (rows or 1) <= MAX_SURFACE_SIDE


class RingConfig(BaseModel):
    """Defaults for virtual encoder ring devices."""

    ring_count: int = Field(default=4, ge=1, le=MAX_RING_COUNT, description="Encoders when the client sends none")
    leds_per_ring: int = Field(default=64, ge=1, le=MAX_RING_LEDS, description="LEDs around each ring")
    position_scale: float = Field(
        default=500.0,
        gt=0,
        description="Delta ticks per full turn reported by absolute-position knobs",
    )

    @staticmethod
    def accepts(ring_count: int | None, leds_per_ring: int | None) -> bool:
        return (ring_count or 1) <= MAX_RING_COUNT and (leds_per_ring or 1) <= MAX_RING_LEDS


class AppConfig(BaseModel):
    """Host configuration and settings."""

    # Network
    host: str = Field(default="0.0.0.0", description="Address the OSC server binds to")
    port: int = Field(default=10111, ge=1, le=65535, description="UDP port the OSC server listens on")
    prefix: str = Field(default="/oscsurface", description="Global OSC prefix for TouchOSC button paths")
    bulk_path: str = Field(default="/oscsurface_bulk", description="OSC address for bulk surface updates")

    # Slots
    max_slots: int = Field(default=4, ge=1, le=16, description="Slots per device category")

    # Event loop
    poll_interval: float = Field(
        default=0.01, gt=0, description="Seconds the host waits for a datagram before ticking"
    )
    max_staleness: float | None = Field(
        default=None,
        description=(
            "Force a transmit when surface changes have been pending this many seconds "
            "without a refresh() call (None = keep them buffered until the next refresh)"
        ),
    )

    surface: SurfaceConfig = Field(default_factory=SurfaceConfig)
    ring: RingConfig = Field(default_factory=RingConfig)

    @field_validator("prefix", "bulk_path")
    @classmethod
    def validate_osc_path(cls, v: str) -> str:
        """OSC addresses must start with a slash and not end with one."""
        if not v.startswith("/") or (len(v) > 1 and v.endswith("/")):
            raise ValueError(f"'{v}' is not a valid OSC address")
        return v

    @field_validator("max_staleness")
    @classmethod
    def validate_staleness(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("max_staleness must be positive (or null to disable)")
        return v

    @classmethod
    def load_or_default(cls, path: Path | None = None) -> "AppConfig":
        """
        Load config from file, creating the file with defaults if it is missing.

        Args:
            path: Path to config file. If None, uses ~/.oscsurface/config.json.

        Raises:
            ConfigurationError: If the file exists but cannot be used
        """
        if path is None:
            path = DEFAULT_CONFIG_PATH
        return PydanticPersistence.load_or_create(path, cls)

    def save(self, path: Path | None = None) -> None:
        """Save config to file."""
        PydanticPersistence.save_json(self, path or DEFAULT_CONFIG_PATH)
