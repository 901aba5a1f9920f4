"""Application configuration model."""

from pathlib import Path

from pydantic import BaseModel, Field, field_serializer, field_validator

from mixbridge.utils.persistence import PydanticPersistence

DEFAULT_CONFIG_DIR = Path.home() / ".mixbridge"


class AppConfig(BaseModel):
    """Application configuration and settings."""

    # Reconnection cadence
    midi_reconnect_interval: float = Field(
        default=3.0, gt=0, description="How often to retry preferred MIDI devices (seconds)"
    )
    mixer_reconnect_interval: float = Field(
        default=3.0, gt=0, description="How often to retry the preferred mixer (seconds)"
    )
    midi_availability_interval: float = Field(
        default=2.0, gt=0, description="How often to re-check MIDI port availability (seconds)"
    )

    # Mixer connection
    mixer_port: int = Field(default=53000, ge=1, le=65535, description="Mixer control port")
    connect_timeout: float = Field(default=10.0, gt=0, description="Mixer connect timeout (seconds)")
    discovery_timeout: float = Field(default=10.0, gt=0, description="Discovery scan duration (seconds)")
    mixer_client: str | None = Field(
        default=None,
        description=(
            "Import path of the mixer client factory ('package.module:callable'). "
            "The callable receives (host, port) and returns a MixerClient."
        ),
    )
    discovery_backend: str | None = Field(
        default=None,
        description="Import path of the discovery backend factory ('package.module:callable')",
    )

    # Change-detection pollers
    mute_group_poll_interval: float = Field(default=0.2, gt=0, description="Mute group poll period (seconds)")
    dca_poll_interval: float = Field(default=0.1, gt=0, description="DCA level poll period (seconds)")
    dca_change_tolerance: float = Field(
        default=0.1, ge=0, description="Minimum DCA level delta (0-100 scale) that counts as a change"
    )

    # Input source classification: upper bounds of analog, network and USB
    input_source_thresholds: tuple[float, float, float] = Field(
        default=(0.2, 0.5, 0.85),
        description="Float boundaries separating analog/network/USB/SD input sources",
    )

    # Session
    last_preset: Path | None = Field(default=None, description="Last loaded preset file")

    @field_validator("input_source_thresholds")
    @classmethod
    def validate_thresholds(cls, v: tuple[float, float, float]) -> tuple[float, float, float]:
        """Boundaries must be ascending."""
        if not v[0] < v[1] < v[2]:
            raise ValueError("thresholds must be strictly ascending")
        return v

    @field_serializer("last_preset")
    def serialize_path(self, path: Path | None) -> str | None:
        """Serialize Path to string."""
        return str(path) if path else None

    @classmethod
    def load_or_default(cls, path: Path | None = None) -> "AppConfig":
        """
        Load config from file or return default.

        Args:
            path: Path to config file. If None, uses ~/.mixbridge/config.json.

        Raises:
            ConfigFileInvalidError: If config file has invalid JSON syntax
            ConfigValidationError: If config values fail validation
        """
        if path is None:
            path = DEFAULT_CONFIG_DIR / "config.json"
        return PydanticPersistence.load_or_default(path, cls)

    def save(self, path: Path | None = None) -> None:
        """Save config to file."""
        if path is None:
            path = DEFAULT_CONFIG_DIR / "config.json"
        PydanticPersistence.save_json(self, path)
