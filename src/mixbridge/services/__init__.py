"""Application services."""

from .preset_service import DEFAULT_PRESETS_DIR, PresetStore

__all__ = ["DEFAULT_PRESETS_DIR", "PresetStore"]
