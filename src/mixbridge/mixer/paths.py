"""Mixer state paths and decoders for the raw values stored under them.

The mixer client keeps a flat state tree addressed by dotted paths such as
``line.ch1.mute``. Values arrive in several shapes: plain numbers, strings,
or 4-byte little-endian float buffers.
"""

import struct
from typing import Any

MUTE_GROUP_COUNT = 8
DCA_COUNT = 8
DEFAULT_INPUT_SOURCE_THRESHOLDS: tuple[float, float, float] = (0.2, 0.5, 0.85)

# Input source categories
INPUT_ANALOG = 0
INPUT_NETWORK = 1
INPUT_USB = 2
INPUT_SD_CARD = 3


def channel_path(channel_type: str, channel: int, leaf: str) -> str:
    return f"{channel_type.lower()}.ch{channel}.{leaf}"


def name_path(channel_type: str, channel: int) -> str:
    """DCA names live under ``filtergroup``, auto-filter groups under ``autofiltergroup``."""
    kind = channel_type.lower()
    if kind == "dca":
        return f"filtergroup.ch{channel}.name"
    if kind == "autofilter":
        return f"autofiltergroup.ch{channel}.name"
    return channel_path(kind, channel, "username")


def dca_assign_path(dca: int) -> str:
    return f"filtergroup.ch{dca}.assign"


def auto_filter_assign_path(group: int) -> str:
    return f"autofiltergroup.ch{group}.assign"


def mute_group_state_path(group: int) -> str:
    return f"mutegroup/mutegroup{group}"


def mute_group_name_path(group: int) -> str:
    return f"mutegroup.mutegroup{group}username"


def mute_group_mutes_path(group: int) -> str:
    return f"mutegroup.mutegroup{group}mutes"


def decode_float(value: Any) -> float | None:
    """Number, numeric string or 4-byte LE float buffer -> float; None if undecodable."""
    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if len(raw) < 4:
            return None
        return struct.unpack("<f", raw[:4])[0]
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def decode_bool(value: Any) -> bool | None:
    """Non-zero -> True; None when unset or undecodable."""
    number = decode_float(value)
    if number is None:
        return None
    return number != 0.0


def clean_name(raw: Any, channel_type: str, channel: int) -> str:
    """Strip the ``"1:"`` index prefix and DCA ``"~"`` marker; fall back to ``Ch N``."""
    if not isinstance(raw, str) or not raw.strip():
        return f"Ch {channel}"
    name = raw.strip()
    if channel_type.lower() == "dca" and name.startswith("~"):
        name = name[1:]
    prefix, sep, rest = name.partition(":")
    if sep and prefix.strip().isdigit():
        name = rest
    return name.strip() or f"Ch {channel}"


def format_color(value: Any) -> str | None:
    """Integer RGB -> ``#rrggbb``; strings pass through; None when unset."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, (int, float)):
        return f"#{int(value) & 0xFFFFFF:06x}"
    return None


def classify_input_source(
    value: Any, thresholds: tuple[float, float, float] = DEFAULT_INPUT_SOURCE_THRESHOLDS
) -> int | None:
    """
    Map the continuous input-source float to a discrete category.

    Returns INPUT_ANALOG, INPUT_NETWORK, INPUT_USB or INPUT_SD_CARD, or None if unset.
    """
    number = decode_float(value)
    if number is None:
        return None
    analog, network, usb = thresholds
    if number < analog:
        return INPUT_ANALOG
    if number < network:
        return INPUT_NETWORK
    if number < usb:
        return INPUT_USB
    return INPUT_SD_CARD


def parse_assignments(value: Any) -> list[int]:
    """Bit string like ``"1101"`` -> 1-based positions of the set bits."""
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("ascii", errors="ignore")
    if not isinstance(value, str):
        return []
    return [index + 1 for index, bit in enumerate(value) if bit == "1"]


def normalize_dca_level(raw: float) -> float:
    """
    Normalize a raw DCA reading to 0-100.

    Readings up to 1.0 are fractions (scaled, one decimal); larger ones
    are already percentages and are clamped.
    """
    if raw <= 1.0:
        return round(max(raw, 0.0) * 100, 1)
    return min(raw, 100.0)
