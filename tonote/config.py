"""
Settings and logging setup for toNote.

Settings live in ~/.tonote/settings.json and are merged over
DEFAULT_SETTINGS, so new keys pick up their defaults automatically.
"""
import copy
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".tonote" / "settings.json"

DEFAULT_SETTINGS: Dict[str, Dict[str, Any]] = {
    "general": {
        "undo_limit": 100,
        "log_level": "INFO",
    },
    "audio": {
        "sample_rate": 12000,
        "channels": 1,
        "dtype": "int16",
        "input_device": None,  # None = system default
        "output_device": None,
        "tick_interval": 0.1,  # seconds per recording tick
    },
}


@dataclass(frozen=True)
class AudioSettings:
    """
    Capture and playback configuration.

    Attributes:
        sample_rate: Capture sample rate (Hz)
        channels: Number of capture channels
        dtype: Sample format for the audio device ("int16" or "int32")
        input_device: Capture device name or index (None = default)
        output_device: Playback device name or index (None = default)
        tick_interval: Recording tick period in seconds
    """
    sample_rate: int = 12000
    channels: int = 1
    dtype: str = "int16"
    input_device: Optional[Union[str, int]] = None
    output_device: Optional[Union[str, int]] = None
    tick_interval: float = 0.1

    def __post_init__(self):
        """Validate audio settings."""
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        if self.channels <= 0:
            raise ValueError(f"Channels must be positive, got {self.channels}")
        if self.dtype not in ("int16", "int32"):
            raise ValueError(f"Unsupported sample format: {self.dtype}")
        if self.tick_interval <= 0:
            raise ValueError(f"Tick interval must be positive, got {self.tick_interval}")

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> "AudioSettings":
        """Build from the 'audio' section of a settings dictionary."""
        audio = {**DEFAULT_SETTINGS["audio"], **settings.get("audio", {})}
        return cls(
            sample_rate=int(audio["sample_rate"]),
            channels=int(audio["channels"]),
            dtype=audio["dtype"],
            input_device=audio["input_device"],
            output_device=audio["output_device"],
            tick_interval=float(audio["tick_interval"]),
        )


def load_settings(path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    """
    Load settings from the config file.

    A missing file is created with the defaults. An unreadable file is
    logged and the defaults are used.

    Args:
        path: Settings file (defaults to ~/.tonote/settings.json)

    Returns:
        Settings dictionary keyed by category
    """
    config_path = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
    settings = copy.deepcopy(DEFAULT_SETTINGS)

    if not config_path.exists():
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w") as f:
                json.dump(settings, f, indent=2)
            logger.info("Created new settings file with defaults at %s", config_path)
        except OSError as e:
            logger.warning("Failed to save default settings to %s: %s", config_path, e)
        return settings

    try:
        with open(config_path, "r") as f:
            loaded = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Failed to load settings from %s: %s", config_path, e)
        return settings

    if not isinstance(loaded, dict):
        logger.warning("Ignoring settings file %s: top level is not an object", config_path)
        return settings

    # Merge with defaults (in case new settings added)
    for category, values in loaded.items():
        if isinstance(values, dict):
            settings.setdefault(category, {}).update(values)
        else:
            logger.warning("Ignoring settings category %r: not an object", category)

    return settings


def setup_logging(level: Union[int, str] = logging.INFO):
    """Configure root logging for the toNote entry point."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
