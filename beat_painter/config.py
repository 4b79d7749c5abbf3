"""
Beat Painter - Settings

Read once at startup from an optional JSON file, then environment variables
(which win). Anything missing or invalid falls back to the default - a bad
setting should never stop the painting from opening.

    ~/.config/beat-painter/config.json
    {
        "export_dir": "~/Pictures",
        "serial_port": "/dev/ttyACM0",
        "serial_baudrate": 9600,
        "fill_estimator": "fixed",
        "use_evdev": true,
        "log_level": "INFO"
    }

Environment:
    BEAT_PAINTER_EXPORT_DIR, BEAT_PAINTER_SERIAL_PORT, BEAT_PAINTER_SERIAL_BAUD,
    BEAT_PAINTER_FILL_ESTIMATOR, BEAT_PAINTER_LOG_LEVEL,
    BEAT_PAINTER_NO_EVDEV=1 (terminal key detection only),
    BEAT_PAINTER_DEBUG=1 (start with the simulated controls on)
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .hardware import DEFAULT_BAUD

logger = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".config" / "beat-painter" / "config.json"

FILL_ESTIMATORS = ("fixed", "coverage")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class Settings:
    export_dir: Path = field(default_factory=Path.cwd)
    serial_port: Optional[str] = None
    serial_baudrate: int = DEFAULT_BAUD
    fill_estimator: str = "fixed"
    use_evdev: bool = True
    log_level: str = "INFO"
    start_in_debug: bool = False


def _env_flag(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in ("1", "true", "yes", "on")


def load_config_file(path: Path = CONFIG_FILE) -> dict:
    """Load the JSON settings file. Missing or unreadable means no settings."""
    if path.exists():
        try:
            data = json.loads(path.read_text())
            if isinstance(data, dict):
                return data
            logger.warning(f"Ignoring {path}: expected a JSON object")
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring {path}: {e}")
    return {}


def load_settings(path: Path = CONFIG_FILE, environ: Optional[dict] = None) -> Settings:
    """Build Settings from the config file and environment."""
    if environ is None:
        environ = os.environ
    data = load_config_file(path)
    defaults = Settings()

    export_dir = environ.get("BEAT_PAINTER_EXPORT_DIR") or data.get("export_dir")
    export_path = Path(export_dir).expanduser() if export_dir else defaults.export_dir

    serial_port = environ.get("BEAT_PAINTER_SERIAL_PORT") or data.get("serial_port") or None

    baud_raw = environ.get("BEAT_PAINTER_SERIAL_BAUD", data.get("serial_baudrate"))
    baudrate = defaults.serial_baudrate
    if baud_raw is not None:
        try:
            baudrate = int(baud_raw)
            if baudrate <= 0:
                raise ValueError(baud_raw)
        except (TypeError, ValueError):
            logger.warning(f"Invalid serial baud rate {baud_raw!r}, using {defaults.serial_baudrate}")
            baudrate = defaults.serial_baudrate

    estimator = str(environ.get("BEAT_PAINTER_FILL_ESTIMATOR", data.get("fill_estimator", defaults.fill_estimator))).lower()
    if estimator not in FILL_ESTIMATORS:
        logger.warning(f"Unknown fill estimator {estimator!r}, using {defaults.fill_estimator}")
        estimator = defaults.fill_estimator

    log_level = str(environ.get("BEAT_PAINTER_LOG_LEVEL", data.get("log_level", defaults.log_level))).upper()
    if log_level not in LOG_LEVELS:
        logger.warning(f"Unknown log level {log_level!r}, using {defaults.log_level}")
        log_level = defaults.log_level

    use_evdev = bool(data.get("use_evdev", defaults.use_evdev))
    if _env_flag(environ.get("BEAT_PAINTER_NO_EVDEV")):
        use_evdev = False

    return Settings(
        export_dir=export_path,
        serial_port=serial_port,
        serial_baudrate=baudrate,
        fill_estimator=estimator,
        use_evdev=use_evdev,
        log_level=log_level,
        start_in_debug=_env_flag(environ.get("BEAT_PAINTER_DEBUG")),
    )
