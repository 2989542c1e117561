import json
import logging
import os

logger = logging.getLogger(__name__)

# Settings management
SETTINGS_FILE = "settings.json"

DEFAULT_SETTINGS = {
    "db_file": "memory_game.db",
    "server_url": "localhost:5000",
    "relax_mode": False,
    "sound_enabled": True,
    "sound_dir": "sounds",
    "log_level": "INFO",
}


def load_settings(path=SETTINGS_FILE):
    """Load settings from a JSON file, filling in defaults for anything missing."""
    settings = dict(DEFAULT_SETTINGS)
    if os.path.exists(path):
        try:
            with open(path, 'r') as f:
                data = json.load(f)
            if isinstance(data, dict):
                settings.update(data)
            else:
                logger.warning(f"Ignoring {path}: expected a JSON object")
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not read {path}, using defaults: {e}")
    return settings


def save_settings(settings, path=SETTINGS_FILE):
    """Save settings to a JSON file."""
    with open(path, 'w') as f:
        json.dump(settings, f, indent=2)


def configure_logging(settings):
    """Configure the root logger from the log_level setting."""
    level = getattr(logging, str(settings.get("log_level", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def toggle_setting(settings, key, path=SETTINGS_FILE):
    """Flip a boolean setting and save it. Returns the new value."""
    settings[key] = not settings.get(key, False)
    try:
        save_settings(settings, path)
    except OSError as e:
        logger.error(f"Could not save settings to {path}: {e}")
    return settings[key]
