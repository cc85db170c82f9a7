"""
Settings and logging for h1vault.

Settings are read once at startup from the environment (optionally a .env
file, via python-dotenv) with the API token falling back to the OS keyring.
Every change made through SettingsStore.update() is written back at once.
"""

import dataclasses
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import keyring
import keyring.errors
from dotenv import load_dotenv, set_key

logger = logging.getLogger(__name__)

# --- Constants ---
KEYRING_SERVICE_NAME = "hackerone-api-token"
DEFAULT_ENV_FILE = ".env"
DEFAULT_LOG_FILE = "h1vault.log"
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'

# Settings field -> environment variable
ENV_KEYS = {
    'username': 'H1_USERNAME',
    'api_token': 'H1_API_TOKEN',
    'directory': 'H1_DIRECTORY',
    'vault_path': 'H1_VAULT_PATH',
    'interval_seconds': 'H1_SYNC_INTERVAL',
    'strict_pagination': 'H1_STRICT_PAGINATION',
    'api_base_url': 'H1_API_BASE_URL',
}


@dataclass(frozen=True)
class Settings:
    username: str = ''
    api_token: str = ''
    directory: str = 'Bug Bounty'
    vault_path: str = '.'
    interval_seconds: int = 600
    strict_pagination: bool = False
    api_base_url: str = 'https://api.hackerone.com'

    @property
    def bugs_folder(self) -> str:
        """Vault-relative folder the report notes are written to."""
        return f"{self.directory}/Bugs"

    def masked(self) -> dict:
        """Settings as a dict with the token hidden, for display."""
        data = dataclasses.asdict(self)
        data['api_token'] = '*' * 8 + ' (set)' if self.api_token else 'NOT SET'
        return data


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def coerce_setting(field_name, value):
    if field_name == 'interval_seconds':
        seconds = int(value)
        if seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {seconds}")
        return seconds
    if field_name == 'strict_pagination':
        return _parse_bool(value)
    return str(value)


# --- Keyring helpers ---
def get_token_from_keyring(username: str) -> Optional[str]:
    """Looks the API token up in the OS keyring. Returns None if unavailable."""
    if not username:
        return None
    try:
        return keyring.get_password(KEYRING_SERVICE_NAME, username)
    except keyring.errors.NoKeyringError:
        logger.warning("No keyring backend found. Set H1_API_TOKEN in the environment instead.")
    except keyring.errors.KeyringError as e:
        logger.warning(f"Could not access keyring: {e}")
    return None


def store_token_in_keyring(username: str, token: str) -> bool:
    """Stores the API token in the OS keyring. Returns True on success."""
    try:
        keyring.set_password(KEYRING_SERVICE_NAME, username, token)
        logger.info(f"API token for {username} securely stored in keyring.")
        return True
    except keyring.errors.NoKeyringError:
        logger.warning("No keyring backend found. Token will be stored in the .env file.")
    except keyring.errors.KeyringError as e:
        logger.warning(f"Could not store API token in keyring: {e}. Token will be stored in the .env file.")
    return False


class SettingsStore:
    """Loads Settings once and persists each mutation immediately."""

    def __init__(self, env_file=DEFAULT_ENV_FILE):
        self.env_file = Path(env_file)
        self.settings = None

    def load(self) -> Settings:
        load_dotenv(self.env_file)
        values = {}
        for field_name, env_key in ENV_KEYS.items():
            raw = os.getenv(env_key)
            if raw is None or raw == '':
                continue
            try:
                values[field_name] = coerce_setting(field_name, raw)
            except ValueError as e:
                logger.warning(f"Ignoring invalid {env_key}={raw!r} ({e}). Using the default instead.")

        if not values.get('api_token'):
            token = get_token_from_keyring(values.get('username', ''))
            if token:
                logger.debug("Using API token from keyring.")
                values['api_token'] = token

        self.settings = Settings(**values)
        return self.settings

    def update(self, **changes) -> Settings:
        """Applies changes to the loaded settings and persists every changed field."""
        if self.settings is None:
            self.load()

        unknown = set(changes) - set(ENV_KEYS)
        if unknown:
            raise ValueError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

        coerced = {name: coerce_setting(name, value) for name, value in changes.items()}
        new_settings = dataclasses.replace(self.settings, **coerced)

        for field_name, value in coerced.items():
            if field_name == 'api_token' and new_settings.username:
                if store_token_in_keyring(new_settings.username, value):
                    continue
            self._write_env(ENV_KEYS[field_name], value)

        self.settings = new_settings
        return new_settings

    def _write_env(self, key, value):
        self.env_file.touch(exist_ok=True)
        if isinstance(value, bool):
            value = 'true' if value else 'false'
        set_key(str(self.env_file), key, str(value))
        os.environ[key] = str(value)
        logger.debug(f"Persisted {key} to {self.env_file}")


# --- Logging Setup ---
def setup_logging(debug=False, log_file=DEFAULT_LOG_FILE):
    """Configures root logging to a UTF-8 log file and to stdout."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.insert(0, logging.FileHandler(log_file, encoding='utf-8', mode='a'))
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    # urllib3 logs every request at DEBUG
    logging.getLogger('urllib3').setLevel(logging.WARNING)
