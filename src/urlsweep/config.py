import os
import sys
import logging
import yaml
from colorama import Fore, Style, just_fix_windows_console

# Pause between two domains, keeps the free API tiers happy
REQUEST_DELAY = 20
RETRY_ATTEMPTS = 3
RETRY_DELAY = 5
HTTP_TIMEOUT = 30

CONFIG_DIR_NAME = "urlsweep"
CONFIG_FILE_NAME = "config.yaml"
DEFAULT_OUTPUT_FILE = "endpoints.txt"
FAILED_DOMAINS_FILE = "failed_domains.txt"

# User Agents for rotation
USER_AGENTS = [
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15',
    'Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0',
    'Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0',
]

# Sections of config.yaml, each one a list of API keys
KEY_SECTIONS = ("virustotal", "alienvault", "hudsonrock")

# Extra keys can be passed through the environment (comma separated)
ENV_OVERRIDES = {
    'virustotal': 'URLSWEEP_VT_API_KEY',
    'alienvault': 'URLSWEEP_OTX_API_KEY',
    'hudsonrock': 'URLSWEEP_HR_API_KEY',
}

DEFAULT_CONFIG = """# Configuration file for urlsweep
virustotal:
  - "YOUR_VT_API_KEY_1"
alienvault:
  - "YOUR_OTX_API_KEY_1"
hudsonrock:
  - "YOUR_HUDSONROCK_API_KEY_1"
"""

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")


class ConfigError(Exception):
    pass


class ColoredFormatter(logging.Formatter):
    """Colors a whole console line according to its level."""

    COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.BLUE,
        SUCCESS: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def format(self, record):
        message = super().format(record)
        # Source events carry their own color, INFO ones stay uncolored
        color = getattr(record, 'color', None)
        if color is None:
            color = self.COLORS.get(record.levelno, '')
        if not color:
            return message
        return f"{color}{message}{Style.RESET_ALL}"


logger = logging.getLogger("urlsweep")


def setup_logging(silent=False, verbose=False):
    just_fix_windows_console()
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColoredFormatter('%(message)s'))
    logger.addHandler(handler)

    # Silent mode keeps stdout for URLs; only fatal errors get through
    if silent:
        logger.setLevel(logging.CRITICAL)
    elif verbose:
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)
    return logger


def default_config_path():
    home = os.path.expanduser("~")
    if not home or home == "~":
        raise ConfigError("could not get user home directory")
    return os.path.join(home, ".config", CONFIG_DIR_NAME, CONFIG_FILE_NAME)


def create_default_config(path):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(DEFAULT_CONFIG)


def _normalize_keys(raw):
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw.strip()] if raw.strip() else []
    if isinstance(raw, (list, tuple)):
        return [str(token).strip() for token in raw if token is not None and str(token).strip()]
    raise ConfigError(f"could not parse config file: expected a list of keys, got {type(raw).__name__}")


def load_api_keys(config_path=None, silent=False):
    """Load the per-source API key lists.

    A missing file is replaced by a default one with placeholder keys and the
    run is aborted so the user can fill it in.
    """
    path = config_path or default_config_path()

    if not os.path.exists(path):
        if not silent:
            logger.warning(f" [!] Configuration file not found at {path}")
        try:
            create_default_config(path)
        except OSError as e:
            raise ConfigError(f"could not create default config file: {e}") from e
        raise ConfigError(f"a new configuration file has been created at {path}. Please edit it to add your API keys")

    if not silent:
        logger.info(f"[*] Loading configuration from {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"could not read config file: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"could not parse config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("could not parse config file: top level must be a mapping")

    api_keys = {section: _normalize_keys(data.get(section)) for section in KEY_SECTIONS}

    for section, env_name in ENV_OVERRIDES.items():
        extra = os.getenv(env_name, '')
        api_keys[section].extend(k.strip() for k in extra.split(',') if k.strip())

    return api_keys
