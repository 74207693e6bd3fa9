"""Runtime configuration for the doc-sync server.

Reads settings from CLI args, environment variables, .env files, and YAML
config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    DOCSYNC_API_URL: Contents API base URL (optional, default: https://api.github.com)
    DOCSYNC_DATA_DIR: Directory holding the local SQLite cache (optional, default: ./data)
    DOCSYNC_TIMEOUT: Read timeout in seconds for remote calls (optional, default: 30)
    DOCSYNC_INSECURE: Skip SSL verification (optional, default: false)
    DOCSYNC_DEBUG: Enable debug logging (optional, default: false)
    GITHUB_OWNER, GITHUB_REPO, GITHUB_PATH, GITHUB_TOKEN: Optional repository
        binding saved as the active sync configuration at startup when the
        local cache has none.
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"


@dataclass
class Config:
    api_url: str = DEFAULT_API_URL
    data_dir: str = "data"
    timeout: float = 30.0
    insecure: bool = False
    debug: bool = False
    owner: str | None = None
    repo: str | None = None
    base_path: str | None = None
    token: str | None = None

    @property
    def database_path(self) -> str:
        return os.path.join(self.data_dir, "documents.db")

    def has_binding(self) -> bool:
        """True when owner, repo and token are present (base path may be the root)."""
        return all((self.owner, self.repo, self.token))


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the API URL is malformed or the timeout is out of range.
    """
    config.api_url = config.api_url.strip()

    if not config.api_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid API URL '{config.api_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.api_url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid API URL '{config.api_url}': URL must include a hostname"
        )

    config.api_url = config.api_url.removesuffix("/")

    if not (0 < config.timeout <= 600):
        raise ValueError(
            f"Invalid timeout '{config.timeout}': must be between 0 and 600 seconds"
        )

    if not config.data_dir.strip():
        raise ValueError(
            "Data directory cannot be empty. Set DOCSYNC_DATA_DIR environment variable."
        )

    if config.insecure:
        logger.warning(
            "WARNING: SSL verification disabled (insecure=True). Use only for development."
        )


def load_config(
    api_url: str | None = None,
    data_dir: str | None = None,
    insecure: bool = False,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        api_url: Override contents API base URL.
        data_dir: Override local cache directory.
        insecure: Skip SSL verification (CLI flag).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flat dict of values from the YAML ``github`` and
            ``storage`` sections, used when CLI arg and env var are unset.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If a value is malformed.
    """
    fb = yaml_fallbacks or {}

    final_api_url = (
        api_url
        or os.getenv("DOCSYNC_API_URL")
        or fb.get("api_url")
        or DEFAULT_API_URL
    )
    final_data_dir = (
        data_dir or os.getenv("DOCSYNC_DATA_DIR") or fb.get("data_dir") or "data"
    )

    def get_bool_env(key: str) -> bool | None:
        """Return True/False from env var, or None if unset."""
        val = os.getenv(key)
        if val is None:
            return None
        return val.lower() in ("true", "1", "yes", "on")

    if insecure:
        final_insecure = True
    else:
        env_insecure = get_bool_env("DOCSYNC_INSECURE")
        if env_insecure is not None:
            final_insecure = env_insecure
        else:
            final_insecure = bool(fb.get("insecure", False))

    if debug:
        final_debug = True
    else:
        env_debug = get_bool_env("DOCSYNC_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    timeout_raw = os.getenv("DOCSYNC_TIMEOUT")
    if timeout_raw is not None:
        try:
            final_timeout = float(timeout_raw)
        except ValueError:
            raise ValueError(
                f"Invalid DOCSYNC_TIMEOUT '{timeout_raw}': must be a number of seconds"
            ) from None
    elif "timeout" in fb:
        final_timeout = float(fb["timeout"])
    else:
        final_timeout = 30.0

    config = Config(
        api_url=final_api_url,
        data_dir=final_data_dir,
        timeout=final_timeout,
        insecure=final_insecure,
        debug=final_debug,
        owner=os.getenv("GITHUB_OWNER") or fb.get("owner"),
        repo=os.getenv("GITHUB_REPO") or fb.get("repo"),
        base_path=os.getenv("GITHUB_PATH") or fb.get("base_path"),
        token=os.getenv("GITHUB_TOKEN") or fb.get("token"),
    )

    validate_config(config)

    return config
