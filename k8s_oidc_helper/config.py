"""Client credential resolution.

Credentials come either from a JSON application file (the format the Azure
portal and ``gcloud`` style tooling emit, with the values nested under
``installed``) or straight from command line flags.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigError
from .settings import MICROSOFT, ProviderSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientCredentials:
    client_id: str
    client_secret: str


@dataclass(frozen=True)
class HelperConfig:
    """Everything the helper needs, resolved once at startup.

    Attributes:
        credentials: OAuth client identifier and secret
        open_browser: Whether to launch the approval URL in a browser
        provider: Endpoint table for the identity provider
    """

    credentials: ClientCredentials
    open_browser: bool = True
    provider: ProviderSettings = MICROSOFT


def read_config(path) -> ClientCredentials:
    """Read client credentials from a JSON application file.

    Args:
        path: Path to a file shaped like
            ``{"installed": {"client_id": "...", "client_secret": "..."}}``

    Returns:
        ClientCredentials taken from the ``installed`` object

    Raises:
        ConfigError: If the file cannot be opened, is not valid JSON, or lacks
            the ``installed`` object, or a credential is not a string
    """
    config_path = Path(path).expanduser()
    try:
        with open(config_path) as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(path, e.strerror or str(e)) from e
    except ValueError as e:
        raise ConfigError(path, f"invalid JSON: {e}") from e

    installed = data.get("installed") if isinstance(data, dict) else None
    if not isinstance(installed, dict):
        raise ConfigError(path, 'missing "installed" object')

    values = {}
    for key in ("client_id", "client_secret"):
        value = installed.get(key)
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ConfigError(path, f'"{key}" must be a string')
        values[key] = value

    logger.debug("loaded client credentials from %s", config_path)
    return ClientCredentials(**values)


def resolve_credentials(
    config_path: Optional[str] = None,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
) -> ClientCredentials:
    """Pick the client credentials to use.

    A config file, when given, supersedes the flag values. Flag values are
    otherwise used as-is; empty values are passed through to the provider.
    """
    if config_path:
        return read_config(config_path)
    return ClientCredentials(client_id=client_id or "", client_secret=client_secret or "")
