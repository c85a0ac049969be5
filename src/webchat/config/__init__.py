"""
Configuration package for the webchat client.

Module structure:
- app.py: ChatClientConfig and YAML loading/saving
- logging.py: LoggingSettings
- servers.py: ServerSettings
"""

from webchat.config.app import (
    DEFAULT_CONFIG_FILE,
    ChatClientConfig,
    apply_cli_overrides,
    generate_default_config,
    load_config,
    load_yaml,
    save_config,
)
from webchat.config.logging import LoggingSettings
from webchat.config.servers import ServerSettings

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "ChatClientConfig",
    "LoggingSettings",
    "ServerSettings",
    "apply_cli_overrides",
    "generate_default_config",
    "load_config",
    "load_yaml",
    "save_config",
]
