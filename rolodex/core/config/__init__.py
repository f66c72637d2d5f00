"""
Configuration for rolodex: log directories, logger options and the MongoDB connection, read from the environment,
`.env` files and the packaged INI defaults.
"""

from rolodex.core.config.config import Config, CoreConfig, CoreSettings, SettingsLike

__all__ = ["Config", "CoreConfig", "CoreSettings", "SettingsLike"]
