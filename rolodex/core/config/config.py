"""Settings for rolodex.

``CoreSettings`` reads, from highest to lowest precedence: constructor arguments, ``SECTION__KEY`` environment
variables, the plain ``MONGO_URI`` variable, a ``.env`` file and the packaged ``config.ini``.

``Config`` turns settings into a nested dict of strings in which every ``SecretStr`` field is masked. The real
value stays reachable through ``get_secret``.
"""

import configparser
import os
from pathlib import Path
from types import UnionType
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple, Union, get_args, get_origin

from pydantic import BaseModel, SecretStr
from pydantic_settings import BaseSettings

from rolodex.core.utils import expand_tilde

SECRET_MASK = "********"
DEFAULT_INI_PATH = Path(__file__).parent / "config.ini"

KeyPath = Tuple[str, ...]


class ROLODEX_DIR_PATHS(BaseModel):
    ROOT: str
    LOGGER_DIR: str
    STRUCT_LOGGER_DIR: str


class ROLODEX_LOGGER(BaseModel):
    USE_STRUCTLOG: bool = False


class ROLODEX_MONGO(BaseModel):
    URI: SecretStr
    DB_NAME: str


def load_ini_as_dict(ini_path: Path) -> Dict[str, Dict[str, str]]:
    """Read an INI file into ``{SECTION: {KEY: value}}``.

    Section and key names are upper-cased, ``${KEY}`` references are interpolated within a section and a leading
    ``~`` is expanded. A missing file yields an empty dict.
    """
    if not ini_path.exists():
        return {}

    parser = configparser.ConfigParser(interpolation=configparser.ExtendedInterpolation())
    parser.read(ini_path)
    return {
        section.upper(): {key.upper(): expand_tilde(value) for key, value in parser[section].items()}
        for section in parser.sections()
    }


def load_ini_settings() -> Dict[str, Dict[str, str]]:
    return load_ini_as_dict(DEFAULT_INI_PATH)


class CoreSettings(BaseSettings):
    ROLODEX_DIR_PATHS: ROLODEX_DIR_PATHS
    ROLODEX_LOGGER: ROLODEX_LOGGER
    ROLODEX_MONGO: ROLODEX_MONGO

    model_config = {
        "env_nested_delimiter": "__",
        "case_sensitive": True,
        "env_file": ".env",
        "extra": "ignore",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        def expanded_env_settings():
            return expand_tilde(env_settings())

        def mongo_uri_settings():
            uri = os.environ.get("MONGO_URI")
            return {"ROLODEX_MONGO": {"URI": uri}} if uri else {}

        return (
            init_settings,
            expanded_env_settings,
            mongo_uri_settings,
            dotenv_settings,
            load_ini_settings,
            file_secret_settings,
        )


# One settings layer, or several merged left to right
SettingsLike = Union[Mapping[str, Any], BaseModel, List[Union[Mapping[str, Any], BaseModel]], None]


def _merge(base: Dict[str, Any], layer: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in layer.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        elif isinstance(value, Mapping):
            base[key] = _merge({}, value)
        else:
            base[key] = value
    return base


def _env_overrides(delimiter: str = "__") -> Dict[str, Any]:
    """Nested dict built from ``SECTION__KEY`` style environment variables."""
    overrides: Dict[str, Any] = {}
    for name, value in os.environ.items():
        keys = [part.upper() for part in name.split(delimiter) if part]
        if len(keys) < 2:
            continue
        node = overrides
        for key in keys[:-1]:
            if not isinstance(node.get(key), dict):
                node[key] = {}
            node = node[key]
        node[keys[-1]] = value
    return overrides


def _secret_fields(model_cls: type[BaseModel], prefix: KeyPath = ()) -> Set[KeyPath]:
    """Key paths of every ``SecretStr`` field in ``model_cls``, including those of nested models."""
    found: Set[KeyPath] = set()
    for name, field in model_cls.model_fields.items():
        annotation = field.annotation
        options = get_args(annotation) if get_origin(annotation) in (Union, UnionType) else (annotation,)
        for option in options:
            if option is SecretStr:
                found.add(prefix + (name,))
            elif isinstance(option, type) and issubclass(option, BaseModel):
                found |= _secret_fields(option, prefix + (name,))
    return found


class Config(dict):
    """Nested dict of string settings with secrets masked.

    Layers are merged left to right, so later layers win. ``SECTION__KEY`` environment variables go on top unless
    ``apply_env=False``. Values of fields typed ``SecretStr`` are stored as ``********``.

    Example:
        .. code-block:: python

            config = Config(CoreSettings())
            config["ROLODEX_MONGO"]["URI"]             # "********"
            config.get_secret("ROLODEX_MONGO", "URI")  # "mongodb://localhost:27017"
    """

    def __init__(self, extra_settings: SettingsLike = None, *, apply_env: bool = True):
        layers = extra_settings if isinstance(extra_settings, list) else [extra_settings]
        merged: Dict[str, Any] = {}
        secret_paths: Set[KeyPath] = set()
        for layer in layers:
            if isinstance(layer, BaseModel):
                secret_paths |= _secret_fields(type(layer))
                layer = layer.model_dump()
            if isinstance(layer, Mapping):
                _merge(merged, layer)
        if apply_env:
            _merge(merged, _env_overrides())

        self._secrets: Dict[KeyPath, str] = {}
        super().__init__(self._mask(merged, secret_paths, ()))

    def get_secret(self, *path: str) -> Optional[str]:
        """Unmasked value at ``path``, e.g. ``get_secret("ROLODEX_MONGO", "URI")``. None if it is not a secret."""
        return self._secrets.get(path)

    def _mask(self, value: Any, secret_paths: Set[KeyPath], path: KeyPath) -> Any:
        if isinstance(value, Mapping):
            return {key: self._mask(item, secret_paths, path + (key,)) for key, item in value.items()}
        if isinstance(value, (list, tuple, set)):
            return [self._mask(item, secret_paths, path) for item in value]
        if isinstance(value, SecretStr) or path in secret_paths:
            self._secrets[path] = value.get_secret_value() if isinstance(value, SecretStr) else str(value)
            return SECRET_MASK
        return expand_tilde(str(value))


class CoreConfig(Config):
    """``Config`` over a fresh ``CoreSettings``, with ``extra_settings`` layered on top.

    ``CoreSettings`` already reads the environment, so it is not overlaid a second time.
    """

    def __init__(self, extra_settings: SettingsLike = None):
        extras = extra_settings if isinstance(extra_settings, list) else [extra_settings]
        super().__init__([CoreSettings(), *extras], apply_env=False)
