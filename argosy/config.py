"""
Argosy configuration: layered key/value settings and the host environment.

Keys are hierarchical, ':'-separated and case-insensitive ("Logging:LogLevel:Default").
Sources are applied in the order they are added; a later source overrides the keys
it defines and leaves the others alone.

- add_mapping(mapping): nested mappings/lists are flattened ({"a": {"b": 1}} -> "a:b").
- add_json_file(path, optional=True): a JSON object, flattened the same way.
- add_environment_variables(prefix=""): variables starting with prefix, the prefix
  removed and "__" mapped to ":" (LOGGING__LOGLEVEL__DEFAULT -> logging:loglevel:default).
"""
import json
import logging
import os
import sys
from collections.abc import Mapping
from pathlib import Path

from .utils import *

logger = logging.getLogger(__name__)

SEPARATOR = ":"


def _flatten(value, prefix=""):
    if isinstance(value, Mapping):
        for key, item in value.items():
            yield from _flatten(item, f"{prefix}{SEPARATOR}{key}" if prefix else str(key))
    elif isinstance(value, list | tuple):
        for index, item in enumerate(value):
            yield from _flatten(item, f"{prefix}{SEPARATOR}{index}" if prefix else str(index))
    elif prefix:
        yield prefix, value


class Configuration:
    """Layered configuration store."""

    def __init__(self, mapping=Unset):
        self._values = {}
        if mapping is not Unset:
            self.add_mapping(mapping)

    def _set(self, key, value):
        self._values[key.casefold()] = (key, value)

    def add_mapping(self, mapping, /):
        if not isinstance(mapping, Mapping):
            raise TypeError("add_mapping() argument must be a mapping")
        for key, value in _flatten(mapping):
            self._set(key, value)
        return self

    def add_json_file(self, path, /, optional=True):
        path = Path(path)
        if not path.is_file():
            if optional:
                logger.debug("optional configuration file %s not found", path)
                return self
            raise FileNotFoundError(f"configuration file {str(path)!r} not found")
        with path.open(encoding="utf-8") as stream:
            document = json.load(stream)
        if not isinstance(document, Mapping):
            raise ValueError(f"configuration file {str(path)!r} must contain a JSON object")
        logger.debug("loaded configuration file %s", path)
        return self.add_mapping(document)

    def add_environment_variables(self, prefix="", /, environ=Unset):
        environ = coalesce(environ, os.environ)
        for name, value in environ.items():
            if not name.casefold().startswith(prefix.casefold()):
                continue
            if key := name[len(prefix):].replace("__", SEPARATOR):
                self._set(key, value)
        return self

    def get(self, key, default=None, /):
        try:
            return self[key]
        except KeyError:
            return default

    def section(self, key, /):
        """A new Configuration holding the keys below key, with the prefix removed."""
        prefix = key.casefold() + SEPARATOR
        section = Configuration()
        for folded, (original, value) in self._values.items():
            if folded.startswith(prefix):
                section._set(original[len(prefix):], value)
        return section

    def keys(self):
        return [original for original, _ in self._values.values()]

    def items(self):
        return list(self._values.values())

    def __getitem__(self, key):
        try:
            return self._values[key.casefold()][1]
        except KeyError:
            raise KeyError(key) from None

    def __contains__(self, key):
        return isinstance(key, str) and key.casefold() in self._values

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        return f"configuration(keys={len(self._values)})"


class HostEnvironment:
    """
    Where and as what the application runs.

    - application_name: defaults to the name of the running script.
    - environment_name: defaults to $ARGOSY_ENVIRONMENT, then "Production".
    - content_root: base directory of appsettings files; defaults to the working directory.
    """
    VARIABLE = "ARGOSY_ENVIRONMENT"
    DEVELOPMENT = "Development"
    STAGING = "Staging"
    PRODUCTION = "Production"

    def __init__(self, application_name=Unset, environment_name=Unset, content_root=Unset):
        self.application_name = coalesce(application_name, Path(sys.argv[0]).stem if sys.argv[0] else "argosy")
        self.environment_name = coalesce(environment_name, os.environ.get(self.VARIABLE) or self.PRODUCTION)
        self.content_root = Path(coalesce(content_root, Path.cwd()))

    def is_environment(self, name, /):
        return self.environment_name.casefold() == name.casefold()

    def is_development(self):
        return self.is_environment(self.DEVELOPMENT)

    def is_staging(self):
        return self.is_environment(self.STAGING)

    def is_production(self):
        return self.is_environment(self.PRODUCTION)

    def __repr__(self):
        return (
            f"host-environment(application_name={self.application_name!r}, "
            f"environment_name={self.environment_name!r}, content_root={str(self.content_root)!r})"
        )


def add_default_sources(configuration, environment, /, environ=Unset):
    """appsettings.json, appsettings.<Environment>.json (both optional), then the environment."""
    configuration.add_json_file(environment.content_root / "appsettings.json")
    configuration.add_json_file(environment.content_root / f"appsettings.{environment.environment_name}.json")
    configuration.add_environment_variables(environ=environ)
    return configuration


__all__ = (
    "Configuration",
    "HostEnvironment",
    "add_default_sources",
)
