"""
Reading and writing configuration files.

YAML (through PyYAML) and JSON are supported. Each format only supplies
how to parse and how to dump a mapping; opening files, checking the top
level type and turning I/O problems into `ConfigurationError` is shared.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, IO, List, Tuple, Type, Union
import json
import logging

import yaml

from ..base.exceptions import ConfigurationError
from .settings import StatisticsConfig

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _plain(obj: Any) -> Any:
    """Replace `Path` objects by strings inside nested containers."""
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, dict):
        return {key: _plain(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_plain(item) for item in obj]
    return obj


class ConfigLoader(ABC):
    """Common file handling of the configuration formats.

    Subclasses set ``format_name``, ``supported_extensions`` and
    ``parse_errors`` and implement `_parse` and `_dump`.
    """

    format_name: str = ""
    supported_extensions: List[str] = []
    #: Exceptions the parser raises on malformed input.
    parse_errors: Tuple[Type[Exception], ...] = ()

    @abstractmethod
    def _parse(self, stream: IO[str]) -> Any:
        """Parse the whole of ``stream``."""

    @abstractmethod
    def _dump(self, data: Dict[str, Any], stream: IO[str]) -> None:
        """Serialize ``data`` into ``stream``."""

    def load(self, path: PathLike) -> Dict[str, Any]:
        """Read a mapping from ``path``.

        Raises
        ------
        ConfigurationError
            If the file is missing, unreadable, malformed or does not
            hold a mapping at the top level.
        """
        path = Path(path)
        where = str(path)
        try:
            with open(path, 'r', encoding='utf-8') as stream:
                data = self._parse(stream)
        except FileNotFoundError as e:
            raise ConfigurationError(f"No configuration file at {path}",
                                     config_file=where, cause=e) from e
        except PermissionError as e:
            raise ConfigurationError(f"Cannot read {path}", config_file=where, cause=e) from e
        except self.parse_errors as e:
            raise ConfigurationError(f"{path} is not valid {self.format_name}",
                                     config_file=where, cause=e) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"{path} must hold a {self.format_name} mapping at the top level, "
                f"found {type(data).__name__}", config_file=where)
        logger.debug("Read %s configuration from %s", self.format_name, path)
        return data

    def save(self, data: Dict[str, Any], path: PathLike) -> None:
        """Write the mapping ``data`` to ``path``, creating parent directories."""
        path = Path(path)
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Only mappings can be written as {self.format_name}, "
                f"got {type(data).__name__}", config_file=str(path))
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as stream:
                self._dump(_plain(data), stream)
        except OSError as e:
            raise ConfigurationError(f"Could not write {path}: {e}",
                                     config_file=str(path), cause=e) from e
        logger.debug("Wrote %s configuration to %s", self.format_name, path)


class JSONConfigLoader(ConfigLoader):
    """Configuration stored as a JSON object."""

    format_name = "JSON"
    supported_extensions = ['.json']
    parse_errors = (json.JSONDecodeError,)

    def _parse(self, stream):
        return json.load(stream)

    def _dump(self, data, stream):
        json.dump(data, stream, indent=2, sort_keys=True, ensure_ascii=False)


class YAMLConfigLoader(ConfigLoader):
    """Configuration stored as a YAML mapping; an empty file is an empty mapping."""

    format_name = "YAML"
    supported_extensions = ['.yaml', '.yml']
    parse_errors = (yaml.YAMLError,)

    def _parse(self, stream):
        data = yaml.safe_load(stream)
        return {} if data is None else data

    def _dump(self, data, stream):
        yaml.safe_dump(data, stream, default_flow_style=False, sort_keys=True,
                       allow_unicode=True)


_LOADERS = {ext: cls for cls in (JSONConfigLoader, YAMLConfigLoader)
            for ext in cls.supported_extensions}


def get_config_loader(file_path: PathLike) -> ConfigLoader:
    """Pick the loader matching the (case-insensitive) file extension.

    Raises
    ------
    ConfigurationError
        If no loader handles the extension.
    """
    suffix = Path(file_path).suffix.lower()
    try:
        return _LOADERS[suffix]()
    except KeyError:
        raise ConfigurationError(
            f"Don't know how to read '{suffix}' files; use one of {sorted(_LOADERS)}",
            config_file=str(file_path)) from None


def load_config(file_path: PathLike) -> StatisticsConfig:
    """Read a configuration file into a :class:`StatisticsConfig`.

    The parameters may sit at the top level of the file or under a
    ``statistics`` section.
    """
    data = get_config_loader(file_path).load(file_path)
    section = data.get('statistics')
    if isinstance(section, dict):
        data = section
    try:
        return StatisticsConfig.from_dict(data)
    except ConfigurationError as e:
        raise e.add_detail('config_file', str(file_path))


def save_config(config: StatisticsConfig, file_path: PathLike) -> None:
    """Write a :class:`StatisticsConfig` to a YAML or JSON file."""
    get_config_loader(file_path).save(config.to_dict(), file_path)
