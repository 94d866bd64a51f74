import os
import logging
from pathlib import Path
from typing import Mapping, Self

import toml

from lifelog_cache.config.sections import Cache, Limitless
from lifelog_cache.config.serializable import Serializable
from lifelog_cache.type_defs import JsonObject, JsonValue

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV_VAR = "LIFELOG_CACHE_CONFIG_FILE"


class AppSettings(Serializable):
    _instance = None
    debug: bool = False

    def __init__(self) -> None:
        self.limitless = Limitless()
        self.cache = Cache()
        if not self.config_file_path.exists():
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            self.config_file_path.touch()

        self.load()

    @classmethod
    def get_instance(cls) -> Self:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def config_file_path(self) -> Path:
        configured_path = os.getenv(CONFIG_FILE_ENV_VAR)
        if configured_path:
            return Path(configured_path).expanduser()
        project_name = Path(__file__).parent.parent.name.replace("_", "-")
        return Path.home() / ".config" / project_name / "config.toml"

    def load(self) -> None:
        try:
            with self.config_file_path.open() as file:
                data = toml.load(file)
                for key, value in data.items():
                    if key.startswith("_"):
                        continue
                    attr = getattr(self, key, None)
                    if isinstance(attr, Serializable):
                        attr.from_dict(value)
                    else:
                        setattr(self, key, value)
        except (FileNotFoundError, OSError, toml.TomlDecodeError) as error:
            logger.exception("Error loading configuration %s", error)
        self.save()

    def save(self) -> None:
        data = self.sort_dict(self.to_dict())
        try:
            with self.config_file_path.open("w") as file:
                toml.dump(data, file)
        except (FileNotFoundError, OSError) as error:
            logger.exception("Error saving configuration: %s", error)

    def sort_dict(self, d: Mapping[str, JsonValue]) -> JsonObject:
        sorted_dict: JsonObject = {}
        for key in sorted(d.keys()):
            value = d[key]
            if isinstance(value, dict):
                sorted_dict[key] = self.sort_dict(value)
            else:
                sorted_dict[key] = value
        return sorted_dict

