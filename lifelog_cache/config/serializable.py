import logging
from typing import Mapping

from lifelog_cache.type_defs import is_json_object, JsonObject, JsonValue

logger = logging.getLogger(__name__)


class Serializable:
    def _annotations(self) -> dict[str, object]:
        annotations: dict[str, object] = {}
        for cls in reversed(type(self).mro()):
            cls_annotations = getattr(cls, "__annotations__", None)
            if isinstance(cls_annotations, dict):
                annotations.update(cls_annotations)
        return annotations

    def to_dict(self) -> JsonObject:
        result: JsonObject = {}
        for key in sorted(self.get_all_keys()):
            if key.startswith("_"):
                continue
            value = getattr(self, key, None)
            if isinstance(value, Serializable):
                result[key] = value.to_dict()
            elif value is not None:
                # TOML has no null; unset values are simply left out of the file.
                result[key] = value
        return result

    def from_dict(self, data: Mapping[str, JsonValue]) -> None:
        for key in self._annotations():
            if key.startswith("_"):
                continue
            value = data.get(key, getattr(self, key, None))

            try:
                existing_attr = getattr(self, key)
            except AttributeError:
                logger.warning("%s not in %s. Skipping...", key, self.__class__.__name__)
                continue

            if isinstance(existing_attr, Serializable):
                if not is_json_object(value):
                    logger.warning(
                        "Expected table for %s in %s, got %s. Skipping...",
                        key,
                        self.__class__.__name__,
                        type(value),
                    )
                    continue
                existing_attr.from_dict(value)
            else:
                setattr(self, key, value)

        self.validate()

    def validate(self) -> None:
        for key in self._annotations():
            if getattr(self, key, None) is None:
                logger.warning(
                    "Configuration value '%s' is missing or None in %s",
                    key,
                    self.__class__.__name__,
                )

    def get_all_keys(self) -> set[str]:
        instance_keys = set(self.__dict__.keys())
        annotation_keys = set(self._annotations().keys())
        return instance_keys | annotation_keys
