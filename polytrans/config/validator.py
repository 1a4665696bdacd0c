"""Lightweight configuration validation utilities."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC, MutableMapping as MutableMappingABC
from dataclasses import dataclass
from typing import Any, List, Literal, Mapping, Union, get_args, get_origin, get_type_hints

from .schema import CoreConfig


@dataclass(frozen=True)
class ValidationError:
    """Represents a single configuration validation failure."""

    path: str
    message: str


class ConfigValidator:
    """Validate configuration structure and the values the pipeline depends on."""

    _ROOT_SCHEMA = CoreConfig

    @classmethod
    def validate(cls, config: Mapping[str, Any]) -> List[ValidationError]:
        """Validate a configuration dictionary and return a list of errors."""
        if not isinstance(config, MappingABC):
            return [
                ValidationError(
                    path="<root>",
                    message="Expected a mapping for the configuration root",
                )
            ]
        errors = cls._validate_typed_dict(config, cls._ROOT_SCHEMA, path="")
        if not errors:
            errors.extend(cls._validate_semantics(config))
        return errors

    @classmethod
    def validate_or_raise(cls, config: Mapping[str, Any]) -> None:
        """Validate the configuration and raise ValueError on failure."""
        errors = cls.validate(config)
        if errors:
            details = "\n".join(f"- {err.path}: {err.message}" for err in errors)
            raise ValueError(f"Configuration validation failed:\n{details}")

    # Semantic checks ------------------------------------------------------

    @classmethod
    def _validate_semantics(cls, config: Mapping[str, Any]) -> List[ValidationError]:
        from ..translation.metadata import ProviderMetadata

        errors: List[ValidationError] = []
        known = set(ProviderMetadata.list_provider_ids())

        providers = config["translation"].get("providers", [])
        if not providers:
            errors.append(
                ValidationError("translation.providers", "At least one provider is required")
            )
        for index, provider_id in enumerate(providers):
            if provider_id not in known:
                errors.append(
                    ValidationError(
                        f"translation.providers[{index}]",
                        f"Unknown provider '{provider_id}'",
                    )
                )

        for provider_id in config.get("providers", {}):
            if provider_id not in known:
                errors.append(
                    ValidationError(f"providers.{provider_id}", "Unknown provider")
                )

        for path, minimum in (
            ("cache.max_size", 1),
            ("cache.ttl_seconds", 0),
            ("html.small_node_chars", 1),
            ("html.group_max_chars", 1),
            ("html.max_concurrency", 1),
            ("html.wave_pause", 0),
            ("identity.pool_size", 1),
        ):
            section, key = path.split(".")
            value = config.get(section, {}).get(key)
            if value is not None and value < minimum:
                errors.append(ValidationError(path, f"Must be >= {minimum}"))

        return errors

    # Structural checks ----------------------------------------------------

    @classmethod
    def _validate_typed_dict(
        cls,
        value: Any,
        schema: type,
        path: str,
    ) -> List[ValidationError]:
        if not isinstance(value, MappingABC):
            return [
                ValidationError(
                    path=path or "<root>",
                    message=f"Expected mapping compatible with {schema.__name__}",
                )
            ]

        errors: List[ValidationError] = []
        annotations = get_type_hints(schema)
        for key in sorted(schema.__required_keys__):
            if key not in value:
                errors.append(ValidationError(cls._join(path, key), "Required key is missing"))

        for key in sorted(value.keys()):
            annotation = annotations.get(key)
            if annotation is None:
                errors.append(
                    ValidationError(cls._join(path, key), f"Unexpected key for {schema.__name__}")
                )
                continue
            errors.extend(cls._check(value[key], annotation, cls._join(path, key)))
        return errors

    @classmethod
    def _check(cls, value: Any, annotation: Any, path: str) -> List[ValidationError]:
        """TypedDict / Optional / Union / Literal / List / MutableMapping / 基本型を検証"""
        if cls._is_typed_dict(annotation):
            return cls._validate_typed_dict(value, annotation, path)

        origin = get_origin(annotation)
        args = get_args(annotation)

        if origin is list:
            if not isinstance(value, list):
                return [cls._type_error(path, f"list of {cls._describe(args[0])}", value)]
            errors: List[ValidationError] = []
            for index, item in enumerate(value):
                errors.extend(cls._check(item, args[0], f"{path}[{index}]"))
            return errors

        if origin is MutableMappingABC:
            if not isinstance(value, MappingABC):
                return [cls._type_error(path, "mapping", value)]
            errors = []
            for key, item in value.items():
                errors.extend(cls._check(item, args[1], cls._join(path, str(key))))
            return errors

        if origin is Union:
            if any(not cls._check(value, option, path) for option in args):
                return []
        elif origin is Literal:
            if value in args:
                return []
        elif cls._is_instance(value, annotation):
            return []
        return [cls._type_error(path, cls._describe(annotation), value)]

    @staticmethod
    def _is_instance(value: Any, annotation: type) -> bool:
        if annotation is float:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if annotation is int:
            return isinstance(value, int) and not isinstance(value, bool)
        return isinstance(value, annotation)

    @staticmethod
    def _type_error(path: str, expected: str, value: Any) -> ValidationError:
        return ValidationError(path, f"Expected {expected}, got {type(value).__name__}")

    @classmethod
    def _describe(cls, annotation: Any) -> str:
        origin = get_origin(annotation)
        if origin is Union:
            return " | ".join(cls._describe(option) for option in get_args(annotation))
        if origin is Literal:
            return "one of " + ", ".join(repr(arg) for arg in get_args(annotation))
        return getattr(annotation, "__name__", str(annotation))

    @staticmethod
    def _join(path: str, key: str) -> str:
        return key if not path else f"{path}.{key}"

    @staticmethod
    def _is_typed_dict(annotation: Any) -> bool:
        return (
            isinstance(annotation, type)
            and issubclass(annotation, dict)
            and hasattr(annotation, "__required_keys__")
        )
