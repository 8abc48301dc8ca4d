"""
Type conversion between Python values and their stored form.

This module provides:
- ValueKind / kind_of: explicit tagging of every value entering the engine
- type_name_of / type_name_for: canonical type names used as registry keys
- TypeConverter: encode/decode strategy for one logical type
- Default converters for bool, int, float, string, datetime and mixed
- EnumTypeConverter: converter bound to a concrete Enum class
- TypeConversionRegistry: normalized type name -> converter mapping
"""
import datetime
import enum
import importlib
import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import dateutil.parser
from dbengine.exceptions import DatabaseEngineError, EmptyTypeName
from dbengine.exceptions import EnumDoesNotExist, TypeDecodingFailed
from dbengine.exceptions import TypeEncodingFailed, TypeNotSupported
from dbengine.options import DATETIME_FORMAT, EngineOptions

__all__ = [
    'ValueKind',
    'kind_of',
    'type_name_of',
    'type_name_for',
    'normalize_name',
    'TypeConverter',
    'BoolTypeConverter',
    'IntTypeConverter',
    'FloatTypeConverter',
    'StringTypeConverter',
    'DateTimeTypeConverter',
    'MixedTypeConverter',
    'EnumTypeConverter',
    'TypeConversionRegistry',
    'default_converters',
]

logger = logging.getLogger(__name__)


class ValueKind(enum.Enum):
    """Kind tag carried by every value that crosses the engine boundary."""
    NULL = 'null'
    BOOL = 'bool'
    INT = 'int'
    FLOAT = 'float'
    STRING = 'string'
    DATETIME = 'datetime'
    OBJECT = 'object'


# bool before int: bool is an int subclass
_KIND_CHECKS: tuple[tuple[type, ValueKind], ...] = (
    (bool, ValueKind.BOOL),
    (int, ValueKind.INT),
    (float, ValueKind.FLOAT),
    (str, ValueKind.STRING),
    (datetime.datetime, ValueKind.DATETIME),
)

_CLASS_NAMES: dict[Any, str] = {
    bool: 'bool',
    int: 'int',
    float: 'float',
    str: 'string',
    datetime.datetime: 'datetime',
    object: 'mixed',
    Any: 'mixed',
    type(None): 'null',
    None: 'null',
}


def kind_of(value: Any) -> ValueKind:
    """Tag a value with its kind.
    """
    if value is None:
        return ValueKind.NULL
    # IntEnum and StrEnum members are enum values, not primitives
    if isinstance(value, enum.Enum):
        return ValueKind.OBJECT
    for cls, kind in _KIND_CHECKS:
        if isinstance(value, cls):
            return kind
    return ValueKind.OBJECT


def _qualified_name(cls: type) -> str:
    return f'{cls.__module__}.{cls.__qualname__}'


def type_name_for(cls: Any) -> str:
    """Canonical type name for a class; strings pass through untouched.

    >>> type_name_for(str)
    'string'
    >>> type_name_for('DateTime')
    'DateTime'
    """
    if isinstance(cls, str):
        return cls
    if cls in _CLASS_NAMES:
        return _CLASS_NAMES[cls]
    if isinstance(cls, type):
        return _qualified_name(cls)
    raise TypeNotSupported(repr(cls))


def type_name_of(value: Any) -> str:
    """Canonical type name of a value: its primitive kind or its class name.

    >>> type_name_of(True), type_name_of(1), type_name_of(None)
    ('bool', 'int', 'null')
    """
    kind = kind_of(value)
    if kind is ValueKind.OBJECT:
        return _qualified_name(type(value))
    return kind.value


def normalize_name(name: str) -> str:
    """Trim and case-fold a registry key.
    """
    return name.strip().casefold()


def _render(value: Any) -> str:
    """Render a scalar the way stored values are compared after a cast.
    """
    if isinstance(value, bool):
        return '1' if value else '0'
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    if isinstance(value, float):
        return repr(value)
    return str(value)


class TypeConverter(ABC):
    """Encode/decode strategy for one logical type.
    """

    type_name = 'mixed'

    @abstractmethod
    def encode(self, value: Any) -> Any:
        """Convert a Python value into its storable form.
        """

    @abstractmethod
    def decode(self, value: Any) -> Any:
        """Convert a stored value into a Python value.
        """

    def encoding_failed(self, value: Any) -> TypeEncodingFailed:
        return TypeEncodingFailed(value, self.type_name, type_name_of(value))

    def decoding_failed(self, value: Any) -> TypeDecodingFailed:
        return TypeDecodingFailed(value, self.type_name, type_name_of(value))

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.type_name!r})'


class BoolTypeConverter(TypeConverter):
    type_name = 'bool'

    def encode(self, value: Any) -> str:
        if not isinstance(value, bool):
            raise self.encoding_failed(value)
        return 'true' if value else 'false'

    def decode(self, value: Any) -> bool:
        if value is None or isinstance(value, bool):
            return bool(value)
        if isinstance(value, int):
            if value in {0, 1}:
                return value == 1
            raise self.decoding_failed(value)
        if isinstance(value, str):
            lowered = value.lower()
            if lowered in {'false', '0'}:
                return False
            if lowered in {'true', '1'}:
                return True
        raise self.decoding_failed(value)


class _CastTypeConverter(TypeConverter):
    """Passthrough encode; decode casts and insists the cast round-trips.
    """

    cast: type = object

    def encode(self, value: Any) -> Any:
        return value

    def decode(self, value: Any) -> Any:
        if value is None:
            return None
        try:
            cast_value = self.cast(value)
        except (TypeError, ValueError, OverflowError) as e:
            raise self.decoding_failed(value) from e
        if _render(value) != _render(cast_value):
            raise self.decoding_failed(value)
        return cast_value


class IntTypeConverter(_CastTypeConverter):
    type_name = 'int'
    cast = int


class FloatTypeConverter(_CastTypeConverter):
    type_name = 'float'
    cast = float

    def decode(self, value: Any) -> float | None:
        cast_value = super().decode(value)
        if cast_value is not None and not math.isfinite(cast_value):
            raise self.decoding_failed(value)
        return cast_value


class StringTypeConverter(TypeConverter):
    type_name = 'string'

    def encode(self, value: Any) -> str:
        return '' if value is None else str(value)

    def decode(self, value: Any) -> str:
        return '' if value is None else str(value)


class DateTimeTypeConverter(TypeConverter):
    """Datetimes are stored as `YYYY-MM-DD HH:MM:SS` text.

    Decoding accepts anything dateutil can parse; a malformed string is a
    decoding failure, any other parser failure is an engine error.
    """

    type_name = 'datetime'

    def __init__(self, datetime_format: str = DATETIME_FORMAT) -> None:
        self.datetime_format = datetime_format

    def encode(self, value: Any) -> str:
        if not isinstance(value, datetime.datetime):
            raise self.encoding_failed(value)
        return value.strftime(self.datetime_format)

    def decode(self, value: Any) -> datetime.datetime | None:
        if value is None:
            return None
        if isinstance(value, datetime.datetime):
            return value
        try:
            return dateutil.parser.parse(str(value))
        except ValueError as e:
            raise self.decoding_failed(value) from e
        except Exception as e:
            raise DatabaseEngineError(f'Unexpected failure parsing {value!r} as datetime: {e}') from e


class MixedTypeConverter(TypeConverter):
    type_name = 'mixed'

    def encode(self, value: Any) -> Any:
        return value

    def decode(self, value: Any) -> Any:
        return value


def _load_enum(enum_cls: type[enum.Enum] | str) -> type[enum.Enum]:
    """Resolve an Enum class, importing it when given a dotted path.
    """
    target = enum_cls
    if isinstance(enum_cls, str):
        module_name, _, attr = enum_cls.rpartition('.')
        if not module_name or not attr:
            raise EnumDoesNotExist(enum_cls)
        try:
            target = getattr(importlib.import_module(module_name), attr)
        except (ImportError, AttributeError) as e:
            raise EnumDoesNotExist(enum_cls) from e
    if not isinstance(target, type) or not issubclass(target, enum.Enum):
        raise EnumDoesNotExist(str(getattr(target, '__qualname__', target)))
    return target


class EnumTypeConverter(TypeConverter):
    """Stores members of one Enum class by their symbolic name.
    """

    def __init__(self, enum_cls: type[enum.Enum] | str) -> None:
        self.enum_cls = _load_enum(enum_cls)
        self.type_name = type_name_for(self.enum_cls)

    def encode(self, value: Any) -> str:
        if type_name_of(value) != self.type_name:
            raise self.encoding_failed(value)
        return value.name

    def decode(self, value: Any) -> enum.Enum:
        for member in self.enum_cls:
            if member.name == value:
                return member
        raise self.decoding_failed(value)


def default_converters(options: EngineOptions | None = None) -> dict[str, TypeConverter]:
    """Build the built-in converters keyed by type name.
    """
    datetime_format = options.datetime_format if options else DATETIME_FORMAT
    return {
        'bool': BoolTypeConverter(),
        'datetime': DateTimeTypeConverter(datetime_format),
        'float': FloatTypeConverter(),
        'int': IntTypeConverter(),
        'mixed': MixedTypeConverter(),
        'string': StringTypeConverter(),
    }


class TypeConversionRegistry:
    """Registry of type converters keyed by normalized type name.

    Re-registering a name replaces the previous converter. Caller-supplied
    converters take precedence over the defaults, which only fill gaps.
    """

    def __init__(self, converters: Mapping[Any, TypeConverter] | None = None,
                 options: EngineOptions | None = None) -> None:
        self.options = options
        self._converters: dict[str, TypeConverter] = {}
        for type_name, converter in (converters or {}).items():
            self.register(type_name, converter)
        if options is None or options.register_default_converters:
            self.register_defaults()

    def __contains__(self, type_name: Any) -> bool:
        return self.supports(type_name)

    def __len__(self) -> int:
        return len(self._converters)

    def _key(self, type_name: Any) -> str:
        name = normalize_name(type_name_for(type_name))
        if not name:
            raise EmptyTypeName()
        return name

    def register(self, type_name: Any, converter: TypeConverter) -> None:
        """Register a converter, replacing any previous one for the name.
        """
        name = self._key(type_name)
        if name in self._converters:
            logger.debug(f'Replacing type converter for {name}')
        self._converters[name] = converter

    def register_enum(self, enum_cls: type[enum.Enum] | str,
                      type_name: str | None = None) -> str:
        """Register an EnumTypeConverter and return the key it was stored under.
        """
        converter = EnumTypeConverter(enum_cls)
        name = self._key(type_name or converter.type_name)
        self.register(name, converter)
        return name

    def register_defaults(self) -> None:
        """Register each built-in converter whose name is still free.
        """
        for type_name, converter in default_converters(self.options).items():
            if not self.supports(type_name):
                self.register(type_name, converter)

    def supports(self, type_name: Any) -> bool:
        return self._key(type_name) in self._converters

    def resolve(self, type_name: Any) -> TypeConverter:
        """Get the converter for a type name.
        """
        name = self._key(type_name)
        if name not in self._converters:
            raise TypeNotSupported(type_name_for(type_name))
        return self._converters[name]

    def type_names(self) -> list[str]:
        return list(self._converters)

    def encode(self, value: Any, type_name: Any) -> Any:
        return self.resolve(type_name).encode(value)

    def decode(self, value: Any, type_name: Any) -> Any:
        return self.resolve(type_name).decode(value)

    def encode_value(self, value: Any) -> Any:
        """Encode a value using the converter for its own type, if any.

        Values of an unregistered type are returned unchanged.
        """
        if value is None:
            return None
        type_name = type_name_of(value)
        if not self.supports(type_name):
            return value
        return self.encode(value, type_name)
