"""
Query construction.

This module provides:
- QueryParameter / Query: immutable statement text plus named parameters
- BuildableQuery: anything that can produce a Query
- QueryBuilder: accumulates statement text with {token} substitution and
  binds named parameters

Token substitution is plain text templating. It does not escape anything, so
untrusted values must always be bound as parameters.
"""
import logging
import secrets
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol, Self, runtime_checkable

from dbengine.exceptions import DuplicateParameterName, EmptyParameterName
from dbengine.exceptions import TokenNotDefined, UuidGenerationFailed
from dbengine.options import AUTO_PARAMETER_PREFIX, EngineOptions

__all__ = [
    'QueryParameter',
    'Query',
    'BuildableQuery',
    'QueryBuilder',
    'substitute_tokens',
    'as_query',
]

logger = logging.getLogger(__name__)

UUID_BYTES = 16

RandomSource = Callable[[int], bytes]


@dataclass(frozen=True, slots=True)
class QueryParameter:
    """Named value bound to a query."""
    name: str
    value: Any


@dataclass(frozen=True)
class Query:
    """Statement text with its bound parameters, in binding order.

    Plain values in `parameters` are wrapped in a QueryParameter named by
    their key.
    """
    statement: str
    parameters: Mapping[str, QueryParameter | Any] = field(default_factory=dict)

    def __post_init__(self):
        parameters = {name: value if isinstance(value, QueryParameter) else QueryParameter(name, value)
                      for name, value in self.parameters.items()}
        object.__setattr__(self, 'parameters', MappingProxyType(parameters))

    def values(self) -> dict[str, Any]:
        """Parameter values keyed by name, for drivers with named binding.
        """
        return {name: param.value for name, param in self.parameters.items()}

    def positional_values(self) -> tuple[Any, ...]:
        """Parameter values in binding order, for positional drivers.
        """
        return tuple(param.value for param in self.parameters.values())

    def build(self) -> Self:
        return self


@runtime_checkable
class BuildableQuery(Protocol):
    """Anything that can be turned into a Query."""

    def build(self) -> Query:
        ...


def as_query(query: Query | BuildableQuery) -> Query:
    """Build a buildable, or return a Query untouched.
    """
    if isinstance(query, Query):
        return query
    return query.build()


def substitute_tokens(statement: str, tokens: Mapping[Any, Any]) -> str:
    """Replace every `{key}` in the statement by the token's value.

    Tokens are applied in order and each one must appear in the statement.

    >>> substitute_tokens('SELECT {0} FROM {table}', {0: 'id', 'table': 'users'})
    'SELECT id FROM users'
    """
    for key, value in tokens.items():
        placeholder = f'{{{key}}}'
        if placeholder not in statement:
            raise TokenNotDefined(str(key))
        statement = statement.replace(placeholder, str(value))
    return statement


def _collect_tokens(tokens: tuple[Any, ...], named_tokens: dict[str, Any]) -> dict[Any, Any]:
    collected: dict[Any, Any] = dict(enumerate(tokens))
    collected.update(named_tokens)
    return collected


class QueryBuilder:
    """Mutable builder for a Query.

    Statement text is assembled through create/append/replace, each of which
    accepts token values by position (`{0}`, `{1}`, ...) or by keyword
    (`{table}`). Parameters are bound by name and keep their binding order.
    """

    def __init__(self, options: EngineOptions | None = None,
                 random_source: RandomSource | None = secrets.token_bytes) -> None:
        self.options = options
        self.allow_replace = options.allow_parameter_replace if options else True
        self.random_source = random_source
        self._prefix = options.auto_parameter_prefix if options else AUTO_PARAMETER_PREFIX
        self._statement = ''
        self._parameters: dict[str, QueryParameter] = {}

    @classmethod
    def create(cls, statement: str | None = None, *tokens: Any,
               options: EngineOptions | None = None, **named_tokens: Any) -> Self:
        """Start a builder, optionally from an initial statement.
        """
        builder = cls(options=options)
        if statement is not None:
            builder._statement = substitute_tokens(statement, _collect_tokens(tokens, named_tokens))
        return builder

    @property
    def statement(self) -> str:
        return self._statement

    @property
    def parameters(self) -> Mapping[str, QueryParameter]:
        return MappingProxyType(self._parameters)

    def has_parameter(self, name: str) -> bool:
        return name.strip() in self._parameters

    def append(self, statement: str, *tokens: Any, **named_tokens: Any) -> Self:
        """Append text to the statement.
        """
        self._statement += substitute_tokens(statement, _collect_tokens(tokens, named_tokens))
        return self

    def replace(self, statement: str, *tokens: Any, **named_tokens: Any) -> Self:
        """Discard the statement so far and start over with new text.
        """
        self._statement = substitute_tokens(statement, _collect_tokens(tokens, named_tokens))
        return self

    def add_parameter(self, name: str, value: Any) -> Self:
        """Bind a value under a name.

        An existing name is overwritten in place unless allow_replace is off.
        """
        name = name.strip()
        if not name:
            raise EmptyParameterName()
        if not self.allow_replace and name in self._parameters:
            raise DuplicateParameterName(name)
        self._parameters[name] = QueryParameter(name, value)
        return self

    def make_parameter(self, value: Any) -> str:
        """Bind a value under the first free generated name and return that name.
        """
        name = self._free_parameter_name()
        self.add_parameter(name, value)
        return name

    def make_uuid(self, name: str | None = None) -> str:
        """Bind a random UUID string and return the parameter name.
        """
        if self.random_source is None:
            raise UuidGenerationFailed()
        try:
            raw = self.random_source(UUID_BYTES)
        except (NotImplementedError, OSError) as e:
            raise UuidGenerationFailed() from e
        value = str(uuid.UUID(bytes=bytes(raw[:UUID_BYTES])))
        if name is None:
            return self.make_parameter(value)
        self.add_parameter(name, value)
        return name.strip()

    def build(self) -> Query:
        """Snapshot the statement and parameters into a Query.
        """
        logger.debug(f'Built query with {len(self._parameters)} parameters')
        return Query(self._statement, self._parameters)

    def _free_parameter_name(self) -> str:
        index = len(self._parameters) + 1
        while f'{self._prefix}{index}' in self._parameters:
            index += 1
        return f'{self._prefix}{index}'

    def __repr__(self) -> str:
        return f'QueryBuilder(statement={self._statement!r}, parameters={list(self._parameters)})'
