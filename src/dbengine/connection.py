"""
Named connections and the uniform execution contract.

This module provides:
1. The `Connector` base class that driver implementations fill in
2. The `ConnectionRegistry` that owns named connectors and the shared
   TypeConversionRegistry, and dispatches queries by connection name
3. The `dumpsql` decorator used to log every execution

The ConnectionRegistry is the primary entry point, providing methods like:
- execute(name, query) - Run a query and return a ResultCursor
- execute_non_query(name, query) - Run a query and return the affected row count
- execute_scalar(name, query, expected_type) - First column of the first row
- last_insert_id(name) - Identifier generated by the last insert
"""
import logging
import time
from abc import ABC, abstractmethod
from functools import wraps
from typing import Any

from dbengine.cursor import ResultCursor
from dbengine.exceptions import ConnectionAlreadyDefined
from dbengine.exceptions import ConnectionNotRegistered, EmptyConnectionName
from dbengine.options import EngineOptions
from dbengine.query import BuildableQuery, Query, QueryBuilder, as_query
from dbengine.types import TypeConversionRegistry, normalize_name

__all__ = ['Connector', 'ConnectionRegistry', 'dumpsql']

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging statements, parameter names and timing."""
    @wraps(func)
    def wrapper(self, name: str, query: Query | BuildableQuery, *args: Any, **kwargs: Any):
        query = as_query(query)
        start = time.time()
        logger.debug(f'SQL [{name}]:\n{query.statement}\nparams: {list(query.parameters)}')
        try:
            return func(self, name, query, *args, **kwargs)
        except Exception:
            logger.error(f'Error with query on {name}:\nSQL:\n{query.statement}\nparams: {list(query.parameters)}')
            raise
        finally:
            logger.debug(f'Query time: {time.time() - start:.4f}s')
    return wrapper


class Connector(ABC):
    """Driver-specific executor of built queries.
    """

    @abstractmethod
    def execute(self, type_registry: TypeConversionRegistry,
                query: Query | BuildableQuery) -> ResultCursor:
        """Execute a query and return a cursor wired to the type registry.
        """

    @abstractmethod
    def last_insert_id(self) -> str | int:
        """Identifier generated by the most recent insert.
        """


class ConnectionRegistry:
    """Named connectors sharing one TypeConversionRegistry.

    Connection names are trimmed and case-folded. Unlike type converters,
    a connection name can only be registered once.

    Populate at startup; registration is not guarded against concurrent
    resolution.
    """

    def __init__(self, type_registry: TypeConversionRegistry | None = None,
                 options: EngineOptions | None = None) -> None:
        self.options = options
        if type_registry is None:
            type_registry = TypeConversionRegistry(options=options)
        elif options is None or options.register_default_converters:
            type_registry.register_defaults()
        self.type_registry = type_registry
        self._connections: dict[str, Connector] = {}

    def __contains__(self, name: str) -> bool:
        return normalize_name(name) in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def names(self) -> list[str]:
        return list(self._connections)

    def register(self, name: str, connector: Connector) -> None:
        """Register a connector under a unique name.
        """
        key = normalize_name(name)
        if not key:
            raise EmptyConnectionName()
        if key in self._connections:
            raise ConnectionAlreadyDefined(name)
        self._connections[key] = connector
        logger.debug(f'Registered connection {key} ({connector.__class__.__name__})')

    def resolve(self, name: str) -> Connector:
        key = normalize_name(name)
        if key not in self._connections:
            raise ConnectionNotRegistered(name)
        return self._connections[key]

    def builder(self, statement: str | None = None, *tokens: Any,
                **named_tokens: Any) -> QueryBuilder:
        """Start a QueryBuilder that honours this registry's options.
        """
        return QueryBuilder.create(statement, *tokens, options=self.options, **named_tokens)

    @dumpsql
    def execute(self, name: str, query: Query | BuildableQuery) -> ResultCursor:
        """Execute a query on the named connection.
        """
        return self.resolve(name).execute(self.type_registry, query)

    def execute_non_query(self, name: str, query: Query | BuildableQuery) -> int:
        """Execute a query and return the affected row count.
        """
        rowcount = self.execute(name, query).row_count
        logger.debug(f'Non-query on {name} affected {rowcount} rows')
        return rowcount

    def execute_scalar(self, name: str, query: Query | BuildableQuery,
                       expected_type: Any = 'mixed') -> Any:
        """Execute a query and decode the first column of the first row.

        Returns None when the query produced no row or no column.
        """
        result = self.execute(name, query)
        if result.read() and result.column_count > 0:
            return result.value(0, expected_type)
        return None

    def last_insert_id(self, name: str) -> str | int:
        return self.resolve(name).last_insert_id()
