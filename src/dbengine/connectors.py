"""
Reference connector backed by a SQLAlchemy engine.

Queries are executed as `sqlalchemy.text()` statements, so parameters are
referenced by name in the statement (`:autoParameter1`). Bound values are
encoded through the shared TypeConversionRegistry before execution.
"""
import logging
from typing import Any

import sqlalchemy as sa
from dbengine.connection import Connector
from dbengine.cursor import ResultCursor
from dbengine.query import BuildableQuery, Query, as_query
from dbengine.types import TypeConversionRegistry
from sqlalchemy.engine import Engine

__all__ = ['SQLAlchemyConnector']

logger = logging.getLogger(__name__)


class SQLAlchemyConnector(Connector):
    """Connector for any database SQLAlchemy can reach.

    Each execution runs in its own `engine.begin()` block so data changes are
    committed when the statement succeeds.
    """

    def __init__(self, engine: Engine | sa.URL | str, **engine_kwargs: Any) -> None:
        if isinstance(engine, Engine):
            self.engine = engine
        else:
            self.engine = sa.create_engine(engine, **engine_kwargs)
            logger.debug(f'Created new engine for {self.engine.dialect.name}')
        self._last_insert_id: str | int = 0

    @property
    def dialect(self) -> str:
        return str(self.engine.dialect.name).lower()

    def execute(self, type_registry: TypeConversionRegistry,
                query: Query | BuildableQuery) -> ResultCursor:
        query = as_query(query)
        params = {name: type_registry.encode_value(value) for name, value in query.values().items()}

        with self.engine.begin() as conn:
            result = conn.execute(sa.text(query.statement), params)
            if result.returns_rows:
                rows = [dict(row) for row in result.mappings()]
                row_count = len(rows)
            else:
                rows = []
                row_count = result.rowcount
                if result.lastrowid:
                    self._last_insert_id = result.lastrowid

        logger.debug(f'{self.dialect} returned {row_count} rows')
        return ResultCursor(type_registry, row_count, rows)

    def last_insert_id(self) -> str | int:
        return self._last_insert_id

    def dispose(self) -> None:
        """Release the engine's connections.
        """
        self.engine.dispose()
        logger.debug(f'Disposed engine for {self.dialect}')
