"""
Result cursor over a driver-supplied row stream.

The cursor reads rows one at a time and decodes values on demand through the
shared TypeConversionRegistry. Column metadata is captured once from the first
row of the stream; identity and value lookups need an active row.
"""
import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Protocol, Self, runtime_checkable

from dbengine.exceptions import ColumnNotFound, DatabaseEngineError
from dbengine.exceptions import OrdinalOutOfRange, ResultNotRead
from dbengine.exceptions import ResultStateError
from dbengine.types import TypeConversionRegistry

from libb import attrdict

__all__ = ['RowSource', 'RowStream', 'ResultCursor']

logger = logging.getLogger(__name__)


@runtime_checkable
class RowSource(Protocol):
    """Rewindable row stream: elements are mappings of column name to value."""

    def rewind(self) -> None:
        ...

    def current(self) -> Mapping[str, Any] | None:
        ...

    def next(self) -> None:
        ...


class RowStream:
    """Lazy, rewindable view over any iterable of row mappings.

    Rows are pulled from the source only when first needed. By default only
    the first row is kept once consumed, so rewind() works until the stream
    has moved past the second row. Pass `keep_rows=True` to buffer every
    pulled row and allow rewind() at any point.
    """

    def __init__(self, rows: Iterable[Mapping[str, Any]], keep_rows: bool = False) -> None:
        self._source = iter(rows)
        self.keep_rows = keep_rows
        # rows from absolute position _offset onwards
        self._buffer: list[Mapping[str, Any]] = []
        self._offset = 0
        self._head: Mapping[str, Any] | None = None
        self._position = 0
        self._exhausted = False

    def _fill(self) -> bool:
        while self._offset + len(self._buffer) <= self._position and not self._exhausted:
            try:
                self._buffer.append(next(self._source))
            except StopIteration:
                self._exhausted = True
        return self._position < self._offset + len(self._buffer)

    def _release(self) -> None:
        consumed = self._position - self._offset
        if self.keep_rows or consumed <= 0:
            return
        if self._offset == 0:
            self._head = self._buffer[0]
        del self._buffer[:consumed]
        self._offset = self._position

    def rewind(self) -> None:
        if self._offset > 1:
            raise ResultStateError('Rows past the first were released; use RowStream(rows, keep_rows=True) to replay them')
        self._position = 0

    def current(self) -> Mapping[str, Any] | None:
        """Peek at the row under the cursor, None at the end of the stream.
        """
        if self._position < self._offset:
            return self._head
        if not self._fill():
            return None
        return self._buffer[self._position - self._offset]

    def next(self) -> None:
        if self._position < self._offset or self._fill():
            self._position += 1
            self._release()


def _as_row_source(rows: RowSource | Iterable[Mapping[str, Any]]) -> RowSource:
    if isinstance(rows, RowSource):
        return rows
    return RowStream(rows)


class ResultCursor:
    """Stateful reader over the rows produced by one execution.

    State machine: unread -> read(1) -> read(n) -> exhausted. Shape metadata
    (column_names, column_count, row_count) is available at any time;
    ordinal_of, name_of, value and row require a successful read().

    Not safe for concurrent use.
    """

    def __init__(self, type_registry: TypeConversionRegistry, row_count: int,
                 rows: RowSource | Iterable[Mapping[str, Any]]) -> None:
        self.type_registry = type_registry
        self._row_count = row_count
        self._rows = _as_row_source(rows)
        self._current_row: list[Any] | None = None

        self._rows.rewind()
        first = self._rows.current()
        self._columns: list[str] = list(first.keys()) if first is not None else []
        self._ordinals: dict[str, int] = {name: i for i, name in enumerate(self._columns)}
        self._rows.rewind()
        logger.debug(f'Result opened with {len(self._columns)} columns, declared row count {row_count}')

    def __iter__(self) -> Iterator[Self]:
        while self.read():
            yield self

    def read(self) -> bool:
        """Move to the next row; False once the stream is exhausted.
        """
        row = self._rows.current()
        if row is None:
            return False
        self._current_row = list(row.values())
        self._rows.next()
        return True

    advance = read

    @property
    def has_read(self) -> bool:
        return self._current_row is not None

    def _require_read(self) -> None:
        if self._current_row is None:
            raise ResultNotRead()

    @property
    def row_count(self) -> int:
        """Row count declared by the connector, not the rows actually read.
        """
        return self._row_count

    @property
    def column_count(self) -> int:
        return len(self._columns)

    @property
    def column_names(self) -> list[str]:
        return list(self._columns)

    def ordinal_of(self, name: str) -> int:
        """Ordinal of a column name, -1 if unknown.
        """
        self._require_read()
        return self._ordinals.get(name, -1)

    def name_of(self, ordinal: int) -> str:
        """Column name at an ordinal, empty string if out of bounds.
        """
        self._require_read()
        if 0 <= ordinal < len(self._columns):
            return self._columns[ordinal]
        return ''

    def value(self, name_or_ordinal: str | int, expected_type: Any = 'mixed') -> Any:
        """Decode one value of the current row.

        A lookup by name that fails raises ColumnNotFound; a lookup by ordinal
        raises the underlying OrdinalOutOfRange.
        """
        self._require_read()
        by_ordinal = isinstance(name_or_ordinal, int) and not isinstance(name_or_ordinal, bool)
        ordinal = name_or_ordinal if by_ordinal else self.ordinal_of(name_or_ordinal)
        try:
            raw = self._value_at(ordinal)
        except DatabaseEngineError as e:
            if by_ordinal:
                raise
            raise ColumnNotFound(name_or_ordinal, self._columns) from e
        return self.type_registry.decode(raw, expected_type)

    def _value_at(self, ordinal: int) -> Any:
        if ordinal < 0 or ordinal >= self.column_count or ordinal >= len(self._current_row):
            raise OrdinalOutOfRange(ordinal, 0, self.column_count)
        return self._current_row[ordinal]

    def row(self) -> attrdict:
        """Current row as an attribute dictionary of raw values.
        """
        self._require_read()
        return attrdict(zip(self._columns, self._current_row))

    def __repr__(self) -> str:
        return f'ResultCursor(columns={self._columns}, row_count={self._row_count})'
