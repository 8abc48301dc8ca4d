"""
Driver-agnostic relational data access.

Register named connectors, build parameterized statements, execute them
through one contract and read typed values back:

    registry = ConnectionRegistry()
    registry.register('primary', SQLAlchemyConnector('sqlite://'))

    query = QueryBuilder.create('SELECT * FROM {0} WHERE id = :id', 'users')
    query.add_parameter('id', 42)

    result = registry.execute('primary', query)
    while result.read():
        name = result.value('name', str)
"""
__version__ = '0.1.0'

from dbengine.connection import ConnectionRegistry, Connector
from dbengine.connectors import SQLAlchemyConnector
from dbengine.cursor import ResultCursor, RowStream
from dbengine.exceptions import ColumnNotFound, ConfigurationError
from dbengine.exceptions import ConnectionAlreadyDefined
from dbengine.exceptions import ConnectionNotRegistered, ConversionError
from dbengine.exceptions import DatabaseEngineError, DuplicateParameterName
from dbengine.exceptions import EmptyConnectionName, EmptyParameterName
from dbengine.exceptions import EmptyTypeName, EnumDoesNotExist
from dbengine.exceptions import OrdinalOutOfRange, ResourceError
from dbengine.exceptions import ResultNotRead, ResultStateError
from dbengine.exceptions import TokenNotDefined, TypeDecodingFailed
from dbengine.exceptions import TypeEncodingFailed, TypeNotSupported
from dbengine.exceptions import UuidGenerationFailed
from dbengine.options import EngineOptions
from dbengine.query import BuildableQuery, Query, QueryBuilder, QueryParameter
from dbengine.types import EnumTypeConverter, TypeConversionRegistry
from dbengine.types import TypeConverter, ValueKind, kind_of, type_name_of

__all__ = [
    'ConnectionRegistry',
    'Connector',
    'SQLAlchemyConnector',
    'ResultCursor',
    'RowStream',
    'Query',
    'QueryParameter',
    'QueryBuilder',
    'BuildableQuery',
    'TypeConversionRegistry',
    'TypeConverter',
    'EnumTypeConverter',
    'ValueKind',
    'kind_of',
    'type_name_of',
    'EngineOptions',
    'DatabaseEngineError',
    'ConfigurationError',
    'ConversionError',
    'ResultStateError',
    'ResourceError',
    'ColumnNotFound',
    'ConnectionAlreadyDefined',
    'ConnectionNotRegistered',
    'DuplicateParameterName',
    'EmptyConnectionName',
    'EmptyParameterName',
    'EmptyTypeName',
    'EnumDoesNotExist',
    'OrdinalOutOfRange',
    'ResultNotRead',
    'TokenNotDefined',
    'TypeDecodingFailed',
    'TypeEncodingFailed',
    'TypeNotSupported',
    'UuidGenerationFailed',
]
