"""
Tests for the type conversion registry and the default converters.
"""
import datetime

import dateutil.parser
import pytest
from dbengine.exceptions import DatabaseEngineError, EmptyTypeName
from dbengine.exceptions import TypeDecodingFailed, TypeEncodingFailed
from dbengine.exceptions import TypeNotSupported
from dbengine.options import EngineOptions
from dbengine.types import BoolTypeConverter, DateTimeTypeConverter
from dbengine.types import IntTypeConverter, MixedTypeConverter
from dbengine.types import StringTypeConverter, TypeConversionRegistry
from dbengine.types import ValueKind, kind_of, type_name_for, type_name_of
from tests.fixtures.values import Color


class TestTypeNames:
    """Kind tagging and canonical type names"""

    def test_kind_of_primitives(self):
        assert kind_of(None) is ValueKind.NULL
        assert kind_of(True) is ValueKind.BOOL
        assert kind_of(1) is ValueKind.INT
        assert kind_of(1.5) is ValueKind.FLOAT
        assert kind_of('x') is ValueKind.STRING
        assert kind_of(datetime.datetime(2024, 1, 1)) is ValueKind.DATETIME
        assert kind_of(Color.RED) is ValueKind.OBJECT

    def test_type_name_of(self):
        assert type_name_of(False) == 'bool'
        assert type_name_of(0) == 'int'
        assert type_name_of('') == 'string'
        assert type_name_of(None) == 'null'
        assert type_name_of(Color.RED) == 'tests.fixtures.values.Color'

    def test_type_name_for_classes(self):
        assert type_name_for(bool) == 'bool'
        assert type_name_for(str) == 'string'
        assert type_name_for(datetime.datetime) == 'datetime'
        assert type_name_for(object) == 'mixed'
        assert type_name_for(Color) == type_name_of(Color.BLUE)
        assert type_name_for('DateTime') == 'DateTime'


class TestRegistry:
    """Registration, lookup and delegation"""

    def test_defaults_registered(self, type_registry):
        for name in ('bool', 'int', 'float', 'string', 'datetime', 'mixed'):
            assert type_registry.supports(name)

    def test_names_are_normalized(self, type_registry):
        assert type_registry.supports('  INT ')
        assert type_registry.supports('DateTime')
        assert 'Bool' in type_registry

    def test_register_then_supports(self, type_registry):
        type_registry.register('Money', MixedTypeConverter())
        assert type_registry.supports('money')

    def test_reregistration_overwrites(self, type_registry):
        first, second = MixedTypeConverter(), StringTypeConverter()
        type_registry.register('custom', first)
        type_registry.register(' CUSTOM', second)
        assert type_registry.supports('custom')
        assert type_registry.resolve('custom') is second

    def test_empty_type_name(self, type_registry):
        with pytest.raises(EmptyTypeName):
            type_registry.register('   ', MixedTypeConverter())
        with pytest.raises(EmptyTypeName):
            type_registry.supports('')

    def test_resolve_unknown(self, type_registry):
        with pytest.raises(TypeNotSupported) as exc_info:
            type_registry.resolve('geometry')
        assert exc_info.value.name == 'geometry'
        assert exc_info.value.code == 1214

    def test_resolve_none_type(self, type_registry):
        with pytest.raises(TypeNotSupported) as exc_info:
            type_registry.resolve(None)
        assert exc_info.value.name == 'null'

    def test_type_name_for_non_type(self):
        assert type_name_for(None) == 'null'
        with pytest.raises(TypeNotSupported):
            type_name_for(42)

    def test_resolve_by_class(self, type_registry):
        assert isinstance(type_registry.resolve(int), IntTypeConverter)
        assert type_registry.decode('5', int) == 5

    def test_supplied_converter_wins_over_default(self):
        custom = StringTypeConverter()
        registry = TypeConversionRegistry({'bool': custom})
        assert registry.resolve('bool') is custom
        assert isinstance(registry.resolve('int'), IntTypeConverter)

    def test_register_defaults_fills_gaps_only(self):
        custom = MixedTypeConverter()
        registry = TypeConversionRegistry(options=EngineOptions(register_default_converters=False))
        assert len(registry) == 0
        registry.register('int', custom)
        registry.register_defaults()
        assert registry.resolve('int') is custom
        assert registry.supports('bool')

    def test_converter_errors_propagate(self, type_registry):
        with pytest.raises(TypeEncodingFailed):
            type_registry.encode('yes', 'bool')
        with pytest.raises(TypeDecodingFailed):
            type_registry.decode('yes', 'bool')

    def test_encode_value_dispatches_on_own_type(self, type_registry):
        assert type_registry.encode_value(True) == 'true'
        assert type_registry.encode_value(datetime.datetime(2024, 1, 2, 3, 4, 5)) == '2024-01-02 03:04:05'
        assert type_registry.encode_value(None) is None
        assert type_registry.encode_value(b'raw') == b'raw'

    def test_datetime_format_from_options(self):
        registry = TypeConversionRegistry(options=EngineOptions(datetime_format='%Y%m%d'))
        assert registry.encode(datetime.datetime(2024, 1, 2), 'datetime') == '20240102'


class TestBoolConverter:

    @pytest.mark.parametrize('stored', ['TRUE', 'true', '1', 1, True])
    def test_decode_true(self, stored):
        assert BoolTypeConverter().decode(stored) is True

    @pytest.mark.parametrize('stored', ['FALSE', 'false', '0', 0, None, False])
    def test_decode_false(self, stored):
        assert BoolTypeConverter().decode(stored) is False

    @pytest.mark.parametrize('stored', ['yes', '', 2, 1.0, 'truthy'])
    def test_decode_rejects(self, stored):
        with pytest.raises(TypeDecodingFailed):
            BoolTypeConverter().decode(stored)

    def test_encode(self):
        converter = BoolTypeConverter()
        assert converter.encode(True) == 'true'
        assert converter.encode(False) == 'false'

    def test_encode_rejects_non_bool(self):
        with pytest.raises(TypeEncodingFailed) as exc_info:
            BoolTypeConverter().encode(1)
        assert exc_info.value.observed_type == 'int'
        assert exc_info.value.target_type == 'bool'
        assert '`1`' in str(exc_info.value)


class TestNumericConverters:

    def test_int_decode(self, type_registry):
        assert type_registry.decode('42', 'int') == 42
        assert type_registry.decode(42, 'int') == 42
        assert type_registry.decode('-7', 'int') == -7
        assert type_registry.decode(None, 'int') is None

    @pytest.mark.parametrize('stored', ['42.5', 'abc', ' 42', '042', 42.7])
    def test_int_decode_round_trip_mismatch(self, type_registry, stored):
        with pytest.raises(TypeDecodingFailed) as exc_info:
            type_registry.decode(stored, 'int')
        assert exc_info.value.expected_type == 'int'

    def test_float_decode(self, type_registry):
        assert type_registry.decode('42.5', 'float') == 42.5
        assert type_registry.decode('42', 'float') == 42.0
        assert type_registry.decode(42, 'float') == 42.0
        assert type_registry.decode(None, 'float') is None

    @pytest.mark.parametrize('stored', ['abc', '42.50', '1e3'])
    def test_float_decode_round_trip_mismatch(self, type_registry, stored):
        with pytest.raises(TypeDecodingFailed):
            type_registry.decode(stored, 'float')

    @pytest.mark.parametrize('stored', ['nan', 'inf', '-inf', float('nan'), float('inf')])
    def test_float_decode_rejects_non_finite(self, type_registry, stored):
        with pytest.raises(TypeDecodingFailed) as exc_info:
            type_registry.decode(stored, 'float')
        assert exc_info.value.expected_type == 'float'

    def test_encode_is_passthrough(self, type_registry):
        assert type_registry.encode('not a number', 'int') == 'not a number'
        assert type_registry.encode(1.25, 'float') == 1.25


class TestStringAndMixedConverters:

    def test_string(self, type_registry):
        assert type_registry.encode(12, 'string') == '12'
        assert type_registry.decode(12, 'string') == '12'
        assert type_registry.decode(None, 'string') == ''

    def test_mixed_is_identity(self, type_registry):
        value = object()
        assert type_registry.encode(value, 'mixed') is value
        assert type_registry.decode(value, 'mixed') is value


class TestDateTimeConverter:

    def test_encode(self, value_dict):
        assert DateTimeTypeConverter().encode(value_dict['datetime_value']) == '2023-05-15 14:30:45'

    def test_encode_rejects_date(self):
        with pytest.raises(TypeEncodingFailed):
            DateTimeTypeConverter().encode(datetime.date(2023, 5, 15))
        with pytest.raises(TypeEncodingFailed):
            DateTimeTypeConverter().encode('2023-05-15 14:30:45')

    def test_decode(self):
        converter = DateTimeTypeConverter()
        assert converter.decode('2023-05-15 14:30:45') == datetime.datetime(2023, 5, 15, 14, 30, 45)
        assert converter.decode(None) is None

    def test_decode_malformed(self):
        with pytest.raises(TypeDecodingFailed) as exc_info:
            DateTimeTypeConverter().decode('definitely wrong')
        assert exc_info.value.__cause__ is not None

    def test_decode_unexpected_failure_is_engine_error(self, monkeypatch):
        def broken_parse(value):
            raise OverflowError('year is out of range')

        monkeypatch.setattr(dateutil.parser, 'parse', broken_parse)
        with pytest.raises(DatabaseEngineError) as exc_info:
            DateTimeTypeConverter().decode('2023-05-15')
        assert not isinstance(exc_info.value, TypeDecodingFailed)
        assert isinstance(exc_info.value.__cause__, OverflowError)


class TestRoundTrip:
    """decode(encode(v)) == v for same-type inputs"""

    @pytest.mark.parametrize(('key', 'type_name'), [
        ('bool_true', 'bool'),
        ('bool_false', 'bool'),
        ('int_value', 'int'),
        ('negative_int', 'int'),
        ('float_value', 'float'),
        ('integral_float', 'float'),
        ('string_value', 'string'),
        ('datetime_value', 'datetime'),
    ])
    def test_round_trip(self, type_registry, value_dict, key, type_name):
        value = value_dict[key]
        assert type_registry.decode(type_registry.encode(value, type_name), type_name) == value


if __name__ == '__main__':
    __import__('pytest').main([__file__])
