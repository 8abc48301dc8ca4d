"""
Engine-specific exception classes.

Every error raised by the engine derives from DatabaseEngineError and carries a
numeric code plus the data that caused it. Errors are grouped by kind:

- ConfigurationError: empty, duplicate or unknown names
- ConversionError: values that cannot be encoded or decoded
- ResultStateError: cursor misuse and bad column lookups
- ResourceError: missing platform capabilities
"""
from typing import Any


def render_value(value: Any) -> str:
    """Render a value for an error message.
    """
    if value is None:
        return '*NULL*'
    return f'`{value}`'


class DatabaseEngineError(Exception):
    """Base class for all engine errors.
    """

    code = 1200

    def __init__(self, message: str = '') -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(DatabaseEngineError):
    """Error in how connections, parameters or types were set up.
    """


class ConversionError(DatabaseEngineError):
    """Error converting a value between Python and storage form.
    """


class ResultStateError(DatabaseEngineError):
    """Error reading a result cursor.
    """


class ResourceError(DatabaseEngineError):
    """A required platform capability is unavailable.
    """


class ColumnNotFound(ResultStateError):
    """Column name is not part of the result.
    """

    code = 1201

    def __init__(self, name: str, names: list[str]) -> None:
        self.name = name
        self.names = list(names)
        super().__init__(f"The column `{name}` is not defined in the result ({', '.join(self.names)})")


class ConnectionAlreadyDefined(ConfigurationError):
    code = 1202

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'Could not use the connection name `{name}` because it already exists')


class ConnectionNotRegistered(ConfigurationError):
    code = 1203

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'There is no connection with the name `{name}`')


class DuplicateParameterName(ConfigurationError):
    code = 1204

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'The parameter name `{name}` has already been defined')


class EmptyConnectionName(ConfigurationError):
    code = 1205

    def __init__(self) -> None:
        super().__init__('A connection name cannot be empty')


class EmptyParameterName(ConfigurationError):
    code = 1206

    def __init__(self) -> None:
        super().__init__('A parameter name cannot be empty')


class EmptyTypeName(ConfigurationError):
    code = 1207

    def __init__(self) -> None:
        super().__init__('A type name cannot be empty')


class EnumDoesNotExist(ConfigurationError):
    """Enum class could not be found or is not an Enum.
    """

    code = 1208

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'There is no enum class found with the name `{name}`')


class OrdinalOutOfRange(ResultStateError):
    """Ordinal falls outside the columns of the current row.
    """

    code = 1209

    def __init__(self, ordinal: int, minimum: int, maximum: int) -> None:
        self.ordinal = ordinal
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(f'The ordinal {ordinal} is out of range for the result (min: {minimum}, max: {maximum})')


class ResultNotRead(ResultStateError):
    code = 1210

    def __init__(self) -> None:
        super().__init__('You must call ResultCursor.read() before calling this method')


class TokenNotDefined(ConfigurationError):
    code = 1211

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"The token '{{{name}}}' was not found in the passed statement")


class TypeDecodingFailed(ConversionError):
    """Stored value could not be decoded into the expected type.
    """

    code = 1212

    def __init__(self, value: Any, expected_type: str, observed_type: str) -> None:
        self.value = value
        self.expected_type = expected_type
        self.observed_type = observed_type
        super().__init__(f'Could not decode data from {observed_type} to {expected_type}: {render_value(value)}')


class TypeEncodingFailed(ConversionError):
    """Value does not have the shape the converter expects.
    """

    code = 1213

    def __init__(self, value: Any, target_type: str, observed_type: str) -> None:
        self.value = value
        self.target_type = target_type
        self.observed_type = observed_type
        super().__init__(f'Could not encode data to {target_type} from {observed_type}: {render_value(value)}')


class TypeNotSupported(ConfigurationError):
    code = 1214

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'There is no type converter registered for the type `{name}`')


class UuidGenerationFailed(ResourceError):
    code = 1215

    def __init__(self) -> None:
        super().__init__('No cryptographically secure random function available')
