from dataclasses import dataclass

from libb import ConfigOptions

__all__ = ['EngineOptions', 'DATETIME_FORMAT', 'AUTO_PARAMETER_PREFIX']

DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'
AUTO_PARAMETER_PREFIX = 'autoParameter'


@dataclass
class EngineOptions(ConfigOptions):
    """Options

    - allow_parameter_replace: Rebinding an existing parameter name overwrites it (default: True)
    - auto_parameter_prefix: Prefix for generated parameter names (default: autoParameter)
    - datetime_format: strftime format used when encoding datetimes
    - register_default_converters: Fill in the built-in type converters (default: True)
    """
    allow_parameter_replace: bool = True
    auto_parameter_prefix: str = AUTO_PARAMETER_PREFIX
    datetime_format: str = DATETIME_FORMAT
    register_default_converters: bool = True

    def __post_init__(self):
        if not self.auto_parameter_prefix or not self.auto_parameter_prefix.strip():
            raise ValueError('auto_parameter_prefix cannot be empty')
        if not self.datetime_format:
            raise ValueError('datetime_format cannot be empty')
        self.auto_parameter_prefix = self.auto_parameter_prefix.strip()
