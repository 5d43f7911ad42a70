"""
Logging configuration module for the uptime monitoring engine.

Logging is configured from JSON dictConfig files. Two of them ship inside this
package ('dev' and 'prod'); a 'custom' file can be supplied at runtime. Every
record is stamped with the engine instance ID so that logs of several
instances can be told apart.
"""

import json
import logging.config
from importlib import resources
from typing import Any, Dict

from uptime_monitor.config import MonitoringContext

_BUILTIN_CONFIGS: Dict[str, str] = {
    "dev": "logging-config-dev.json",
    "prod": "logging-config-prod.json",
}


def configure_logging(context: MonitoringContext) -> None:
    """
    Configure logging for the application based on the provided configuration.

    Args:
        context: Configuration context containing logging settings.

    Raises:
        ValueError: If the logging type is empty or unknown, or if the 'custom'
            type is requested without a configuration file.
        RuntimeError: If the configuration file cannot be loaded.
    """
    logging_type: str = context.logging_type.lower()
    if not logging_type:
        raise ValueError("Logging type must be provided.")

    if logging_type in _BUILTIN_CONFIGS:
        config = _read_builtin_config(_BUILTIN_CONFIGS[logging_type])
    elif logging_type == "custom":
        if not context.logging_config_file:
            raise ValueError("Custom logging configuration file must be provided.")
        config = _read_config_file(context.logging_config_file)
    else:
        raise ValueError(
            f"Invalid logging type: {context.logging_type}. Allowed values are: dev, prod, custom"
        )

    _apply_config(config)

    # The filter goes on the handlers so records from every logger get the field
    instance_filter = _InstanceIdFilter(instance_id=context.instance_id)
    for handler in logging.getLogger().handlers:
        handler.addFilter(instance_filter)

    logging.debug("Logging configured and InstanceIdFilter added.")


def _read_builtin_config(file_name: str) -> Dict[str, Any]:
    """Load one of the JSON logging configurations shipped with this package."""
    try:
        text = resources.files(__package__).joinpath(file_name).read_text(encoding="utf-8")
        return json.loads(text)
    except FileNotFoundError as err:
        raise RuntimeError(f"Logging config file not found: {file_name}") from err
    except json.JSONDecodeError as err:
        raise RuntimeError(f"Invalid JSON format in logging config file: {file_name}") from err


def _read_config_file(config_file: str) -> Dict[str, Any]:
    """
    Load a logging configuration from a JSON file on disk.

    Args:
        config_file: Path to the JSON file containing logging configuration.

    Raises:
        RuntimeError: If the file is not found or does not contain valid JSON.
    """
    try:
        with open(config_file, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as err:
        raise RuntimeError(f"Logging config file not found: {config_file}") from err
    except json.JSONDecodeError as err:
        raise RuntimeError(f"Invalid JSON format in logging config file: {config_file}") from err


def _apply_config(config: Dict[str, Any]) -> None:
    try:
        logging.config.dictConfig(config)
    except Exception as err:
        raise RuntimeError(f"Error loading logging config: {str(err)}") from err


class _InstanceIdFilter(logging.Filter):
    """
    A logging filter that injects the instance ID into every log record.

    Formatters can then reference '%(instance_id)s'.
    """

    def __init__(self, instance_id: str) -> None:
        super().__init__()
        self._instance_id: str = instance_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.instance_id = self._instance_id
        return True
