"""Configuration loading and validation for PolyTrans.

This package provides utilities for loading, parsing, and validating configuration
settings from the polytrans.ini file.
"""

from polytrans.config.loader import (
    KNOWN_PROVIDERS,
    ConfigFileNotFoundError,
    ConfigFormatError,
    ConfigLoader,
    ConfigLoaderError,
    ConfigTypeError,
    ConfigValueError,
)

__all__: list[str] = [
    "KNOWN_PROVIDERS",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
]
