"""Configuration file loader and validator.

Handles reading, formatting, and validating settings from the INI configuration file and assembles
the engine snapshot (``TranslationManagerConfig``) from it. Raises exceptions for any issues
encountered during loading.

Layout::

    [GENERAL]                     DEBUG, LOG_FILE, LOG_LEVEL
    [MANAGER]                     PRIMARY_PROVIDER, FALLBACK_PROVIDERS, AUTO_FALLBACK, CACHE_RESULTS,
                                  PARALLEL_TRANSLATION, RETRY_COUNT, TIMEOUT, MAX_CONCURRENCY,
                                  FORMALITY, DOMAIN
    [CACHE]                       MAX_ENTRIES, TTL_SECONDS
    [LANGUAGE_PAIR_PREFERENCES]   <src>-<tgt> = <provider id>
    [PROVIDER.<id>]               ENABLED, API_KEY, API_SECRET, ENDPOINT, MODEL, TEMPERATURE,
                                  MAX_TOKENS, TIMEOUT, REGION, PROXY, EXTRA
"""

from __future__ import annotations

import ast
import configparser
from configparser import ConfigParser
from dataclasses import fields
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from polytrans.models.config_models import (
    AppConfig,
    ManagerOptions,
    ProviderEntryConfig,
    ProxyConfig,
    TranslationManagerConfig,
)
from polytrans.models.translation_models import Domain, Formality
from polytrans.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

__all__: list[str] = [
    "KNOWN_PROVIDERS",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

KNOWN_PROVIDERS: Final[list[str]] = [
    "google",
    "deepl",
    "microsoft",
    "baidu",
    "youdao",
    "tencent",
    "openai",
    "claude",
    "gemini",
]

SIMPLE_SECTIONS: Final[tuple[str, ...]] = ("GENERAL", "MANAGER", "CACHE")
PAIR_SECTION: Final[str] = "LANGUAGE_PAIR_PREFERENCES"
PROVIDER_SECTION_PREFIX: Final[str] = "PROVIDER."
LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# INI key -> (ProviderEntryConfig field, expected type)
PROVIDER_KEYS: Final[dict[str, tuple[str, type]]] = {
    "ENABLED": ("enabled", bool),
    "API_KEY": ("api_key", str),
    "API_SECRET": ("api_secret", str),
    "ENDPOINT": ("endpoint", str),
    "MODEL": ("model", str),
    "TEMPERATURE": ("temperature", float),
    "MAX_TOKENS": ("max_tokens", int),
    "TIMEOUT": ("timeout", int),
    "REGION": ("region", str),
    "PROXY": ("proxy", dict),
    "EXTRA": ("extra", dict),
}


class ConfigLoaderError(Exception):
    """An error occurred while processing the configuration file."""


class ConfigFileNotFoundError(ConfigLoaderError):
    """The specified configuration file does not exist."""


class ConfigFormatError(ConfigLoaderError):
    """The configuration file is not formatted correctly."""


class ConfigValueError(ConfigFormatError):
    """The configuration file contains an invalid value."""


class ConfigTypeError(ConfigFormatError):
    """The configuration file contains an invalid type."""


class ConfigLoader:
    """Handles loading and validation of configuration settings.

    This class reads the configuration file, applies formatting rules, and validates settings.
    It raises exceptions for any issues encountered during the loading process.

    Args:
        config_filename (str): INI file name to load.
        script_name (str): Executing script name, used in error messaging.
        debug (bool): Force debug logging regardless of the file.

    Raises:
        ConfigFileNotFoundError: If the configuration file does not exist.
        ConfigFormatError: If the file cannot be parsed or contains invalid values/types.
    """

    def __init__(self, *, config_filename: str, script_name: str = "polytrans", **args) -> None:
        config_path = Path(config_filename)
        msg: str
        if not config_path.exists():
            msg = (
                f"Configuration file '{config_filename}' not found. "
                f"Please create '{config_filename}' before running '{script_name}'."
            )
            raise ConfigFileNotFoundError(msg)

        parser: ConfigParser = ConfigParser(interpolation=None)
        # Language pair keys such as "zh-CN-en" are case sensitive
        parser.optionxform = str  # type: ignore[assignment, method-assign]

        try:
            parser.read(config_filename, encoding="utf-8")
        except configparser.Error as err:
            msg = f"Failed to parse configuration file '{config_filename}': {err}"
            raise ConfigFormatError(msg) from None

        self.config: AppConfig = self.load(parser)
        if args.get("debug", False):
            self.config.GENERAL.DEBUG = True

    @classmethod
    def from_string(cls, text: str) -> AppConfig:
        """Load configuration from INI text instead of a file."""
        parser: ConfigParser = ConfigParser(interpolation=None)
        parser.optionxform = str  # type: ignore[assignment, method-assign]
        try:
            parser.read_string(text)
        except configparser.Error as err:
            msg: str = f"Failed to parse configuration: {err}"
            raise ConfigFormatError(msg) from None
        return cls.load(parser)

    @classmethod
    def load(cls, parser: ConfigParser) -> AppConfig:
        """Convert and validate parsed INI data.

        Raises:
            ConfigFormatError: If a value cannot be parsed or validation fails.
        """
        config: AppConfig = AppConfig()
        formatter = _ConfigFormatter(parser)
        for section_name in SIMPLE_SECTIONS:
            cls._convert_section(parser, formatter, config, section_name)

        for section_name in parser.sections():
            if section_name not in SIMPLE_SECTIONS and section_name != PAIR_SECTION:
                if not section_name.startswith(PROVIDER_SECTION_PREFIX):
                    logger.warning("Ignoring unknown section: '%s'", section_name)

        config.manager_config = cls._build_manager_config(parser, formatter, config)
        cls._validate_settings(config)
        return config

    @staticmethod
    def _convert_section(parser: ConfigParser, formatter: _ConfigFormatter, config: AppConfig, section_name: str) -> None:
        """Convert all fields in a configuration section.

        Raises:
            ConfigFormatError: If a value fails to format correctly.
        """
        if not parser.has_section(section_name):
            logger.debug("Section '%s' not defined, using defaults", section_name)
            return

        section: Any = getattr(config, section_name)
        known: set[str] = {key.name for key in fields(section)}
        for key_name in parser[section_name]:
            if key_name not in known:
                logger.warning("Ignoring unknown setting: '%s.%s'", section_name, key_name)

        for key in fields(section):
            if key.name not in parser[section_name]:
                logger.debug("Skipping undefined setting: '%s.%s'", section_name, key.name)
                continue
            expected: type = type(getattr(section, key.name))
            setattr(section, key.name, formatter.apply_format(section_name, key.name, expected))

    @classmethod
    def _build_manager_config(
        cls, parser: ConfigParser, formatter: _ConfigFormatter, config: AppConfig
    ) -> TranslationManagerConfig:
        manager = config.MANAGER
        try:
            options = ManagerOptions(
                auto_fallback=manager.AUTO_FALLBACK,
                cache_results=manager.CACHE_RESULTS,
                parallel_translation=manager.PARALLEL_TRANSLATION,
                retry_count=manager.RETRY_COUNT,
                timeout=manager.TIMEOUT,
                max_concurrency=manager.MAX_CONCURRENCY,
                formality=Formality(manager.FORMALITY),
                domain=Domain(manager.DOMAIN),
            )
        except ValueError as err:
            msg: str = f"Invalid value in MANAGER: {err}"
            raise ConfigValueError(msg) from None

        providers: dict[str, ProviderEntryConfig] = {}
        for section_name in parser.sections():
            if section_name.startswith(PROVIDER_SECTION_PREFIX):
                provider_id: str = section_name.removeprefix(PROVIDER_SECTION_PREFIX).strip()
                providers[provider_id] = cls._convert_provider(parser, formatter, section_name)

        preferences: dict[str, str] = {}
        if parser.has_section(PAIR_SECTION):
            for pair in parser[PAIR_SECTION]:
                preferences[pair] = formatter.apply_format(PAIR_SECTION, pair, str)

        return TranslationManagerConfig(
            primary_provider=manager.PRIMARY_PROVIDER,
            fallback_providers=list(manager.FALLBACK_PROVIDERS),
            providers=providers,
            options=options,
            language_pair_preferences=preferences,
        )

    @staticmethod
    def _convert_provider(parser: ConfigParser, formatter: _ConfigFormatter, section_name: str) -> ProviderEntryConfig:
        values: dict[str, Any] = {}
        for key_name in parser[section_name]:
            mapping: tuple[str, type] | None = PROVIDER_KEYS.get(key_name)
            if mapping is None:
                logger.warning("Ignoring unknown setting: '%s.%s'", section_name, key_name)
                continue
            field_name, expected = mapping
            values[field_name] = formatter.apply_format(section_name, key_name, expected)

        proxy: dict[str, Any] | None = values.pop("proxy", None)
        try:
            if proxy:
                values["proxy"] = ProxyConfig.from_dict(proxy)
            values["extra"] = {str(key): str(value) for key, value in values.get("extra", {}).items()}
            return ProviderEntryConfig(**values)
        except (KeyError, TypeError, ValueError) as err:
            msg: str = f"Invalid provider settings in '{section_name}': {err}"
            raise ConfigValueError(msg) from None

    @classmethod
    def _validate_settings(cls, config: AppConfig) -> None:
        """Validate the assembled configuration.

        Raises:
            ConfigValueError: If validation fails for any setting.
        """
        manager_config: TranslationManagerConfig = config.manager_config
        enabled: list[str] = manager_config.enabled_providers()
        msg: str
        if not enabled:
            msg = "No provider is enabled. Set 'ENABLED = True' in at least one [PROVIDER.<id>] section."
            raise ConfigValueError(msg)
        if manager_config.primary_provider and manager_config.primary_provider not in enabled:
            msg = f"Primary provider '{manager_config.primary_provider}' is not enabled."
            raise ConfigValueError(msg)

        options: ManagerOptions = manager_config.options
        if options.retry_count < 0:
            msg = f"'MANAGER.RETRY_COUNT' must be 0 or greater: {options.retry_count}"
            raise ConfigValueError(msg)
        if options.timeout <= 0:
            msg = f"'MANAGER.TIMEOUT' must be greater than 0: {options.timeout}"
            raise ConfigValueError(msg)
        if options.max_concurrency < 0:
            msg = f"'MANAGER.MAX_CONCURRENCY' must be 0 or greater: {options.max_concurrency}"
            raise ConfigValueError(msg)
        if config.CACHE.MAX_ENTRIES <= 0 or config.CACHE.TTL_SECONDS <= 0:
            msg = "'CACHE.MAX_ENTRIES' and 'CACHE.TTL_SECONDS' must be greater than 0"
            raise ConfigValueError(msg)
        if config.GENERAL.LOG_LEVEL.upper() not in LOG_LEVELS:
            msg = f"Unsupported log level for 'GENERAL.LOG_LEVEL': {config.GENERAL.LOG_LEVEL}"
            raise ConfigValueError(msg)

        cls._inspect_defined_items("MANAGER.FALLBACK_PROVIDERS", manager_config.fallback_providers, KNOWN_PROVIDERS)
        cls._inspect_defined_items("PROVIDER", list(manager_config.providers), KNOWN_PROVIDERS)
        for provider_id in manager_config.fallback_providers:
            if provider_id not in enabled:
                logger.warning("Fallback provider '%s' is not enabled and will be skipped", provider_id)

    @staticmethod
    def _inspect_defined_items(field_name: str, values: list[str], defined_list: list[str]) -> None:
        """Log a warning for values outside the known set. Custom adapters may use other ids."""
        for value in values:
            if value not in defined_list:
                logger.warning("Unknown value '%s' is set for '%s'", value, field_name)


class _ConfigFormatter:
    """Converts INI string values to typed Python objects (bool, int, float, str, list, dict)."""

    def __init__(self, parser: ConfigParser) -> None:
        self.parser: ConfigParser = parser

    def apply_format(self, section_name: str, key_name: str, expected: type) -> Any:
        """Convert an INI value to the expected Python type.

        Args:
            section_name (str): Section containing the key.
            key_name (str): Key to convert.
            expected (type): Type of the target field.

        Returns:
            Any: Parsed value coerced to the expected type.

        Raises:
            ConfigValueError: If a value cannot be coerced to the expected type.
            ConfigFormatError: If literal evaluation fails due to invalid syntax.
            ConfigTypeError: If the literal has another type than expected.
        """
        formatters: dict[type, Callable[[str, str], Any]] = {
            bool: self.parse_as_boolean,
            int: self.parse_as_integer,
            float: self.parse_as_float,
            str: self.parse_as_string,
        }
        formatter: Callable[[str, str], Any] | None = formatters.get(expected)
        if formatter:
            try:
                return formatter(section_name, key_name)
            except ValueError as err:
                msg = f"Invalid value for {section_name}.{key_name}: {err}"
                raise ConfigValueError(msg) from err

        value_str: str = self.parser[section_name][key_name]
        try:
            value: Any = ast.literal_eval(value_str)
        except ValueError as err:
            msg = f"Invalid literal for {section_name}.{key_name}: {value_str}"
            raise ConfigValueError(msg) from err
        except SyntaxError as err:
            msg = f"Invalid literal for {section_name}.{key_name}: {value_str}"
            raise ConfigFormatError(msg) from err

        if expected is list and isinstance(value, tuple):
            value = list(value)
        if not isinstance(value, expected):
            msg = f"Expected {expected.__name__} for {section_name}.{key_name}, got {type(value).__name__}"
            raise ConfigTypeError(msg)
        return value

    def parse_as_float(self, section_name: str, key_name: str) -> float:
        """Convert INI string to float."""
        value: str = self.parser.get(section_name, key_name)
        for char in ("'", '"', "%"):
            value = value.removeprefix(char).removesuffix(char)
        return float(value)

    def parse_as_integer(self, section_name: str, key_name: str) -> int:
        """Convert INI string to integer."""
        value: str = self.parser.get(section_name, key_name)
        for char in ("'", '"', "%"):
            value = value.removeprefix(char).removesuffix(char)
        return int(float(value))

    def parse_as_boolean(self, section_name: str, key_name: str) -> bool:
        """Convert INI string to boolean."""
        return self.parser.getboolean(section_name, key_name)

    def parse_as_string(self, section_name: str, key_name: str) -> str:
        """Take the value as written, without surrounding quotes."""
        value: str = self.parser.get(section_name, key_name).strip()
        for char in ("'", '"'):
            if len(value) >= 2 and value.startswith(char) and value.endswith(char):
                return value[1:-1]
        return value
