"""Command line front end.

Examples:
    python -m polytrans --to ja "Good morning"
    python -m polytrans -c polytrans.ini --from en --to de --provider deepl "Good morning"
    python -m polytrans --detect "Guten Morgen"
    python -m polytrans --quota deepl
    python -m polytrans --providers
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn

from polytrans.config.loader import ConfigLoader, ConfigLoaderError
from polytrans.core.cache.manager import TranslationCacheManager
from polytrans.core.trans.interface import AllProvidersExhaustedError, TranslateExceptionError
from polytrans.core.trans.manager import TransManager
from polytrans.models.translation_models import AUTO_DETECT, TranslationOptions, TranslationRequest
from polytrans.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from polytrans.models.config_models import AppConfig
    from polytrans.models.translation_models import LanguageDetectionResult, QuotaInfo, TranslationResponse

__all__: list[str] = ["main", "parse_arguments", "run"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

CFG_FILE: str = "polytrans.ini"


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        print(f"\n{message}\n", file=sys.stderr)
        self.print_help(sys.stderr)
        raise SystemExit(2)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed arguments.
    """
    parser = _ArgumentParser(
        prog="polytrans",
        description="Translate text through the configured translation providers",
        epilog='Example: python -m polytrans --from en --to ja "Good morning"',
    )
    parser.add_argument("-c", "--config", dest="config", default=CFG_FILE, metavar="FILE", help="INI file to load")
    parser.add_argument("--from", dest="source", default=AUTO_DETECT, metavar="SRC", help="Source language code")
    parser.add_argument("--to", dest="target", metavar="TGT", help="Target language code")
    parser.add_argument("--provider", dest="provider", metavar="ID", help="Preferred provider id")
    parser.add_argument("--strict", action="store_true", help="Only use the preferred provider")
    parser.add_argument("--detect", action="store_true", help="Detect the language of TEXT instead")
    parser.add_argument("--quota", dest="quota", metavar="ID", help="Show the usage reported by a provider")
    parser.add_argument("--providers", action="store_true", help="List the registered providers")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    parser.add_argument("text", nargs="?", help="Text to translate")

    args: argparse.Namespace = parser.parse_args(argv)
    if not (args.providers or args.quota):
        if not args.text:
            parser.error("TEXT is required")
        if not args.detect and not args.target:
            parser.error("--to is required when translating")
    if args.strict and not args.provider:
        parser.error("--strict requires --provider")
    return args


def load_config(args: argparse.Namespace) -> AppConfig:
    """Load the configuration file and apply CLI overrides.

    Raises:
        ConfigLoaderError: If the configuration file cannot be loaded.
    """
    script_name: str = Path(sys.argv[0]).stem
    return ConfigLoader(config_filename=args.config, script_name=script_name, debug=args.debug).config


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


async def run(args: argparse.Namespace, config: AppConfig) -> int:
    """Execute the command described by ``args``.

    Returns:
        int: Process exit status.
    """
    manager = TransManager(
        config.manager_config,
        cache_manager=TranslationCacheManager(
            max_entries=config.CACHE.MAX_ENTRIES,
            ttl_sec=config.CACHE.TTL_SECONDS,
            enabled=config.manager_config.options.cache_results,
        ),
    )
    async with manager:
        try:
            if args.providers:
                _print_json(
                    [info.to_dict(encode_json=True) for info in manager.get_available_providers()]
                )
            elif args.quota:
                quota: QuotaInfo | None = await manager.get_quota(args.quota)
                _print_json(quota.to_dict(encode_json=True) if quota else None)
            elif args.detect:
                detection: LanguageDetectionResult = await manager.detect_language(args.text, args.provider)
                _print_json(detection.to_dict(encode_json=True))
            else:
                request = TranslationRequest(
                    text=args.text,
                    target_lang=args.target,
                    source_lang=args.source,
                    options=TranslationOptions(preferred_provider=args.provider, strict_provider=args.strict),
                )
                response: TranslationResponse = await manager.translate(request)
                _print_json(response.to_dict(encode_json=True))
        except AllProvidersExhaustedError as err:
            print(f"\nError: {err}", file=sys.stderr)
            for failure in err.failures:
                print(f"  {failure.provider_id}: {failure.kind} after {failure.attempts} attempt(s)", file=sys.stderr)
            return 1
        except TranslateExceptionError as err:
            print(f"\nError ({err.kind}): {err}", file=sys.stderr)
            return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    args: argparse.Namespace = parse_arguments(argv)
    try:
        config: AppConfig = load_config(args)
    except ConfigLoaderError as err:
        print("\nError: Failed to load configuration file.", file=sys.stderr)
        print(f"Details: {err}", file=sys.stderr)
        return 2

    LoggerUtils.configure(
        config.GENERAL.LOG_FILE or None, level="DEBUG" if config.GENERAL.DEBUG else config.GENERAL.LOG_LEVEL.upper()
    )
    logger.debug("Configuration loaded from '%s'", args.config)
    try:
        return asyncio.run(run(args, config))
    except KeyboardInterrupt:
        print("\n\nCancelled by user.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
