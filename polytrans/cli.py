"""CLI for polytrans - multi-provider text/HTML translation."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict, dataclass
from typing import Any

from . import __version__
from .config import ConfigValidator, get_default_config, merge_config

__all__ = ["DiagnosticReport", "diagnose", "main"]


@dataclass
class DiagnosticReport:
    """Diagnostic payload for the info command."""

    version: str
    cache_path: str | None
    cache_entries: int
    configured_providers: list[str]
    available_providers: list[str]
    identity_pool_size: int

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False, indent=2)


def _load_config(path: str | None) -> dict[str, Any]:
    """Merge a JSON config file (if any) over the defaults."""
    config = get_default_config()
    if path:
        with open(path, "r", encoding="utf-8") as f:
            config = merge_config(config, json.load(f))
    return config


def _configure_logging(config: dict[str, Any], verbose: bool) -> None:
    level = "DEBUG" if verbose else config.get("logging", {}).get("level", "WARNING")
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _open_cache(config: dict[str, Any]):
    from .translation.factory import TranslatorFactory

    return TranslatorFactory.create_cache({**config["cache"], "enabled": True})


def diagnose(config: dict[str, Any] | None = None) -> DiagnosticReport:
    """Programmatic entry point for diagnostics."""
    from .translation.identity import IdentityRotator
    from .translation.metadata import ProviderMetadata

    config = config or get_default_config()
    cache = _open_cache(config)
    identity = config["identity"]
    rotator = IdentityRotator(pool_size=identity["pool_size"], seed=identity["seed"])
    cache_path = str(cache.path) if cache.path else None
    cache_entries = len(cache)
    cache.close()

    return DiagnosticReport(
        version=__version__,
        cache_path=cache_path,
        cache_entries=cache_entries,
        configured_providers=list(config["translation"]["providers"]),
        available_providers=ProviderMetadata.list_provider_ids(),
        identity_pool_size=len(rotator),
    )


# =============================================================================
# Subcommand: info
# =============================================================================

def cmd_info(args: argparse.Namespace) -> int:
    """Show installation diagnostics."""
    report = diagnose(args.config_data)

    if args.as_json:
        print(report.to_json())
        return 0

    print("polytrans diagnostics:")
    print(f"  Version: {report.version}")
    print(f"  Cache file: {report.cache_path or 'disabled'}")
    print(f"  Cache entries: {report.cache_entries}")
    print(f"  Configured providers: {', '.join(report.configured_providers)}")
    print(f"  Identity pool size: {report.identity_pool_size}")
    return 0


# =============================================================================
# Subcommand: providers
# =============================================================================

def cmd_providers(args: argparse.Namespace) -> int:
    """List available translation providers."""
    from .translation.metadata import ProviderMetadata

    for provider_id, info in ProviderMetadata.get_all().items():
        d = info.descriptor
        flags = []
        if d.free:
            flags.append("free")
        if d.needs_credential:
            flags.append("api key")
        if d.supports_html:
            flags.append("html")
        suffix = f" ({', '.join(flags)})" if flags else ""
        print(f"{provider_id}: {info.display_name}{suffix}")
    return 0


# =============================================================================
# Subcommand: translate
# =============================================================================

def _read_input(text: str) -> str:
    if text == "-":
        return sys.stdin.read()
    return text


def _translate_overrides(args: argparse.Namespace) -> dict[str, Any]:
    translation: dict[str, Any] = {}
    if args.target:
        translation["target_lang"] = args.target
    if args.source:
        translation["source_lang"] = args.source
    if args.providers:
        translation["providers"] = [p.strip() for p in args.providers.split(",") if p.strip()]
    if args.single:
        translation["use_multiple_providers"] = False

    overrides: dict[str, Any] = {"translation": translation}
    if args.no_cache:
        overrides["cache"] = {"enabled": False}
    return overrides


async def _run_translate(config: dict[str, Any], content: str, as_html: bool) -> str:
    from .translation.factory import TranslatorFactory

    translator = TranslatorFactory.create_translator(config)
    async with translator:
        if as_html:
            return await translator.translate_html(content)
        return await translator.translate(content)


def cmd_translate(args: argparse.Namespace) -> int:
    """Translate text or an HTML fragment."""
    from .translation.exceptions import AllProvidersFailedError

    config = merge_config(args.config_data, _translate_overrides(args))
    try:
        ConfigValidator.validate_or_raise(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    content = _read_input(args.text)
    try:
        result = asyncio.run(_run_translate(config, content, args.html))
    except AllProvidersFailedError as e:
        print(f"Error: {e}", file=sys.stderr)
        for name, error in e.errors.items():
            print(f"  {name}: {error}", file=sys.stderr)
        return 1

    sys.stdout.write(result)
    if not result.endswith("\n"):
        sys.stdout.write("\n")
    return 0


# =============================================================================
# Subcommand: cache
# =============================================================================

def cmd_cache(args: argparse.Namespace) -> int:
    """Inspect or maintain the persistent translation cache."""
    cache = _open_cache(args.config_data)
    try:
        if args.action == "stats":
            stats = cache.get_stats()
            if args.as_json:
                print(json.dumps(stats, ensure_ascii=False, indent=2))
            else:
                print(f"Cache file: {stats['path']}")
                print(f"  Entries: {stats['size']} / {stats['max_size']}")
                print(f"  TTL: {stats['ttl_seconds']:.0f}s")
        elif args.action == "clear":
            cache.clear()
            print("Translation cache cleared.")
        elif args.action == "prune":
            removed = cache.clear_expired()
            print(f"Removed {removed} expired entries.")
        cache.flush()
    finally:
        cache.close()
    return 0


# =============================================================================
# Main entry point
# =============================================================================

def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="polytrans",
        description="Multi-provider text/HTML translation CLI.",
    )
    parser.add_argument(
        "--config",
        help="JSON configuration file merged over the defaults",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # info command
    info_parser = subparsers.add_parser("info", help="Show installation diagnostics")
    info_parser.add_argument(
        "--as-json",
        action="store_true",
        help="Output as JSON",
    )
    info_parser.set_defaults(func=cmd_info)

    # providers command
    providers_parser = subparsers.add_parser("providers", help="List translation providers")
    providers_parser.set_defaults(func=cmd_providers)

    # translate command
    translate_parser = subparsers.add_parser("translate", help="Translate text or HTML")
    translate_parser.add_argument(
        "text",
        help="Text to translate ('-' reads from stdin)",
    )
    translate_parser.add_argument(
        "--html",
        action="store_true",
        help="Treat input as an HTML fragment and preserve its markup",
    )
    translate_parser.add_argument(
        "-t", "--target",
        help="Target language (name or code, e.g. ja, 'Japanese')",
    )
    translate_parser.add_argument(
        "-s", "--source",
        help="Source language (default: auto)",
    )
    translate_parser.add_argument(
        "--providers",
        help="Comma separated provider IDs in priority order",
    )
    translate_parser.add_argument(
        "--single",
        action="store_true",
        help="Use only the first provider",
    )
    translate_parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Disable the translation cache",
    )
    translate_parser.set_defaults(func=cmd_translate)

    # cache command
    cache_parser = subparsers.add_parser("cache", help="Manage the translation cache")
    cache_parser.add_argument(
        "action",
        choices=["stats", "clear", "prune"],
        help="stats: show usage, clear: delete all entries, prune: drop expired entries",
    )
    cache_parser.add_argument(
        "--as-json",
        action="store_true",
        help="Output stats as JSON",
    )
    cache_parser.set_defaults(func=cmd_cache)

    args = parser.parse_args(argv)

    # No command specified - show help
    if args.command is None:
        parser.print_help()
        return 0

    try:
        args.config_data = _load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"Error: Could not load config {args.config}: {e}", file=sys.stderr)
        return 2
    _configure_logging(args.config_data, args.verbose)

    # Execute the command
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
