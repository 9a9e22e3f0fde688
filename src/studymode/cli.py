"""
Command line front end.

    studymode context example.com
    studymode set hideComments true --site example.com
    studymode render https://example.com -o page.html
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from playwright.async_api import Error as PlaywrightError

from .browser import capture_screenshot, fetch_rendered_html
from .config import StudyModeConfig, get_storage_path, resolve_browser_path
from .exceptions import ConfigMalformedError, StudyModeError
from .page.controller import PageController
from .page.document import HtmlDocument
from .page.stylesheet import build_stylesheet
from .settings import (
    FIELDS_BY_KEY,
    clear_site_override,
    export_settings,
    import_settings,
    resolve_effective,
    set_field,
    site_id_from_url,
)
from .storage import JsonFileStore, SettingsStore, load_settings, reset_settings, save_settings

logger = logging.getLogger(__name__)

TRUE_WORDS = {"1", "true", "yes", "on"}
FALSE_WORDS = {"0", "false", "no", "off"}


def parse_field_value(field: str, text: str) -> bool | float:
    """Parse a command-line value for a settings field."""
    field_spec = FIELDS_BY_KEY.get(field)
    if field_spec is None:
        raise ConfigMalformedError(
            f"Unknown field {field!r} (expected one of: {', '.join(FIELDS_BY_KEY)})"
        )

    if field_spec.is_numeric:
        try:
            return float(text)
        except ValueError:
            raise ConfigMalformedError(f"{field} expects a number, got {text!r}") from None

    word = text.strip().lower()
    if word in TRUE_WORDS:
        return True
    if word in FALSE_WORDS:
        return False
    raise ConfigMalformedError(f"{field} expects true/false, got {text!r}")


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


async def cmd_context(args: argparse.Namespace, store: SettingsStore, cfg: StudyModeConfig) -> int:
    settings = await load_settings(store)
    effective, has_override = resolve_effective(settings, args.host)
    _print_json(
        {
            "hostname": args.host.lower(),
            "effective": effective.to_dict(),
            "hasSiteOverride": has_override,
        }
    )
    return 0


async def cmd_set(args: argparse.Namespace, store: SettingsStore, cfg: StudyModeConfig) -> int:
    value = parse_field_value(args.field, args.value)
    settings = await load_settings(store)
    site = args.site or ""
    settings = set_field(settings, site, args.field, value, use_site_scope=bool(args.site))
    await save_settings(store, settings)

    effective, _ = resolve_effective(settings, site)
    _print_json(effective.to_dict())
    return 0


async def cmd_clear_site(args: argparse.Namespace, store: SettingsStore, cfg: StudyModeConfig) -> int:
    settings = await load_settings(store)
    await save_settings(store, clear_site_override(settings, args.host))
    print(f"Site settings reset: {args.host.lower()}")
    return 0


async def cmd_export(args: argparse.Namespace, store: SettingsStore, cfg: StudyModeConfig) -> int:
    text = export_settings(await load_settings(store))
    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
    else:
        print(text)
    return 0


async def cmd_import(args: argparse.Namespace, store: SettingsStore, cfg: StudyModeConfig) -> int:
    try:
        text = Path(args.file).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigMalformedError(f"Cannot read {args.file}: {e}") from e
    await save_settings(store, import_settings(text))
    print("Imported settings.")
    return 0


async def cmd_reset(args: argparse.Namespace, store: SettingsStore, cfg: StudyModeConfig) -> int:
    await reset_settings(store)
    print("Reset done (restored defaults).")
    return 0


async def cmd_render(args: argparse.Namespace, store: SettingsStore, cfg: StudyModeConfig) -> int:
    try:
        html = await fetch_rendered_html(
            args.url,
            executable_path=resolve_browser_path(cfg),
            timeout_ms=cfg.navigation_timeout_ms,
        )
    except PlaywrightError as e:
        print(f"error: failed to load {args.url}: {e}", file=sys.stderr)
        return 1

    document = HtmlDocument(html, url=args.url)
    controller = PageController(document, store, site_id_from_url(args.url), config=cfg)
    await controller.apply_from_storage()
    controller.unload()

    output = document.to_html()
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
    else:
        print(output)
    return 0


async def cmd_screenshot(args: argparse.Namespace, store: SettingsStore, cfg: StudyModeConfig) -> int:
    settings = await load_settings(store)
    effective, _ = resolve_effective(settings, site_id_from_url(args.url))
    try:
        await capture_screenshot(
            args.url,
            build_stylesheet(effective),
            Path(args.path),
            executable_path=resolve_browser_path(cfg),
            timeout_ms=cfg.navigation_timeout_ms,
        )
    except PlaywrightError as e:
        print(f"error: failed to capture {args.url}: {e}", file=sys.stderr)
        return 1
    print(f"Saved {args.path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="studymode",
        description="Hide ads and comments and apply a calm theme, globally or per site.",
    )
    parser.add_argument("--store", help="settings file (default: platform data dir)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("context", help="show effective settings for a host")
    p.add_argument("host")
    p.set_defaults(handler=cmd_context)

    p = sub.add_parser("set", help="change one setting")
    p.add_argument("field", choices=list(FIELDS_BY_KEY))
    p.add_argument("value")
    p.add_argument("--site", help="write to this host's override instead of global")
    p.set_defaults(handler=cmd_set)

    p = sub.add_parser("clear-site", help="drop a host's override")
    p.add_argument("host")
    p.set_defaults(handler=cmd_clear_site)

    p = sub.add_parser("export", help="print settings JSON")
    p.add_argument("-o", "--output")
    p.set_defaults(handler=cmd_export)

    p = sub.add_parser("import", help="load settings JSON")
    p.add_argument("file")
    p.set_defaults(handler=cmd_import)

    p = sub.add_parser("reset", help="restore defaults, dropping all overrides")
    p.set_defaults(handler=cmd_reset)

    p = sub.add_parser("render", help="load a page and print it with study mode applied")
    p.add_argument("url")
    p.add_argument("-o", "--output")
    p.set_defaults(handler=cmd_render)

    p = sub.add_parser("screenshot", help="screenshot a page with the study stylesheet")
    p.add_argument("url")
    p.add_argument("path")
    p.set_defaults(handler=cmd_screenshot)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = StudyModeConfig.load()

    level = logging.DEBUG if args.verbose else getattr(logging, cfg.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    store = JsonFileStore(Path(args.store) if args.store else get_storage_path(cfg))
    try:
        return asyncio.run(args.handler(args, store, cfg))
    except StudyModeError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
