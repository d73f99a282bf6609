# jet/cli.py
from __future__ import annotations
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from jet.archive.compression import Codec
from jet.commands import (
    STDIO,
    clearCache,
    expandArchive,
    openCache,
    packArchive,
    peekArchive,
    showCache,
    unpackArchive,
)
from jet.config.settings import VERSION, JetSettings, loadSettings
from jet.core.errors import JetError
from jet.core.logging import clearLogContext, configureLogging

logger = logging.getLogger(__name__)

__all__ = ["EXIT_OK", "EXIT_ENTRY_FAILURES", "EXIT_FATAL", "buildParser", "main"]

EXIT_OK = 0
EXIT_ENTRY_FAILURES = 1
EXIT_FATAL = 2

PEEK_CAVEAT = (
    "note: this is the build description stored in the archive. It is informational only;\n"
    "      expansion follows the compiled manifest, which may differ."
)



def buildParser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="jet", description="Pack and expand jet seed archives")
    p.add_argument("--version", action="version", version=f"jet {VERSION}")
    p.add_argument("--config", type=Path, default=None, help="Config file (json5, default: $JET_CONFIG or <config dir>/jet/config.json5)")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR (overrides config)")
    p.add_argument("--log-file", type=Path, default=None, help="Also write JSON-lines logs to this file")
    p.add_argument("-v", "--verbose", action="store_true", help="Shorthand for --log-level DEBUG")
    sub = p.add_subparsers(dest="cmd", required=True)

    codecChoices = [codec.value for codec in Codec]

    pack = sub.add_parser("pack", help="Compile a jetfuel.xml and write an archive")
    pack.add_argument("source", type=Path, help="Directory inline files are read from (or a jetfuel.xml inside it)")
    pack.add_argument("-F", "--jetfuel", type=Path, default=None, help="Build description path (default: <source>/jetfuel.xml)")
    pack.add_argument("output", help=f"Archive path (.jpk uncompressed, .jpz zlib), or '{STDIO}' for stdout")
    pack.add_argument("--compression", choices=codecChoices, default=None, help="Override the codec inferred from the extension")

    expand = sub.add_parser("expand", help="Materialize an archive: inline files, remote files and launch scripts")
    expand.add_argument("archive", help=f"Archive path, or '{STDIO}' for stdin")
    expand.add_argument("outdir", type=Path, help="Output directory (created if missing)")
    expand.add_argument("--compression", choices=codecChoices, default=None)
    expand.add_argument("--workers", type=int, default=None, help="Concurrent remote fetches (overrides config)")

    unpack = sub.add_parser("unpack", help="Write inline files, @jetfuel.xml and @manifest.json without fetching")
    unpack.add_argument("archive", help=f"Archive path, or '{STDIO}' for stdin")
    unpack.add_argument("outdir", type=Path)
    unpack.add_argument("--compression", choices=codecChoices, default=None)

    peek = sub.add_parser("peek", help="Print the build description stored in an archive")
    peek.add_argument("archive", help=f"Archive path, or '{STDIO}' for stdin")
    peek.add_argument("--compression", choices=codecChoices, default=None)

    cache = sub.add_parser("cache", help="Inspect or clear the download cache")
    cacheSub = cache.add_subparsers(dest="cacheCmd", required=True)
    cacheSub.add_parser("show", help="Print cache location and usage")
    clear = cacheSub.add_parser("clear", help="Delete every cached object")
    clear.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    return p



def _settingsFor(args: argparse.Namespace) -> JetSettings:
    overrides: dict = {}
    if getattr(args, "workers", None) is not None:
        overrides.setdefault("fetch", {})["workers"] = args.workers
    if args.verbose:
        overrides.setdefault("logging", {})["level"] = "DEBUG"
    elif args.log_level:
        overrides.setdefault("logging", {})["level"] = args.log_level
    if args.log_file is not None:
        overrides.setdefault("logging", {})["file"] = str(args.log_file)
    return loadSettings(args.config, overrides=overrides)



def _formatSize(size: int) -> str:
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024 or unit == "GiB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"



def _confirmClear(count: int, location: Path) -> bool:
    print(f"This will delete {count} cached object(s) from {location}.", file=sys.stderr)
    print("Type Y (uppercase) to confirm: ", end="", file=sys.stderr, flush=True)
    answer = sys.stdin.readline().strip()
    return answer == "Y"



def _run(args: argparse.Namespace, settings: JetSettings) -> int:
    if args.cmd == "pack":
        manifest = asyncio.run(packArchive(
            args.source, args.output, codec=args.compression, settings=settings, descriptionPath=args.jetfuel,
        ))
        if args.output != STDIO:
            print(
                f"Packed '{manifest.project.name}': {len(manifest.inline)} inline, "
                f"{len(manifest.remote)} remote, {len(manifest.launch)} launch -> {args.output}"
            )
        return EXIT_OK

    if args.cmd == "expand":
        report = asyncio.run(expandArchive(args.archive, args.outdir, codec=args.compression, settings=settings))
        print(report.summary())
        return report.exitCode

    if args.cmd == "unpack":
        report = unpackArchive(args.archive, args.outdir, codec=args.compression)
        print(report.summary())
        return report.exitCode

    if args.cmd == "peek":
        text = peekArchive(args.archive, codec=args.compression)
        print(PEEK_CAVEAT, file=sys.stderr)
        sys.stdout.write(text if text.endswith("\n") else text + "\n")
        return EXIT_OK

    if args.cmd == "cache":
        cache = openCache(settings)
        summary = showCache(cache)
        if args.cacheCmd == "show":
            print(f"location: {summary.location}")
            print(f"objects:  {summary.objects}")
            print(f"size:     {_formatSize(summary.totalBytes)}")
            return EXIT_OK
        if not args.yes and not _confirmClear(summary.objects, summary.location):
            print("Aborted; cache left untouched.", file=sys.stderr)
            return EXIT_OK
        removed = clearCache(cache)
        print(f"Removed {removed} cached object(s).")
        return EXIT_OK

    raise AssertionError(f"unhandled command {args.cmd!r}")



def main(argv: list[str] | None = None) -> int:
    args = buildParser().parse_args(argv)
    try:
        settings = _settingsFor(args)
    except Exception as err:
        print(f"error: invalid configuration: {err}", file=sys.stderr)
        return EXIT_FATAL

    configureLogging(settings.logging.level, logFile=settings.logging.file, jsonConsole=settings.logging.json_)

    try:
        return _run(args, settings)
    except JetError as err:
        logger.debug("Fatal error", exc_info=True)
        print(f"error: {err}", file=sys.stderr)
        return EXIT_FATAL
    except OSError as err:
        logger.debug("I/O error", exc_info=True)
        print(f"error: {err}", file=sys.stderr)
        return EXIT_FATAL
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        return EXIT_FATAL
    finally:
        clearLogContext()



if __name__ == "__main__":
    sys.exit(main())
