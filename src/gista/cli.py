from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .clusters import AUTHOR_STATS, ByAuthor, ClusterState
from .config import DEFAULT_CONFIG, Settings, load_config, settings_from_config
from .errors import GistaError
from .git import dump_log_stats, get_repo_toplevel
from .logstats import parse_log_file
from .render import MatplotlibBackend
from .report import render_author_table
from .script import run_script


def _settings(config_path: Path) -> Settings:
    try:
        return settings_from_config(load_config(config_path), base_dir=config_path.resolve().parent)
    except (ValueError, TypeError) as e:
        raise GistaError(f"Invalid config {config_path}: {e}") from e


def _build_run_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gista", description="Plot per-author git statistics from a gista script.")
    parser.add_argument("--config", type=Path, default=Path(DEFAULT_CONFIG), help="Path to gista.json (optional).")
    parser.add_argument("--script", type=Path, default=None, help="Script to interpret (default: gista.cfg).")
    parser.add_argument("--dpi", type=int, default=None, help="Resolution used for figure sizes and saved images.")
    parser.add_argument("--days", type=float, default=None, help="Initial trailing day window.")
    parser.add_argument("--skip", type=int, default=None, help="Initial number of oldest commits to skip per author.")
    parser.add_argument("--quiet", action="store_true", help="Only print diagnostics.")
    return parser


def _missing(path: Path) -> int:
    print(f"File '{path}' does not exist", file=sys.stderr)
    return 1


def _run(argv: list[str]) -> int:
    args = _build_run_parser().parse_args(argv)
    settings = _settings(args.config)
    script = args.script if args.script is not None else settings.script
    if not script.is_file():
        return _missing(script)

    backend = MatplotlibBackend(dpi=args.dpi if args.dpi is not None else settings.dpi)
    run_script(
        script,
        backend,
        days=args.days if args.days is not None else settings.days,
        skip=args.skip if args.skip is not None else settings.skip_commits,
        quiet=bool(args.quiet),
    )
    return 0


def _dump(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="gista dump", description="Write the raw log-stats dump of a git repository.")
    p.add_argument("--repo", type=Path, default=Path("."), help="Repository to read.")
    p.add_argument("--out", type=Path, required=True, help="Where to write the dump.")
    p.add_argument("--all", action="store_true", help="Include all refs, not only HEAD.")
    p.add_argument("--include-merges", action="store_true", help="Include merge commits.")
    args = p.parse_args(argv)

    top = get_repo_toplevel(args.repo)
    if top is None:
        print(f"Not a git repository: {args.repo}", file=sys.stderr)
        return 1
    n = dump_log_stats(top, args.out, all_refs=bool(args.all), include_merges=bool(args.include_merges))
    print(f"Wrote {n} commits to {args.out}")
    return 0


def _parse_alias_args(p: argparse.ArgumentParser, values: list[str]) -> dict[str, str]:
    aliases: dict[str, str] = {}
    for v in values:
        raw, sep, canonical = v.partition("=")
        if not sep or not raw.strip() or not canonical.strip():
            p.error(f"--alias expects RAW=CANONICAL, got: {v!r}")
        aliases[raw.strip()] = canonical.strip()
    return aliases


def _stats(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="gista stats", description="Print per-author statistics for a raw log dump.")
    p.add_argument("--log", type=Path, required=True, help="Raw log-stats dump.")
    p.add_argument("--config", type=Path, default=Path(DEFAULT_CONFIG), help="Path to gista.json (optional).")
    p.add_argument("--days", type=float, default=None, help="Trailing day window.")
    p.add_argument("--skip", type=int, default=None, help="Oldest commits to skip per author.")
    p.add_argument("--exclude", type=str, nargs="+", default=[], help="Path substrings to exclude.")
    p.add_argument("--include", type=str, nargs="+", default=[], help="Path substrings to force-include.")
    p.add_argument("--alias", type=str, action="append", default=[], help="RAW=CANONICAL author alias (repeatable).")
    p.add_argument("--sort-by", choices=[k for k, _ in AUTHOR_STATS], default="lines-changed")
    p.add_argument("--top", type=int, default=0, help="Show only the top N authors (0 = all).")
    args = p.parse_args(argv)

    if not args.log.is_file():
        return _missing(args.log)
    settings = _settings(args.config)
    graph = parse_log_file(args.log, _parse_alias_args(p, args.alias))
    state = ClusterState(
        exclude=tuple(args.exclude),
        include=tuple(args.include),
        days=args.days if args.days is not None else settings.days,
        skip=args.skip if args.skip is not None else settings.skip_commits,
    )
    cluster = ByAuthor(graph, state)
    cluster.crunch()
    print(render_author_table(cluster, sort_by=args.sort_by, top_n=int(args.top)))
    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] in ("-h", "--help"):
        p = _build_run_parser()
        p.print_help()
        print("")
        print("commands:")
        print("  run     Interpret a gista script (default).")
        print("  dump    Write the raw log-stats dump of a git repository.")
        print("  stats   Print per-author statistics for a raw log dump.")
        print("")
        print("Run `gista <command> --help` for command-specific options.")
        return 0

    try:
        if argv and argv[0] == "dump":
            return _dump(argv[1:])
        if argv and argv[0] == "stats":
            return _stats(argv[1:])
        if argv and argv[0] == "run":
            argv = argv[1:]
        return _run(argv)
    except GistaError as e:
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
