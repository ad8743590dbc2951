from __future__ import annotations

import argparse
import logging
import sqlite3
import sys

from pingstat.collectors.ping import Prober, make_prober
from pingstat.core.config import (
    API_HOST,
    API_PORT,
    APP_NAME,
    APP_VERSION,
    DAILY_DEFAULT_LIMIT,
    MONTHLY_DEFAULT_LIMIT,
    SCHEDULER_INTERVAL_SECONDS,
    Settings,
)
from pingstat.core.logging import setup_logging, verbosity_to_level
from pingstat.core.models import (
    AddResult,
    Granularity,
    InvalidHostError,
    RemoveResult,
    ResolveResult,
)
from pingstat.services.confirm import Ask
from pingstat.services.recorder import probe_and_record
from pingstat.services.registry import Registry
from pingstat.services.stats import bucket_stats, format_loss, format_rtt, render_table

logger = logging.getLogger(__name__)

EXIT_OK: int = 0
EXIT_FAILURE: int = 1

COMMANDS: tuple[str, ...] = ("add", "remove", "list", "serve")


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {raw!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=APP_NAME,
        description="Record ping latency and packet loss per server and report daily/monthly statistics.",
    )
    parser.add_argument("command", nargs="?", choices=COMMANDS, help="registry command or 'serve'")
    parser.add_argument("host", nargs="?", help="server for add/remove")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("-p", "--probe", action="store_true", help="probe servers and record a sample")
    mode.add_argument(
        "-d",
        "--daily",
        type=_positive_int,
        nargs="?",
        const=DAILY_DEFAULT_LIMIT,
        metavar="N",
        help=f"daily statistics for the last N days (default {DAILY_DEFAULT_LIMIT})",
    )
    mode.add_argument(
        "-m",
        "--monthly",
        type=_positive_int,
        nargs="?",
        const=MONTHLY_DEFAULT_LIMIT,
        metavar="N",
        help=f"monthly statistics for the last N months (default {MONTHLY_DEFAULT_LIMIT})",
    )
    parser.add_argument("-s", "--server", metavar="HOST", help="limit -p/-d/-m to one server")

    parser.add_argument("--data-dir", help="data directory (default $PINGSTAT_HOME or ~/.pingstat)")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="more log output (-vv for debug)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")

    serve = parser.add_argument_group("serve options")
    serve.add_argument(
        "--host", dest="bind", metavar="H", default=API_HOST, help=f"address to bind (default {API_HOST})"
    )
    serve.add_argument("--port", type=int, default=API_PORT, help=f"port to bind (default {API_PORT})")
    serve.add_argument(
        "--interval",
        type=int,
        default=SCHEDULER_INTERVAL_SECONDS,
        help="seconds between scheduled probe runs; 0 disables probing",
    )
    return parser


def _validate(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    stats_or_probe = args.probe or args.daily is not None or args.monthly is not None
    if args.command and stats_or_probe:
        parser.error(f"'{args.command}' cannot be combined with -p, -d or -m")
    if not args.command and not stats_or_probe:
        parser.error("a command (add, remove, list, serve) or one of -p, -d, -m is required")
    if args.command in ("add", "remove") and not args.host:
        parser.error(f"'{args.command}' requires a host")
    if args.command in ("list", "serve") and args.host:
        parser.error(f"'{args.command}' takes no host")
    if args.server and not stats_or_probe:
        parser.error("-s only applies to -p, -d and -m")
    if args.host and not args.command:
        parser.error(f"unexpected argument {args.host!r}")
    if args.port < 0 or args.port > 65535:
        parser.error("--port must be in range 0..65535")
    if args.interval < 0:
        parser.error("--interval must not be negative")


def _targets(
    registry: Registry, server: str | None, *, prober: Prober, ask: Ask
) -> list[str] | None:
    """Hosts a -p/-d/-m run applies to; None when the named server stays unregistered."""
    if server is None:
        return registry.list()
    outcome = registry.resolve(server, prober=prober, ask=ask)
    if outcome.result is ResolveResult.NOT_REGISTERED:
        print(f"{server} is not registered; nothing to do.")
        return None
    return [outcome.host]


def cmd_add(registry: Registry, host: str, *, prober: Prober, ask: Ask) -> int:
    outcome = registry.add(host, prober=prober, ask=ask)
    if outcome.result is AddResult.ADDED:
        print(f"Added {outcome.host}.")
    elif outcome.result is AddResult.ALREADY_PRESENT:
        print(f"{outcome.host} is already registered.")
    else:
        print(f"Not adding {host}.")
    return EXIT_OK


def cmd_remove(registry: Registry, host: str) -> int:
    if registry.remove(host) is RemoveResult.REMOVED:
        print(f"Removed {host}. Recorded samples are kept.")
    else:
        print(f"{host} is not registered.")
    return EXIT_OK


def cmd_list(registry: Registry) -> int:
    hosts = registry.list()
    if not hosts:
        print("No servers registered.")
    for host in hosts:
        print(host)
    return EXIT_OK


def cmd_probe(
    registry: Registry, settings: Settings, server: str | None, *, prober: Prober, ask: Ask
) -> int:
    hosts = _targets(registry, server, prober=prober, ask=ask)
    if hosts is None:
        return EXIT_OK
    if not hosts:
        print("No servers registered. Use 'add <host>' first.")
        return EXIT_OK

    report = probe_and_record(hosts, settings, prober=prober)
    if not report.connectivity_ok:
        print("No internet connectivity; no samples were recorded.", file=sys.stderr)
        return EXIT_FAILURE

    for item in report.hosts:
        m = item.measurement
        if item.error is not None:
            print(f"{item.host}: could not record sample: {item.error}", file=sys.stderr)
        elif m is None or not m.has_rtt:
            print(f"{item.host}: no reply ({format_loss(m.loss if m else None)} loss)")
        else:
            print(
                f"{item.host}: min/avg/max/mdev {format_rtt(m.min)}/{format_rtt(m.avg)}/"
                f"{format_rtt(m.max)}/{format_rtt(m.mdev)} ms, {format_loss(m.loss)} loss"
            )
    return EXIT_FAILURE if report.failed else EXIT_OK


def cmd_stats(
    registry: Registry,
    settings: Settings,
    server: str | None,
    granularity: Granularity,
    limit: int,
    *,
    prober: Prober,
    ask: Ask,
) -> int:
    hosts = _targets(registry, server, prober=prober, ask=ask)
    if hosts is None:
        return EXIT_OK
    if not hosts:
        print("No servers registered. Use 'add <host>' first.")
        return EXIT_OK

    tables: list[str] = []
    failed = 0
    for host in hosts:
        try:
            buckets = bucket_stats(host, settings, granularity, limit)
        except (sqlite3.Error, OSError, InvalidHostError) as exc:
            logger.warning("Cannot read statistics for %s: %s", host, exc)
            print(f"{host}: could not read statistics: {exc}", file=sys.stderr)
            failed += 1
            continue
        tables.append(render_table(host, buckets, granularity))
    if tables:
        print("\n\n".join(tables))
    return EXIT_FAILURE if failed else EXIT_OK


def cmd_serve(settings: Settings, args: argparse.Namespace) -> int:
    import uvicorn

    from pingstat.main import create_app

    app = create_app(settings, probe_interval_seconds=args.interval)
    uvicorn.run(app, host=args.bind, port=args.port, log_level="info", access_log=False)
    return EXIT_OK


def main(
    argv: list[str] | None = None,
    *,
    ask: Ask | None = None,
    prober: Prober | None = None,
) -> int:
    parser = build_parser()
    args = parser.parse_intermixed_args(sys.argv[1:] if argv is None else argv)
    _validate(parser, args)

    settings = Settings.from_env(args.data_dir)
    level = verbosity_to_level(args.verbose)
    if args.command == "serve":
        level = min(level, logging.INFO)
    setup_logging(level, log_file=settings.log_path)

    ask = ask or input
    prober = prober or make_prober(settings.probe_timeout_s)
    registry = Registry.load(settings.config_path)

    try:
        if args.command == "add":
            return cmd_add(registry, args.host, prober=prober, ask=ask)
        if args.command == "remove":
            return cmd_remove(registry, args.host)
        if args.command == "list":
            return cmd_list(registry)
        if args.command == "serve":
            return cmd_serve(settings, args)
        if args.probe:
            return cmd_probe(registry, settings, args.server, prober=prober, ask=ask)
        if args.daily is not None:
            return cmd_stats(
                registry, settings, args.server, Granularity.DAY, args.daily, prober=prober, ask=ask
            )
        return cmd_stats(
            registry, settings, args.server, Granularity.MONTH, args.monthly, prober=prober, ask=ask
        )
    except InvalidHostError as exc:
        print(f"{APP_NAME}: invalid host: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        print(file=sys.stderr)
        return EXIT_FAILURE
    except Exception:
        logger.exception("Unexpected failure")
        return EXIT_FAILURE


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
