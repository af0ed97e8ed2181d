# cli.py

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime

from focuslens.core.clock import now_ms
from focuslens.core.database import Database
from focuslens.core.services.notification_service import DesktopNotifier, LogNotifier

logger = logging.getLogger("focuslens")


def configure_logging(verbose: bool = False, log_file: str | None = None) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def _fmt(ms: int | None) -> str:
    if ms is None:
        return "now"
    return datetime.fromtimestamp(ms / 1000).isoformat(sep=" ", timespec="seconds")


def cmd_run(args) -> int:
    from focuslens.api.app import create_app
    from focuslens.focus_tracker import FocusTracker

    notifier = DesktopNotifier() if args.desktop_notifications else LogNotifier()
    tracker = FocusTracker(Database(args.db), notifier=notifier)
    tracker.start()
    try:
        app = create_app(tracker)
        app.run(host=args.host, port=args.port, threaded=True, use_reloader=False)
    finally:
        tracker.shutdown()
    return 0


def cmd_status(args) -> int:
    from focuslens.core.services.focus_service import FocusService

    focus = FocusService(Database(args.db))
    now = now_ms()

    active = focus.get_active()
    if active is None:
        print("No active focus.")
    else:
        minutes = active.total_time_ms(now) / 60000
        print(f"Current focus: {active.topic_label} ({minutes:.1f} min)")
        print(f"  keywords: {', '.join(active.keywords)}")

    history = [s for s in focus.history(args.limit) if not s.is_open]
    if history:
        print("\nRecent sessions:")
        for session in history:
            last = session.time_spent[-1] if session.time_spent else {}
            print(
                f"  {session.topic_label:<30} "
                f"{_fmt(last.get('start'))} -> {_fmt(last.get('end'))}"
            )
    return 0


def cmd_sweep(args) -> int:
    from focuslens.core.services.activity_summary_service import ActivitySummaryService
    from focuslens.core.services.attention_service import AttentionService
    from focuslens.core.services.focus_service import FocusService
    from focuslens.core.services.settings_service import SettingsService
    from focuslens.core.services.state_service import StateService
    from focuslens.core.services.visit_service import VisitService
    from focuslens.monitoring.housekeeping import Housekeeping

    db = Database(args.db)
    settings = SettingsService(db).load()
    housekeeping = Housekeeping(
        StateService(db),
        VisitService(db),
        AttentionService(db),
        FocusService(db),
        ActivitySummaryService(db),
        interval_ms=settings.retention_interval_ms,
    )
    report = housekeeping.run(force=args.force)
    if not report.ran:
        print("Housekeeping ran recently; use --force to sweep anyway.")
        return 0

    for name, count in report.deleted.items():
        print(f"{name:<16} {count} deleted")
    for name in report.failed:
        print(f"{name:<16} FAILED")
    return 1 if report.failed else 0


def cmd_settings(args) -> int:
    from focuslens.core.services.settings_service import SettingsService

    service = SettingsService(Database(args.db))
    if args.reset:
        settings = service.reset()
    elif args.set:
        changes = {}
        for item in args.set:
            key, sep, value = item.partition("=")
            if not sep:
                print(f"Expected key=value, got {item!r}", file=sys.stderr)
                return 2
            changes[key.strip()] = value.strip()
        try:
            settings = service.update(**changes)
        except KeyError as e:
            print(f"Unknown setting: {e.args[0]}", file=sys.stderr)
            return 2
        except ValueError as e:
            print(f"Invalid value: {e}", file=sys.stderr)
            return 2
    else:
        settings = service.load()

    for key, value in settings.to_dict().items():
        print(f"{key:<32} {value}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="focuslens",
        description="Infer what you are reading and keep a timeline of focus sessions.",
    )
    parser.add_argument("--db", default=None, help="SQLite database path (default: FOCUSLENS_DB_PATH or ./focuslens.db)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", default=None, help="Also log to this file")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Start the tracker and the browser bridge")
    run.add_argument("--host", default="127.0.0.1")
    run.add_argument("--port", type=int, default=5055)
    run.add_argument("--desktop-notifications", action="store_true", help="Show system notifications")
    run.set_defaults(func=cmd_run)

    status = sub.add_parser("status", help="Show the current focus and recent sessions")
    status.add_argument("--limit", type=int, default=10)
    status.set_defaults(func=cmd_status)

    sweep = sub.add_parser("sweep", help="Run housekeeping once")
    sweep.add_argument("--force", action="store_true", help="Ignore the last-run gate")
    sweep.set_defaults(func=cmd_sweep)

    settings = sub.add_parser("settings", help="Show or change settings")
    settings.add_argument("--set", action="append", metavar="KEY=VALUE")
    settings.add_argument("--reset", action="store_true", help="Restore defaults")
    settings.set_defaults(func=cmd_settings)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose, args.log_file)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
