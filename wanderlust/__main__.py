#!/usr/bin/env python3
"""
Wanderlust - Discover every street in your neighbourhood

Usage:
    python -m wanderlust [options]

Options:
    --lat LAT         Fixed latitude (for testing without GPS)
    --lon LON         Fixed longitude (for testing without GPS)
    --playback FILE   Playback GPS trace from JSON file
    --speed FACTOR    Playback speed multiplier (default: 1.0)
    --record FILE     Record GPS trace to JSON file
    --suggest         Suggest a route through undiscovered streets and exit
    --radius KM       Search radius for suggestions (default: 2)
    --target KM       Target route length for suggestions (default: 2)
    --html FILE       Write a map of discovered streets (and the suggestion)
    --stats           Print XP, level, achievements and exit
    --reset           Erase all exploration progress and exit
    --db FILE         Database path (default: wanderlust.db)
    --log FILE        Log file path (default: wanderlust_TIMESTAMP.log)
    --config FILE     JSON file of configuration overrides
    --duration SECS   Stop tracking after this many seconds
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path

from .app import Wanderlust
from .config import CONFIG, load_config
from .errors import PositionError
from .geo import Position
from .gps import StaticPosition, TermuxLocation, TracePlayback, TraceRecorder
from .renderer import FoliumRenderer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Wanderlust - Discover every street in your neighbourhood"
    )
    parser.add_argument("--lat", type=float, metavar="LAT",
                        help="Fixed latitude (for testing without GPS)")
    parser.add_argument("--lon", type=float, metavar="LON",
                        help="Fixed longitude (for testing without GPS)")
    parser.add_argument("--playback", metavar="FILE",
                        help="Playback GPS trace from JSON file")
    parser.add_argument("--speed", type=float, default=1.0,
                        help="Playback speed multiplier (default: 1.0)")
    parser.add_argument("--record", metavar="FILE",
                        help="Record GPS trace to JSON file")
    parser.add_argument("--suggest", action="store_true",
                        help="Suggest a route through undiscovered streets and exit")
    parser.add_argument("--radius", type=float, metavar="KM",
                        help="Search radius for suggestions in km (default: 2)")
    parser.add_argument("--target", type=float, metavar="KM",
                        help="Target route length for suggestions in km (default: 2)")
    parser.add_argument("--html", metavar="FILE",
                        help="Write a map of discovered streets to HTML file")
    parser.add_argument("--stats", action="store_true",
                        help="Print XP, level and achievements and exit")
    parser.add_argument("--reset", action="store_true",
                        help="Erase all exploration progress and exit")
    parser.add_argument("--db", metavar="FILE",
                        help="Database path (default: wanderlust.db)")
    parser.add_argument("--log", metavar="FILE",
                        help="Log file path (default: wanderlust_TIMESTAMP.log)")
    parser.add_argument("--config", metavar="FILE",
                        help="JSON file of configuration overrides")
    parser.add_argument("--duration", type=float, metavar="SECONDS",
                        help="Stop tracking after this many seconds")
    return parser


def _print_suggestion(result):
    if not result.success:
        print(f"No route: {result.error}")
        return
    route = result.route
    stats = result.stats
    print(f"Suggested route: {stats['total_distance']:.2f} km, "
          f"{stats['undiscovered_segments']} new segments, "
          f"~{stats['estimated_xp']} XP, ~{stats['estimated_duration']} min")
    for i, waypoint in enumerate(route.waypoints, 1):
        print(f"  {i:2d}. {waypoint.instruction} "
              f"({waypoint.position.lat:.5f}, {waypoint.position.lon:.5f})")


async def run(args) -> int:
    # Determine log path
    log_path = args.log
    if not log_path:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = f"wanderlust_{timestamp}.log"

    fixed = Position(args.lat, args.lon) if args.lat is not None else None
    renderer = FoliumRenderer(center=fixed) if args.html else None
    app = Wanderlust(db_path=args.db, log_path=log_path, renderer=renderer)

    try:
        if args.stats:
            print(json.dumps(app.get_stats(), indent=2))
            return 0

        # Set up position source
        if args.playback:
            if not Path(args.playback).exists():
                print(f"Playback file not found: {args.playback}")
                return 1
            source = TracePlayback(args.playback, args.speed)
        elif fixed is not None:
            source = StaticPosition(fixed)
        else:
            source = TermuxLocation()
        if args.record:
            source = TraceRecorder(source, args.record)

        if args.suggest:
            if fixed is not None:
                position = fixed
            else:
                try:
                    position = await source.get_position()
                except PositionError as e:
                    print(f"Could not get a position fix: {e}")
                    return 1
            app.show_progress()
            result = await app.suggest_route(position, args.radius, args.target)
            _print_suggestion(result)
        else:
            summary = await app.track(source, args.duration)
            print(f"Session: {summary['segments_discovered']} new segments, "
                  f"+{summary['session_xp']} XP (total {summary['total_xp']}, "
                  f"level {summary['level']})")

        if isinstance(source, TraceRecorder):
            path = source.save()
            print(f"GPS trace saved to {path} ({len(source.trace)} entries)")

        if renderer:
            renderer.save(args.html)
            print(f"Map saved to: {args.html}")
            print(f"Open in browser: file://{Path(args.html).absolute()}")
        return 0
    finally:
        app.close()


def main():
    parser = build_parser()
    args = parser.parse_args()

    # Validate lat/lon - must provide both or neither
    if (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be used together")

    if args.config:
        load_config(args.config)

    # Reset progress: early exit
    if args.reset:
        app = Wanderlust(db_path=args.db or CONFIG["db_path"])
        removed = app.reset()
        print(f"Cleared {removed['segments']} discovered segments, "
              f"{removed['routes']} saved routes and {removed['xp']} XP.")
        app.close()
        return 0

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\nStopped.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
