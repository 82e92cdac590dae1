"""CLI entry point for the forecast refresh engine."""

import argparse
import logging
import sqlite3

from forecaster.config.loader import load_config
from forecaster.daemon import RefreshDaemon, daemon_status, stop_daemon
from forecaster.models.errors import ForecasterError
from forecaster.pipeline.refresh_pipeline import RefreshPipeline
from forecaster.reporting.formatters import format_summary_json, format_summary_text
from forecaster.storage.database import open_database
from forecaster.storage.gateway import StorageGateway

DEFAULT_CONFIG = "ops/configs/default.yaml"
DEFAULT_DB = "data/forecaster.db"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="forecaster",
        description="Daily weather forecast refresh engine",
    )
    parser.add_argument(
        "--config", default=DEFAULT_CONFIG, help="Config YAML path"
    )
    parser.add_argument("--db", default=DEFAULT_DB, help="SQLite DB path")

    sub = parser.add_subparsers(dest="command")

    # refresh
    refresh_p = sub.add_parser("refresh", help="Run one refresh cycle now")
    refresh_p.add_argument(
        "--json", action="store_true", help="Print the summary as JSON"
    )

    # daemon
    daemon_p = sub.add_parser("daemon", help="Refresh daily at the configured time")
    group = daemon_p.add_mutually_exclusive_group()
    group.add_argument("--run-now", action="store_true", help="Refresh once on start")
    group.add_argument("--stop", action="store_true", help="Stop a running daemon")
    group.add_argument("--status", action="store_true", help="Show daemon status")

    # cities list / add / remove / seed
    cities_p = sub.add_parser("cities", help="City catalog operations")
    cities_sub = cities_p.add_subparsers(dest="cities_command")
    cities_sub.add_parser("list", help="List tracked cities")
    add_p = cities_sub.add_parser("add", help="Track a new city")
    add_p.add_argument("name")
    add_p.add_argument("lat", type=float)
    add_p.add_argument("lon", type=float)
    rm_p = cities_sub.add_parser("remove", help="Stop tracking a city")
    rm_p.add_argument("city_id", type=int)
    cities_sub.add_parser("seed", help="Add configured cities missing from the catalog")

    # forecasts
    fc_p = sub.add_parser("forecasts", help="Show stored forecasts")
    fc_p.add_argument("--city", type=int, default=None, help="City id filter")

    # config show
    config_p = sub.add_parser("config", help="Config operations")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Display current config")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)

    if args.command == "refresh":
        return _cmd_refresh(config, args)
    elif args.command == "daemon":
        return _cmd_daemon(config, args)
    elif args.command == "cities":
        return _cmd_cities(config, args)
    elif args.command == "forecasts":
        return _cmd_forecasts(args)
    elif args.command == "config":
        return _cmd_config(config, args)
    else:
        parser.print_help()
        return 1


def _open_gateway(db_path: str) -> StorageGateway:
    return StorageGateway(open_database(db_path))


def _cmd_refresh(config, args) -> int:
    if not config.provider.api_key:
        print("Error: no API key (set provider.api_key or OPENWEATHER_API_KEY)")
        return 1
    pipeline = RefreshPipeline(config, args.db)
    try:
        summary = pipeline.refresh_all_forecasts()
    except (ForecasterError, sqlite3.Error) as e:
        print(f"Refresh failed: {e}")
        return 1
    if args.json:
        print(format_summary_json(summary))
    else:
        print(format_summary_text(summary))
    return 0


def _cmd_daemon(config, args) -> int:
    if args.stop:
        return stop_daemon()
    if args.status:
        return daemon_status()
    if not config.provider.api_key:
        print("Error: no API key (set provider.api_key or OPENWEATHER_API_KEY)")
        return 1
    RefreshDaemon(config, args.db, run_now=args.run_now).start()
    return 0


def _cmd_cities(config, args) -> int:
    gateway = _open_gateway(args.db)
    try:
        if args.cities_command == "list":
            cities = gateway.list_cities()
            print(f"Tracked cities: {len(cities)}")
            for c in cities:
                print(f"  [{c.id}] {c.name} ({c.lat:.5f}, {c.lon:.5f})")
            return 0
        elif args.cities_command == "add":
            try:
                city_id = gateway.add_city(args.name, args.lat, args.lon)
            except sqlite3.IntegrityError:
                print(f"Error: city {args.name!r} already tracked")
                return 1
            print(f"Added {args.name} (id {city_id})")
            return 0
        elif args.cities_command == "remove":
            city = gateway.get_city(args.city_id)
            if city is None:
                print(f"Error: no city with id {args.city_id}")
                return 1
            gateway.remove_city(city.id)
            print(f"Removed {city.name} (id {city.id})")
            return 0
        elif args.cities_command == "seed":
            known = {c.name for c in gateway.list_cities()}
            added = 0
            for c in config.cities:
                if c.name not in known:
                    gateway.add_city(c.name, c.lat, c.lon)
                    added += 1
            print(f"Seeded {added} cities")
            return 0
        else:
            print("Use: cities list | add NAME LAT LON | remove ID | seed")
            return 1
    finally:
        gateway.conn.close()


def _cmd_forecasts(args) -> int:
    gateway = _open_gateway(args.db)
    try:
        rows = gateway.list_forecasts(args.city)
        if args.city is None:
            print(f"Stored forecasts: {len(rows)}")
        else:
            print(f"Stored forecasts: {len(rows)} of {gateway.count_forecasts()}")
        for r in rows:
            print(
                f"  {r['city_name']} {r['forecast_date']}: "
                f"{r['temp_max']:.1f}C {r['weather_main']}"
            )
        return 0
    finally:
        gateway.conn.close()


def _cmd_config(config, args) -> int:
    if args.config_command == "show":
        print(config.model_dump_json(indent=2, exclude={"provider": {"api_key"}}))
        return 0
    else:
        print("Use: config show")
        return 1
