#!/usr/bin/env python3
"""
Development helper scripts for the Energy Measurements API.
Provides utilities for database setup, data import and manual queries.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to Python path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import settings
from src.database.service import db_service
from src.exceptions import MeasurementAPIException
from src.health_check import health_check
from src.logging_config import setup_logging
from src.models.measurement import FIELD_LABELS
from src.services.measurement_service import measurement_service
from src.services.query_validator import parse_metrics_query, parse_range_query


async def init_db():
    """Initialize the database with required tables."""
    print("Initializing database...")
    setup_logging()
    try:
        await db_service.init_database()
    finally:
        await db_service.close()
    print("Database initialized")


async def import_data(csv_path: str = None):
    """Import the OWID energy CSV, downloading it when no path is given."""
    print(f"Importing {csv_path or settings.owid_csv_path}...")
    setup_logging()
    try:
        await db_service.init_database()
        summary = await measurement_service.import_owid_csv(csv_path)
    finally:
        await db_service.close()
    print(f"Done. Read {summary.read}, inserted {summary.inserted}, skipped {summary.skipped}")


async def show_metrics(field: str, iso_code: str = None):
    """Display statistics and the available date range for a metric."""
    setup_logging()
    try:
        metrics_request = parse_metrics_query(field, iso_code)
        metrics = await measurement_service.get_metrics(metrics_request)
        date_range = await measurement_service.get_range(parse_range_query(field, iso_code))
    except MeasurementAPIException as e:
        print(f"{e.error_name}: {e.message} {e.details or ''}")
        return
    finally:
        await db_service.close()

    print(f"{FIELD_LABELS[metrics_request.field]} ({iso_code or 'all countries'}):")
    print("-" * 40)
    print(f"Count:   {metrics.count}")
    print(f"Average: {metrics.avg:.3f}")
    print(f"Min:     {metrics.min:.3f}")
    print(f"Max:     {metrics.max:.3f}")
    print(f"StdDev:  {metrics.std_dev:.3f}")
    print(f"Years:   {date_range.min_date.year} - {date_range.max_date.year}")


def show_config():
    """Display current configuration settings."""
    print("Current Configuration:")
    print("-" * 40)
    print(f"API Host: {settings.api_host}")
    print(f"API Port: {settings.api_port}")
    print(f"Debug Mode: {settings.api_debug}")
    print(f"CORS Origins: {', '.join(settings.cors_allow_origins)}")
    print(f"OWID CSV: {settings.owid_csv_url} -> {settings.owid_csv_path}")
    print(f"Import Batch Size: {settings.import_batch_size}")
    print(f"Log Level: {settings.log_level}")


def main():
    """Main script entry point with command selection."""
    if len(sys.argv) < 2:
        print("Energy Measurements API Development Scripts")
        print("Usage: python scripts/dev.py <command> [args]")
        print("\nAvailable commands:")
        print("  init-db                     - Initialize database")
        print("  import-data [csv_path]      - Import OWID energy data")
        print("  show-metrics <field> [iso]  - Display statistics for a metric")
        print("  show-config                 - Display current configuration")
        print("  health                      - Check database health")
        return

    command = sys.argv[1]
    args = sys.argv[2:]

    if command == "init-db":
        asyncio.run(init_db())
    elif command == "import-data":
        asyncio.run(import_data(args[0] if args else None))
    elif command == "show-metrics":
        if not args:
            print("Usage: python scripts/dev.py show-metrics <field> [iso]")
            return
        asyncio.run(show_metrics(args[0], args[1] if len(args) > 1 else None))
    elif command == "show-config":
        show_config()
    elif command == "health":
        healthy = asyncio.run(health_check())
        print("Database healthy" if healthy else "Database unhealthy")
    else:
        print(f"Unknown command: {command}")
        print("Run without arguments to see available commands")


if __name__ == "__main__":
    main()
