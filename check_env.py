#!/usr/bin/env python3
"""Helper script to check the .env file and the configured services."""

from pathlib import Path
import asyncio
import os
import sys

TEMPLATE = """# Directions provider (required to compute route timings)
FIELDROUTE_DIRECTIONS_API_KEY=your-directions-api-key

# Business data
FIELDROUTE_DATA_ROOT=./data
FIELDROUTE_BUSINESS_DATA_FILE=./data/business.json
# FIELDROUTE_HOME_ADDRESS=123 Main St, Springfield

# Supabase (optional, saved routes fall back to files under the data root)
# FIELDROUTE_SUPABASE_URL=https://your-project-id.supabase.co
# FIELDROUTE_SUPABASE_KEY=your-service-role-key-here

# API
FIELDROUTE_API_PREFIX=/api
"""


def _mask(value: str) -> str:
    return value[:6] + "..." + value[-4:] if len(value) > 12 else value


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Field Route environment checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"No .env file at {env_file}, creating a template.")
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print("Edit .env and fill in your credentials, then run this script again.")
        return

    print(f"Found .env file at: {env_file}")
    print()

    sys.path.insert(0, str(project_root / "src"))
    os.chdir(project_root)
    try:
        from fieldroute.config import settings
    except Exception as e:
        print(f"Error loading config: {e}")
        return

    print(f"Business data file: {settings.business_data_file} "
          f"({'found' if settings.business_data_file.exists() else 'MISSING'})")
    print(f"Directions API key: {_mask(settings.directions_api_key) if settings.directions_api_key else 'NOT SET'}")
    print(f"Supabase: {'configured' if settings.supabase_url and settings.supabase_key else 'not configured (file storage)'}")
    print()

    if settings.directions_api_key:
        from fieldroute.services.routing.directions_client import check_health

        healthy = asyncio.run(check_health())
        print(f"Directions provider reachable: {'yes' if healthy else 'NO'}")

    if settings.supabase_url and settings.supabase_key:
        from fieldroute.db.supabase import get_supabase_client

        try:
            get_supabase_client().table("saved_routes").select("route_date").limit(1).execute()
            print("Database reachable: yes")
        except Exception as e:
            print(f"Database reachable: NO ({e})")


if __name__ == "__main__":
    main()
