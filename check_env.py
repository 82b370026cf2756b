#!/usr/bin/env python3
"""Check the .env file and Supabase settings, writing a template when none exists."""

import os
import sys
from pathlib import Path

TEMPLATE = """# Supabase Configuration (required for route, share and import storage)
# Get these from: https://supabase.com/dashboard -> Your Project -> Settings -> API
FLEETOPS_SUPABASE_URL=https://your-project-id.supabase.co
FLEETOPS_SUPABASE_KEY=your-service-role-key-here

# API Configuration
FLEETOPS_API_PREFIX=/api
# FLEETOPS_FRONTEND_ALLOWED_ORIGINS accepts a JSON array or a comma-separated list

# Duplicate detection tiers
FLEETOPS_DUPLICATE_THRESHOLD=0.85
FLEETOPS_DUPLICATE_MEDIUM_CONFIDENCE=0.90
FLEETOPS_DUPLICATE_HIGH_CONFIDENCE=0.95

# Route builder
FLEETOPS_CLUSTER_MAX_DISTANCE_KM=1.0
FLEETOPS_MAX_ROUTE_DURATION_MINUTES=120

# Driver share links point at the dashboard
FLEETOPS_SHARE_BASE_URL=http://localhost:5173

# Exported route runs
FLEETOPS_DATA_ROOT=./data
"""


def _mask(value: str) -> str:
    return value[:20] + "..." + value[-10:] if len(value) > 30 else value


def main() -> None:
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Fleet operations environment checker")
    print("=" * 60)

    if not env_file.exists():
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"Created template .env file at: {env_file}")
        print("Edit it and add your Supabase credentials, then run this script again.")
        return

    print(f"Found .env file at: {env_file}")
    for line in env_file.read_text(encoding="utf-8").splitlines():
        if line.startswith("FLEETOPS_SUPABASE_KEY="):
            name, value = line.split("=", 1)
            print(f"  {name}={_mask(value.strip())}")
        elif line and not line.startswith("#"):
            print(f"  {line}")
    print()

    for name in ("FLEETOPS_SUPABASE_URL", "FLEETOPS_SUPABASE_KEY"):
        value = os.getenv(name)
        print(f"{name} in environment: {'yes' if value else 'no'}")

    sys.path.insert(0, str(project_root / "src"))
    try:
        from fleetops.config import settings
    except Exception as e:
        print(f"Error loading config: {e}")
        print("Make sure you're running this from the project root directory")
        return

    if settings.supabase_url and settings.supabase_key:
        print("SUCCESS: Supabase is configured.")
    else:
        print("ERROR: Supabase is NOT configured.")
        print("1. Make sure .env exists in the project root")
        print("2. Make sure variables start with the FLEETOPS_ prefix")
        print("3. Restart the backend after editing .env")


if __name__ == "__main__":
    main()
