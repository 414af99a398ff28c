#!/usr/bin/env python3
"""Check the .env file and report which providers and stores fee resolution can use."""

import os
import sys
from pathlib import Path

SECRET_KEYS = ("DFEE_GOOGLE_MAPS_API_KEY", "DFEE_SUPABASE_KEY")

TEMPLATE = """# Google Maps (primary geocoder and the only distance source)
# Without a key every lookup goes to Nominatim and fees are zone/static estimates.
DFEE_GOOGLE_MAPS_API_KEY=
DFEE_GOOGLE_MAPS_REGION=jo

# Nominatim (secondary geocoder) - an identifying User-Agent is required
DFEE_NOMINATIM_USER_AGENT=delivery-fee-service/1.0 (ops@example.com)
DFEE_NOMINATIM_COUNTRY_CODES=jo

# Shipping zones: HTTP zone store, or Supabase tables when unset
# DFEE_ZONE_STORE_URL=https://zones.example.com/api
DFEE_SUPABASE_URL=https://your-project-id.supabase.co
DFEE_SUPABASE_KEY=your-service-role-key-here

# Branches and pricing
DFEE_BRANCHES_FILE=./data/branches.xlsx
DFEE_DEFAULT_BRANCH_LATITUDE=31.9454
DFEE_DEFAULT_BRANCH_LONGITUDE=35.9284
DFEE_STATIC_DEFAULT_FEE=5.00
# south,west,north,east
DFEE_SERVICE_AREA_BOUNDS=29.0,34.0,33.5,39.5
"""


def _mask(line: str) -> str:
    name, _, value = line.partition("=")
    value = value.strip()
    if name.strip() in SECRET_KEYS and len(value) > 12:
        return f"{name}={value[:6]}...{value[-4:]}"
    return line


def main() -> int:
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Delivery fee service environment check")
    print("=" * 60)

    if not env_file.exists():
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"❌ .env file NOT found; wrote a template to {env_file}")
        print("⚠️  Fill in the Google Maps key and zone store settings, then re-run.")
        return 1

    print(f"✅ Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        print(_mask(line))
    print("-" * 60)

    os.chdir(project_root)
    sys.path.insert(0, str(project_root / "src"))
    try:
        from delivery_fee.config import settings
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        return 1

    checks = {
        "Google Maps key (geocoding + distance)": settings.primary_provider_configured,
        "Zone store (HTTP or Supabase)": bool(settings.zone_store_url or (settings.supabase_url and settings.supabase_key)),
        f"Branch workbook {settings.branches_file}": settings.branches_file.exists(),
    }
    for label, ok in checks.items():
        print(f"{'✅' if ok else '❌'} {label}")

    if not checks["Google Maps key (geocoding + distance)"]:
        print()
        print("Fees will be zone or static estimates until a Google Maps key is set.")
    return 0 if all(checks.values()) else 1


if __name__ == "__main__":
    sys.exit(main())
