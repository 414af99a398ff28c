"""Branch data loader with database-first approach, falling back to an Excel workbook."""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Iterable

from openpyxl import load_workbook

from ..config import settings
from ..db.supabase import get_supabase_client
from ..models.domain import Branch, GeoPoint
from ..services.geospatial import point_distance_km

logger = logging.getLogger(__name__)


def _branch_from_row(branch_id: object, name: object, latitude: object, longitude: object) -> Branch | None:
    if branch_id in (None, "") or latitude in (None, "") or longitude in (None, ""):
        return None
    try:
        return Branch(
            id=str(branch_id).strip(),
            name=str(name or branch_id).strip(),
            latitude=float(latitude),
            longitude=float(longitude),
        )
    except (TypeError, ValueError) as e:
        logger.warning(f"Skipping invalid branch row {branch_id!r}: {e}")
        return None


def _load_branches_from_database() -> tuple[Branch, ...] | None:
    """Load active branches from Supabase. Returns None if database not available or empty."""
    supabase = get_supabase_client()
    if not supabase:
        return None

    try:
        response = (
            supabase.table("branches")
            .select("id, title_en, latitude, longitude, is_active")
            .eq("is_active", True)
            .execute()
        )
    except Exception as e:
        logger.debug(f"Branch query failed, falling back to file: {e}")
        return None

    branches = [
        branch
        for row in response.data or []
        if (branch := _branch_from_row(row.get("id"), row.get("title_en"), row.get("latitude"), row.get("longitude")))
    ]
    return tuple(branches) if branches else None


def _load_branches_from_file(source: Path | None = None) -> tuple[Branch, ...]:
    """Load branches from the Excel workbook (Branch, Name, Latitude, Longitude columns)."""
    workbook_path = source or settings.branches_file
    if not workbook_path.exists():
        raise FileNotFoundError(f"Branch workbook not found: {workbook_path}")

    wb = load_workbook(workbook_path, data_only=True, read_only=True)
    try:
        rows = wb.active.iter_rows(min_row=1, values_only=True)
        header = next(rows, None)
        if header is None:
            raise ValueError(f"Branch workbook '{workbook_path}' is empty.")

        header_map = {str(name).strip(): idx for idx, name in enumerate(header) if name is not None}
        missing_columns = {"Branch", "Latitude", "Longitude"} - set(header_map)
        if missing_columns:
            raise ValueError(f"Branch workbook missing columns: {', '.join(sorted(missing_columns))}")

        def cell(row: tuple, column: str) -> object:
            idx = header_map.get(column)
            # Trailing empty cells are not always materialised in read-only mode.
            return row[idx] if idx is not None and idx < len(row) else None

        branches: list[Branch] = []
        for row in rows:
            branch = _branch_from_row(cell(row, "Branch"), cell(row, "Name"), cell(row, "Latitude"), cell(row, "Longitude"))
            if branch:
                branches.append(branch)
        return tuple(branches)
    finally:
        wb.close()


@functools.lru_cache(maxsize=1)
def get_branches(source: Path | None = None) -> tuple[Branch, ...]:
    """Get branches from database first, fall back to the workbook."""
    db_branches = _load_branches_from_database()
    if db_branches:
        return db_branches
    return _load_branches_from_file(source)


def clear_branch_cache() -> None:
    get_branches.cache_clear()


def resolve_branch(branch_id: str | int, branches: Iterable[Branch] | None = None) -> Branch | None:
    wanted = str(branch_id).strip()
    for branch in branches if branches is not None else get_branches():
        if branch.id == wanted:
            return branch
    return None


def nearest_branch(point: GeoPoint, branches: Iterable[Branch] | None = None) -> tuple[Branch, float] | None:
    """Closest branch by great-circle distance, with that distance in km."""
    best: tuple[Branch, float] | None = None
    for branch in branches if branches is not None else get_branches():
        distance = point_distance_km(point, branch.point)
        if best is None or distance < best[1]:
            best = (branch, distance)
    if best is None:
        return None
    return best[0], round(best[1], 2)
