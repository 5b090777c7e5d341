from __future__ import annotations

from typing import Any, Iterable

import numpy as np
import pandas as pd

from ..geo import distances_km, validate_coordinates, validate_radius
from .config import DEFAULT_MEAL_STORE_CONFIG, MealStoreConfig
from .models import CandidateMeal

CANONICAL_COLUMNS: list[str] = [
    "id",
    "title",
    "cuisine_type",
    "scheduled_at",
    "estimated_cost",
    "max_participants",
    "participants",
    "host_id",
    "latitude",
    "longitude",
    "location_name",
    "status",
    "meal_type",
]

_df: pd.DataFrame | None = None


class MealStoreError(RuntimeError):
    """Raised when the meal table cannot be loaded or queried."""


def _split_participants(value: Any, separator: str) -> list[str]:
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value]
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return []
    return [p.strip() for p in str(value).split(separator) if p.strip()]


def _prepare(raw: pd.DataFrame, config: MealStoreConfig = DEFAULT_MEAL_STORE_CONFIG) -> pd.DataFrame:
    df = raw.copy()
    for col in CANONICAL_COLUMNS:
        if col not in df.columns:
            df[col] = None
    df = df[CANONICAL_COLUMNS].copy()

    df["id"] = df["id"].astype(str)
    df["scheduled_at"] = pd.to_datetime(df["scheduled_at"], errors="coerce")
    df["estimated_cost"] = pd.to_numeric(df["estimated_cost"], errors="coerce")
    df["max_participants"] = pd.to_numeric(df["max_participants"], errors="coerce")
    df["latitude"] = pd.to_numeric(df["latitude"], errors="coerce")
    df["longitude"] = pd.to_numeric(df["longitude"], errors="coerce")
    df["participants"] = df["participants"].apply(
        lambda v: _split_participants(v, config.participants_separator)
    )
    df["host_id"] = df["host_id"].fillna("").astype(str)
    df["status"] = df["status"].fillna("upcoming").astype(str)
    df["meal_type"] = df["meal_type"].fillna(config.default_meal_type).astype(str)

    # Lowercase location names for case-insensitive history lookups
    df["location_lower"] = df["location_name"].fillna("").astype(str).str.strip().str.lower()

    return df


def _load(config: MealStoreConfig = DEFAULT_MEAL_STORE_CONFIG) -> pd.DataFrame:
    if not config.data_path.exists():
        return _prepare(pd.DataFrame(columns=CANONICAL_COLUMNS), config)
    try:
        raw = pd.read_csv(config.data_path, dtype={"id": str, "host_id": str})
    except (OSError, ValueError) as exc:
        raise MealStoreError(f"Could not read meal table from {config.data_path}") from exc
    return _prepare(raw, config)


def get_dataframe() -> pd.DataFrame:
    """Return the in-memory meal DataFrame, loading it on first call."""
    global _df
    if _df is None:
        _df = _load()
    return _df


def set_meals(records: Iterable[dict[str, Any]]) -> None:
    """Replace the meal table with *records* (one dict per meal)."""
    global _df
    _df = _prepare(pd.DataFrame(list(records)))


def clear_meals() -> None:
    global _df
    _df = _prepare(pd.DataFrame(columns=CANONICAL_COLUMNS))


def _optional(value: Any) -> Any:
    return None if pd.isna(value) else value


def _to_candidate(row: pd.Series) -> CandidateMeal:
    max_participants = _optional(row["max_participants"])
    distance = row.get("distance_km")
    return CandidateMeal(
        id=row["id"],
        title=_optional(row["title"]) or "",
        cuisine_type=_optional(row["cuisine_type"]),
        scheduled_at=row["scheduled_at"].to_pydatetime(),
        estimated_cost=_optional(row["estimated_cost"]),
        participant_count=len(row["participants"]),
        max_participants=int(max_participants) if max_participants is not None else None,
        latitude=_optional(row["latitude"]),
        longitude=_optional(row["longitude"]),
        location_name=_optional(row["location_name"]),
        status=row["status"],
        meal_type=row["meal_type"],
        distance_km=float(distance) if distance is not None and pd.notna(distance) else None,
    )


def get_meal(meal_id: str) -> CandidateMeal | None:
    df = get_dataframe()
    match = df.loc[(df["id"] == str(meal_id)) & df["scheduled_at"].notna()]
    if match.empty:
        return None
    return _to_candidate(match.iloc[0])


def find_nearby_meals(
    latitude: float,
    longitude: float,
    radius_km: float,
    meal_type: str | None = None,
    statuses: Iterable[str] | None = None,
    config: MealStoreConfig = DEFAULT_MEAL_STORE_CONFIG,
) -> list[CandidateMeal]:
    """
    Return meals within *radius_km* of the centre, closest first.

    Raises ``InvalidLocationError`` for bad coordinates or radius.
    Each returned meal carries ``distance_km`` rounded to two decimals.
    """
    lat, lon = validate_coordinates(latitude, longitude)
    radius = validate_radius(radius_km)

    df = get_dataframe()
    wanted_type = meal_type or config.default_meal_type
    wanted_statuses = tuple(statuses) if statuses else config.default_statuses

    mask = (
        (df["meal_type"] == wanted_type)
        & df["status"].isin(wanted_statuses)
        & df["latitude"].notna()
        & df["longitude"].notna()
        & df["scheduled_at"].notna()
    )
    candidates = df.loc[mask]
    if candidates.empty:
        return []

    points = candidates[["latitude", "longitude"]].to_numpy(dtype=float)
    distances = distances_km(lat, lon, points)

    candidates = candidates.assign(distance_km=np.round(distances, 2))
    within = candidates.loc[distances <= radius].sort_values(["distance_km", "id"])

    return [_to_candidate(row) for _, row in within.iterrows()]


def count_visits(user_id: str, location_name: str | None, exclude_meal_id: str | None = None) -> int:
    """Count meals the user hosted or joined at *location_name*."""
    if not location_name:
        return 0
    df = get_dataframe()
    if df.empty:
        return 0

    uid = str(user_id)
    at_location = df["location_lower"] == location_name.strip().lower()
    attended = (df["host_id"] == uid) | df["participants"].apply(lambda ps: uid in ps).astype(bool)
    mask = at_location & attended
    if exclude_meal_id is not None:
        mask = mask & (df["id"] != str(exclude_meal_id))
    return int(mask.sum())


def count_location_popularity(
    location_name: str | None,
    config: MealStoreConfig = DEFAULT_MEAL_STORE_CONFIG,
) -> int:
    """Count completed or ongoing meals held at *location_name*."""
    if not location_name:
        return 0
    df = get_dataframe()
    if df.empty:
        return 0

    mask = (df["location_lower"] == location_name.strip().lower()) & df["status"].isin(
        config.popular_statuses
    )
    return int(mask.sum())
