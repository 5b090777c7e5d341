from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_DEFAULT_CSV = Path(__file__).resolve().parent.parent / "data" / "meals.csv"


@dataclass(frozen=True)
class MealStoreConfig:
    data_path: Path = Path(os.getenv("CONVIVIO_MEALS_CSV", str(_DEFAULT_CSV)))
    default_radius_km: float = 15.0
    default_meal_type: str = "physical"
    default_statuses: tuple[str, ...] = ("upcoming", "ongoing")
    popular_statuses: tuple[str, ...] = ("completed", "ongoing")
    participants_separator: str = ";"


DEFAULT_MEAL_STORE_CONFIG = MealStoreConfig()
