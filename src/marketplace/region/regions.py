"""Operational regions: loaded once from a TOML file."""

import tomllib
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from marketplace.shared import settings
from marketplace.shared.errors import NotFoundError

_DEFAULT_REGIONS_FILE = Path(__file__).with_name("regions.toml")


@dataclass(frozen=True)
class Region:
    name: str
    districts: tuple[str, ...]


@lru_cache(maxsize=1)
def load_regions() -> tuple[Region, ...]:
    path = Path(settings.regions_file() or _DEFAULT_REGIONS_FILE)
    with path.open("rb") as fh:
        data = tomllib.load(fh)
    return tuple(Region(name=r["name"], districts=tuple(r.get("districts", []))) for r in data.get("regions", []))


def region_names() -> list[str]:
    return [region.name for region in load_regions()]


def districts_of(region_name: str) -> list[str]:
    for region in load_regions():
        if region.name.lower() == region_name.lower():
            return list(region.districts)
    raise NotFoundError(f"Unknown region: {region_name}", field="region")


def is_known_region(region_name: str | None) -> bool:
    if not region_name:
        return False
    return region_name.lower() in {name.lower() for name in region_names()}
