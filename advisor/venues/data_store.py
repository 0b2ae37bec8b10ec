from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd

from ..errors import NotFoundError
from .models import GeoPoint, Venue

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"
_VENUES_CSV = _DATA_DIR / "venues.csv"

VENUE_COLUMNS: list[str] = [
    "id",
    "slug",
    "name",
    "city",
    "type",
    "address",
    "latitude",
    "longitude",
    "description",
    "partner_tier",
    "tags",
]

_TAG_SEPARATOR = "|"


def _optional_str(value) -> str | None:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


def _row_to_venue(row: pd.Series) -> Venue:
    lat, lon = row.get("latitude"), row.get("longitude")
    location = None
    if pd.notna(lat) and pd.notna(lon):
        location = GeoPoint(latitude=float(lat), longitude=float(lon))

    tags = _optional_str(row.get("tags"))
    return Venue(
        id=str(row["id"]),
        slug=_optional_str(row.get("slug")) or str(row["id"]),
        name=_optional_str(row.get("name")) or "",
        city=_optional_str(row.get("city")) or "",
        type=_optional_str(row.get("type")) or "",
        address=_optional_str(row.get("address")),
        location=location,
        description=_optional_str(row.get("description")),
        partner_tier=_optional_str(row.get("partner_tier")),
        tags=[t.strip() for t in tags.split(_TAG_SEPARATOR) if t.strip()] if tags else [],
    )


def _venue_to_row(venue: Venue) -> dict:
    return {
        "id": venue.id,
        "slug": venue.slug,
        "name": venue.name,
        "city": venue.city,
        "type": venue.type,
        "address": venue.address,
        "latitude": venue.location.latitude if venue.location else None,
        "longitude": venue.location.longitude if venue.location else None,
        "description": venue.description,
        "partner_tier": venue.partner_tier,
        "tags": _TAG_SEPARATOR.join(venue.tags),
    }


class VenueStore:
    """Read-only venue table backed by a pandas DataFrame."""

    def __init__(self, df: pd.DataFrame) -> None:
        df = df.copy()
        for column in VENUE_COLUMNS:
            if column not in df.columns:
                df[column] = None
        df["id"] = df["id"].astype(str)
        # Lowercase city for case-insensitive lookup
        df["city_lower"] = df["city"].fillna("").astype(str).str.strip().str.lower()
        self._df = df

    @classmethod
    def from_csv(cls, path: Path | str = _VENUES_CSV) -> VenueStore:
        return cls(pd.read_csv(path, dtype={"id": str}))

    @classmethod
    def from_venues(cls, venues: Iterable[Venue]) -> VenueStore:
        rows = [_venue_to_row(v) for v in venues]
        return cls(pd.DataFrame(rows, columns=VENUE_COLUMNS))

    def __len__(self) -> int:
        return len(self._df)

    def find(
        self,
        city: str | None = None,
        ids: Iterable[str] | None = None,
    ) -> list[Venue]:
        """Return venues matching *city* (case-insensitive) and/or the *ids* set."""
        df = self._df
        mask = pd.Series(True, index=df.index)

        if city and city.strip():
            mask = mask & (df["city_lower"] == city.strip().lower())

        if ids is not None:
            mask = mask & df["id"].isin({str(i) for i in ids})

        return [_row_to_venue(row) for _, row in df.loc[mask].iterrows()]

    def get(self, venue_id: str) -> Venue:
        matches = self.find(ids=[venue_id])
        if not matches:
            raise NotFoundError("venue", venue_id)
        return matches[0]


_store: VenueStore | None = None


def get_venue_store() -> VenueStore:
    """Return the bundled venue table, loading it on first call."""
    global _store
    if _store is None:
        _store = VenueStore.from_csv()
    return _store
