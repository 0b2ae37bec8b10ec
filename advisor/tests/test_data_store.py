import pandas as pd
import pytest

from advisor.errors import NotFoundError
from advisor.venues.data_store import VENUE_COLUMNS, VenueStore, get_venue_store


def test_bundled_venues_load():
    store = VenueStore.from_csv()

    assert len(store) == 12
    bowling = store.get("v-001")
    assert bowling.name == "Tapiola Bowling Center"
    assert bowling.city == "Espoo"
    assert bowling.location.latitude == pytest.approx(60.1756)
    assert bowling.tags == ["indoor", "group", "competitive"]
    assert bowling.partner_tier == "gold"


def test_blank_cells_become_none():
    store = VenueStore.from_csv()

    bistro = store.get("v-003")
    popup = store.get("v-012")

    assert bistro.partner_tier is None
    assert popup.location is None
    assert popup.address is None


def test_city_lookup_is_case_insensitive():
    store = VenueStore.from_csv()

    assert len(store.find(city=" ESPOO ")) == 11
    assert [v.id for v in store.find(city="helsinki")] == ["v-011"]
    assert len(store.find()) == 12


def test_find_by_ids():
    store = VenueStore.from_csv()

    found = store.find(ids=["v-002", "v-005", "missing"])

    assert sorted(v.id for v in found) == ["v-002", "v-005"]


def test_missing_venue_raises():
    with pytest.raises(NotFoundError):
        VenueStore.from_csv().get("missing")


def test_missing_columns_are_tolerated():
    store = VenueStore(pd.DataFrame([{"id": 7, "name": "Bare", "type": "bar"}]))

    venue = store.get("7")

    assert venue.slug == "7"
    assert venue.location is None
    assert venue.tags == []
    assert set(VENUE_COLUMNS) <= set(store._df.columns)


def test_shared_store_is_cached():
    assert get_venue_store() is get_venue_store()
