import pytest

from conftest import count_rows
from src.acled.errors import InvalidHierarchy, InvalidName
from src.acled.vocabulary import GeographicAreaType
from src.geoparse.geographic_resolver import GeographicResolver


def test_same_key_twice_creates_one_row(store):
    with store.transaction() as con:
        resolver = GeographicResolver(con)
        region = resolver.resolve("Middle East", GeographicAreaType.REGION)
        a = resolver.resolve("Iraq", GeographicAreaType.COUNTRY, region)
        b = resolver.resolve("  Iraq ", GeographicAreaType.COUNTRY, region)
    assert a == b
    assert resolver.created == 2
    assert resolver.cache_hits == 1
    assert count_rows(store, "geographic_area") == 2


def test_same_key_across_loads_reuses_row(store):
    with store.transaction() as con:
        first = GeographicResolver(con).resolve("Middle East", GeographicAreaType.REGION)
    with store.transaction() as con:
        resolver = GeographicResolver(con)
        second = resolver.resolve("Middle East", GeographicAreaType.REGION)
    assert first == second
    assert resolver.created == 0
    assert count_rows(store, "geographic_area") == 1


def test_same_name_under_two_parents_creates_two_rows(store):
    with store.transaction() as con:
        resolver = GeographicResolver(con)
        region = resolver.resolve("Latin America and the Caribbean", GeographicAreaType.REGION)
        mexico = resolver.resolve("Mexico", GeographicAreaType.COUNTRY, region)
        colombia = resolver.resolve("Colombia", GeographicAreaType.COUNTRY, region)
        a = resolver.resolve("Cordoba", GeographicAreaType.ADMIN1, mexico)
        b = resolver.resolve("Cordoba", GeographicAreaType.ADMIN1, colombia)
    assert a != b
    assert count_rows(store, "geographic_area", "WHERE name = ?", ["Cordoba"]) == 2


def test_uniqueness_constraint_covers_regions(store):
    with store.cursor() as cur:
        cur.execute("INSERT INTO geographic_area (name, type) VALUES ('Africa', 'region')")
        with pytest.raises(Exception):
            cur.execute("INSERT INTO geographic_area (name, type) VALUES ('Africa', 'region')")


@pytest.mark.parametrize(
    "area_type,parent",
    [
        (GeographicAreaType.REGION, 1),
        (GeographicAreaType.COUNTRY, None),
        (GeographicAreaType.ADMIN1, None),
    ],
)
def test_invalid_hierarchy(store, area_type, parent):
    with store.cursor() as cur:
        with pytest.raises(InvalidHierarchy):
            GeographicResolver(cur).resolve("Somewhere", area_type, parent)


def test_empty_name_after_trim(store):
    with store.cursor() as cur:
        with pytest.raises(InvalidName):
            GeographicResolver(cur).resolve("   ", GeographicAreaType.REGION)
    assert count_rows(store, "geographic_area") == 0


def test_parent_of_wrong_type_is_rejected(store):
    with store.transaction() as con:
        resolver = GeographicResolver(con)
        region = resolver.resolve("Middle East", GeographicAreaType.REGION)
        iraq = resolver.resolve("Iraq", GeographicAreaType.COUNTRY, region)
        baghdad = resolver.resolve("Baghdad", GeographicAreaType.ADMIN1, iraq)

        with pytest.raises(InvalidHierarchy):
            resolver.resolve("Syria", GeographicAreaType.COUNTRY, baghdad)
        with pytest.raises(InvalidHierarchy):
            resolver.resolve("Basra", GeographicAreaType.ADMIN1, region)
    assert count_rows(store, "geographic_area") == 3


def test_parent_type_checked_against_stored_rows(store):
    with store.transaction() as con:
        region = GeographicResolver(con).resolve("Africa", GeographicAreaType.REGION)
    with store.cursor() as cur:
        resolver = GeographicResolver(cur)
        with pytest.raises(InvalidHierarchy):
            resolver.resolve("Khartoum", GeographicAreaType.ADMIN1, region)
        assert resolver.get(region).type is GeographicAreaType.REGION
    assert count_rows(store, "geographic_area") == 1


def test_missing_parent_is_rejected(store):
    with store.cursor() as cur:
        with pytest.raises(InvalidHierarchy):
            GeographicResolver(cur).resolve("Nowhere", GeographicAreaType.ADMIN1, 999)
    assert count_rows(store, "geographic_area") == 0
