from restaurant_unifier.models.sources import SourceData
from restaurant_unifier.preprocessing.locations import DEFAULT_TIMEZONE, build_locations


def test_square_feed_supplies_address_and_timezone(sample_sources, location_configs):
    locations, location_map = build_locations(sample_sources, location_configs)

    downtown, airport = locations
    assert downtown.timezone == "America/Chicago"
    assert downtown.address.city == "Springfield"
    assert downtown.address.zip == "62701"
    assert airport.timezone == DEFAULT_TIMEZONE
    assert airport.address is None


def test_every_platform_id_maps_to_the_location(sample_sources, location_configs):
    locations, location_map = build_locations(sample_sources, location_configs)
    downtown = locations[0]

    for key in ("toast-rest-1", "dd-store-1", "SQ-LOC-1", "Downtown"):
        assert location_map[key] == downtown.id
    assert location_map["toast-rest-2"] == locations[1].id
    assert len(set(location_map.values())) == 2


def test_missing_square_export_falls_back_to_default(location_configs):
    locations, _ = build_locations(SourceData(), location_configs)
    assert all(loc.timezone == DEFAULT_TIMEZONE for loc in locations)
