"""
Location unifier.
"""

from typing import Dict, List, Sequence, Tuple

from restaurant_unifier.config.schemas import LocationConfig
from restaurant_unifier.models.entities import Address, Location
from restaurant_unifier.models.sources import SourceData, SquareLocation
from restaurant_unifier.utils.logging_config import logger

DEFAULT_TIMEZONE = 'America/New_York'


def _square_address(location: SquareLocation):
    if location.address is None:
        return None
    address = location.address
    return Address(
        line1=address.address_line_1,
        city=address.locality,
        state=address.administrative_district_level_1,
        zip=address.postal_code,
        country=address.country,
    )


def build_locations(
    sources: SourceData,
    location_configs: Sequence[LocationConfig],
) -> Tuple[List[Location], Dict[str, str]]:
    """
    Creates one canonical location per configured restaurant.

    Square's location feed is the most complete, so address and timezone
    come from it when the restaurant has a Square id.

    Returns:
        The locations and a map from every platform id (and the configured
        name) to the generated location id.
    """
    square_locations: Dict[str, SquareLocation] = {}
    if sources.square is not None:
        square_locations = {loc.id: loc for loc in sources.square.locations.locations}

    locations: List[Location] = []
    location_map: Dict[str, str] = {}

    for config in location_configs:
        square_location = square_locations.get(config.square_id) if config.square_id else None
        if config.square_id and square_location is None:
            logger.warning(f"Location '{config.name}': Square id {config.square_id} not in the location feed")

        location = Location(
            name=config.name,
            address=_square_address(square_location) if square_location else None,
            timezone=(square_location.timezone if square_location and square_location.timezone else DEFAULT_TIMEZONE),
            toast_id=config.toast_id,
            doordash_id=config.doordash_id,
            square_id=config.square_id,
        )
        locations.append(location)

        for platform_id in (config.toast_id, config.doordash_id, config.square_id, config.name):
            if platform_id:
                location_map[platform_id] = location.id

    logger.info(f"Built {len(locations)} locations")
    return locations, location_map
