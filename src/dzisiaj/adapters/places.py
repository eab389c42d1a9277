"""Google Maps "saved places" (Takeout GeoJSON) import."""

import json
import logging

from dzisiaj.core.places import Place, tags_for_name

logger = logging.getLogger(__name__)


def _place_from_feature(feature: dict, auto_tag: bool) -> Place | None:
    location = (feature.get("properties") or {}).get("location") or {}
    name = location.get("name")
    if not name:
        return None

    lng, lat = feature["geometry"]["coordinates"][:2]
    if lat == 0 and lng == 0:
        return None

    return Place(
        name=name,
        lat=float(lat),
        lng=float(lng),
        address=location.get("address") or "",
        tags=tags_for_name(name) if auto_tag else [],
    )


def parse_saved_places(content: str, auto_tag: bool = True) -> list[Place]:
    """
    Parse a Google Takeout "Saved Places" export.

    Raises ValueError if the file is not a feature collection. Features
    without a name or at (0, 0) are dropped; malformed features are logged
    and skipped.
    """
    data = json.loads(content)
    features = data.get("features") if isinstance(data, dict) else None
    if not isinstance(features, list):
        raise ValueError("Not a GeoJSON feature collection")

    places = []
    for i, feature in enumerate(features):
        try:
            place = _place_from_feature(feature, auto_tag)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Skipping place feature #{i}: {e}")
            continue
        if place:
            places.append(place)
    return places
