"""Tests for the Google Maps saved places import."""

import json
import logging

import pytest

from dzisiaj.adapters.places import parse_saved_places
from dzisiaj.core.places import Place, tags_for_name


def feature(name: str | None, lng: float, lat: float, address: str = "") -> dict:
    location = {"address": address}
    if name is not None:
        location["name"] = name
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [lng, lat]},
        "properties": {"location": location},
    }


def collection(*features) -> str:
    return json.dumps({"type": "FeatureCollection", "features": list(features)})


class TestTagsForName:
    def test_keywords(self):
        assert tags_for_name("Pizza Dominium") == ["pizza", "włoskie", "lokalne"]

    def test_chain(self):
        tags = tags_for_name("McDonald's Marszałkowska")
        assert "sieciówka" in tags
        assert "lokalne" not in tags

    def test_no_duplicates(self):
        tags = tags_for_name("Coffee & Kawa")
        assert tags.count("kawa") == 1

    def test_plain_name_is_local(self):
        assert tags_for_name("U Szwejka") == ["lokalne"]


class TestParseSavedPlaces:
    def test_parses_features(self):
        content = collection(feature("Sushi Zushi", 21.01, 52.23, "Żurawia 6"))

        [place] = parse_saved_places(content)

        assert place == Place(
            name="Sushi Zushi",
            lat=52.23,
            lng=21.01,
            address="Żurawia 6",
            tags=["sushi", "japońskie", "lokalne"],
        )

    def test_without_auto_tag(self):
        [place] = parse_saved_places(collection(feature("Sushi Zushi", 21.0, 52.2)), auto_tag=False)
        assert place.tags == []

    def test_drops_unnamed_and_null_island(self):
        content = collection(
            feature(None, 21.0, 52.2),
            feature("Nowhere", 0, 0),
            feature("Bar Prasowy", 21.0, 52.2),
        )
        assert [p.name for p in parse_saved_places(content)] == ["Bar Prasowy"]

    def test_malformed_feature_is_skipped(self, caplog):
        broken = {"properties": {"location": {"name": "No geometry"}}}
        content = collection(broken, feature("Bar Prasowy", 21.0, 52.2))

        with caplog.at_level(logging.WARNING):
            places = parse_saved_places(content)

        assert [p.name for p in places] == ["Bar Prasowy"]
        assert "feature #0" in caplog.text

    @pytest.mark.parametrize("content", ["[]", '{"type": "Feature"}'])
    def test_not_a_feature_collection(self, content):
        with pytest.raises(ValueError):
            parse_saved_places(content)

    def test_invalid_json(self):
        with pytest.raises(ValueError):
            parse_saved_places("{not json")

    def test_to_row(self):
        row = Place(name="A", lat=1.0, lng=2.0).to_row("me@example.com")
        assert row == {
            "user_email": "me@example.com",
            "name": "A",
            "address": None,
            "lat": 1.0,
            "lng": 2.0,
            "tags": [],
        }
