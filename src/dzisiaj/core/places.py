"""Saved places and name-based auto-tagging - no I/O dependencies."""

from dataclasses import dataclass, field

# Keywords in a place name -> tags
KEYWORD_TO_TAGS: dict[str, list[str]] = {
    "pizza": ["pizza", "włoskie"],
    "pasta": ["makaron", "włoskie"],
    "sushi": ["sushi", "japońskie"],
    "ramen": ["ramen", "japońskie"],
    "burger": ["burger", "amerykańskie"],
    "kebab": ["kebab", "tureckie"],
    "pierogi": ["pierogi", "polskie"],
    "vegan": ["vegan", "roślinne"],
    "wege": ["wege", "roślinne"],
    "bistro": ["bistro"],
    "bar mleczny": ["bar mleczny", "budżetowo"],
    "cukiernia": ["cukiernia", "desery"],
    "piekarnia": ["piekarnia", "wypieki"],
    "winiarnia": ["winiarnia", "wino"],
    "pub": ["pub"],
    "kawa": ["kawa", "kawiarnia"],
    "coffee": ["kawa", "kawiarnia"],
    "rooftop": ["rooftop", "z widokiem"],
}

CHAINS: list[tuple[tuple[str, ...], list[str]]] = [
    (("mcdonald", "kfc", "burger king", "subway"), ["sieciówka", "fast food"]),
    (("starbucks", "costa coffee"), ["sieciówka", "kawiarnia"]),
]


@dataclass
class Place:
    """A saved place."""

    name: str
    lat: float
    lng: float
    address: str = ""
    tags: list[str] = field(default_factory=list)

    def to_row(self, user: str) -> dict:
        return {
            "user_email": user,
            "name": self.name,
            "address": self.address or None,
            "lat": self.lat,
            "lng": self.lng,
            "tags": self.tags,
        }


def tags_for_name(name: str) -> list[str]:
    """Tags inferred from a place name, unique and in discovery order."""
    lower = name.lower()
    tags: dict[str, None] = {}

    for keyword, keyword_tags in KEYWORD_TO_TAGS.items():
        if keyword in lower:
            tags.update(dict.fromkeys(keyword_tags))

    is_chain = False
    for keywords, chain_tags in CHAINS:
        if any(k in lower for k in keywords):
            is_chain = True
            tags.update(dict.fromkeys(chain_tags))
    if not is_chain:
        tags["lokalne"] = None

    return list(tags)

