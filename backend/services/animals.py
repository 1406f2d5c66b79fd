"""
Species vocabulary: map what a caller calls the animal ("a bat", "red-tailed
hawk", "baby deer") onto the directory's animal-type tags, and decide whether
it is a rabies-vector species.

Rabies-vector status is decided here from the species words, never by the
language model, because getting it wrong sends a bat to a facility that
can't legally take it.
"""

import re
from typing import Optional

RABIES_VECTOR_SPECIES = ("bat", "raccoon", "fox", "skunk")

# keyword -> animal-type tag; first matching keyword wins, so specific words go first.
_SPECIES_TAGS = (
    ("bat", "bats"),
    ("raccoon", "raccoons"),
    ("skunk", "skunks"),
    ("coyote", "coyotes"),
    ("fox", "small_mammals"),
    ("hawk", "raptors"),
    ("eagle", "raptors"),
    ("owl", "raptors"),
    ("falcon", "raptors"),
    ("osprey", "raptors"),
    ("kestrel", "raptors"),
    ("vulture", "raptors"),
    ("deer", "large_mammals"),
    ("fawn", "large_mammals"),
    ("elk", "large_mammals"),
    ("moose", "large_mammals"),
    ("bear", "large_mammals"),
    ("cougar", "large_mammals"),
    ("mountain lion", "large_mammals"),
    ("antelope", "large_mammals"),
    ("squirrel", "small_mammals"),
    ("rabbit", "small_mammals"),
    ("bunny", "small_mammals"),
    ("opossum", "small_mammals"),
    ("possum", "small_mammals"),
    ("chipmunk", "small_mammals"),
    ("marmot", "small_mammals"),
    ("porcupine", "small_mammals"),
    ("beaver", "small_mammals"),
    ("snake", "reptiles"),
    ("turtle", "reptiles"),
    ("tortoise", "reptiles"),
    ("lizard", "reptiles"),
    ("dog", "domestic_pets"),
    ("puppy", "domestic_pets"),
    ("cat", "domestic_pets"),
    ("kitten", "domestic_pets"),
    ("cow", "livestock"),
    ("horse", "livestock"),
    ("goat", "livestock"),
    ("sheep", "livestock"),
    ("pig", "livestock"),
    ("llama", "livestock"),
    ("chicken", "livestock"),
    ("robin", "songbirds"),
    ("sparrow", "songbirds"),
    ("finch", "songbirds"),
    ("swallow", "songbirds"),
    ("starling", "songbirds"),
    ("jay", "songbirds"),
    ("warbler", "songbirds"),
    ("hummingbird", "songbirds"),
    ("nestling", "songbirds"),
    ("fledgling", "songbirds"),
    ("bird", "songbirds"),
)

# Tags whose callers need animal control rather than wildlife rehab.
_TAG_SERVICES = {
    "domestic_pets": "domestic_animal_control",
    "livestock": "livestock_control",
}


def _words(text: str) -> str:
    return " " + re.sub(r"[^a-z ]+", " ", (text or "").lower()) + " "


def _mentions(words: str, keyword: str) -> bool:
    # Whole word, allowing a plural "s"/"es" ("bats", "foxes").
    return re.search(r"\b" + re.escape(keyword) + r"(?:s|es)?\b", words) is not None


def animal_type_for(species: str) -> Optional[str]:
    """Directory tag for a species description, or None if we don't recognize it."""
    words = _words(species)
    for keyword, tag in _SPECIES_TAGS:
        if _mentions(words, keyword):
            return tag
    return None


def is_rabies_vector(species: str) -> bool:
    words = _words(species)
    return any(_mentions(words, keyword) for keyword in RABIES_VECTOR_SPECIES)


def service_for(animal_type: Optional[str]) -> Optional[str]:
    """Service tag implied by the animal type (animal control for pets/livestock)."""
    return _TAG_SERVICES.get(animal_type or "")
