"""
Matching predicates used by the resolver: geography, animal type, service and
rabies-vector capability. All are pure and fail toward False on empty input.
"""

# Counties served by "All of Eastern Washington" style coverage entries.
EASTERN_WASHINGTON_COUNTIES = frozenset({
    "spokane", "stevens", "pend oreille", "ferry", "lincoln",
    "whitman", "garfield", "columbia", "walla walla", "asotin",
    "okanogan", "chelan", "douglas", "grant", "adams",
    "kittitas", "yakima", "benton", "franklin",
})

EMERGENCY_SERVICES = frozenset({"emergency_wildlife_medical", "unsafe_animal_response"})


def _normalize_area(name: str) -> str:
    """Lowercase, collapse whitespace, drop a trailing "county"."""
    words = (name or "").lower().split()
    if words and words[-1] == "county":
        words = words[:-1]
    return " ".join(words)


def is_eastern_washington_county(county: str) -> bool:
    return _normalize_area(county) in EASTERN_WASHINGTON_COUNTIES


def serves_area(contact, location: str) -> bool:
    """
    Does the contact's coverage include *location*?
    Exact name (with or without "County"), statewide / "all of" entries, and the
    Eastern Washington county table. Nothing else: no partial name matching.
    """
    if not contact.coverage or not location or not location.strip():
        return False

    wanted = _normalize_area(location)
    for area in contact.coverage:
        area_lower = " ".join((area or "").lower().split())
        if not area_lower:
            continue
        if _normalize_area(area_lower) == wanted:
            return True
        if "statewide" in area_lower or "all of" in area_lower:
            return True
        if "eastern washington" in area_lower and wanted in EASTERN_WASHINGTON_COUNTIES:
            return True
    return False


def is_statewide(contact) -> bool:
    return any("statewide" in (area or "").lower() for area in contact.coverage)


def handles_animal_type(contact, animal_type: str) -> bool:
    """Case-insensitive substring match in either direction against the contact's tags."""
    if not contact.animal_types or not animal_type or not animal_type.strip():
        return False
    wanted = animal_type.lower().strip()
    # NOTE: "bat" also matches "bats", and a query like "small" matches "small_mammals".
    return any(
        wanted in tag.lower() or tag.lower() in wanted
        for tag in contact.animal_types
    )


def provides_service(contact, service: str) -> bool:
    """Exact membership; service tags are machine vocabulary, not free text."""
    if not service:
        return False
    return service in contact.services


def handles_rabies_vectors(contact) -> bool:
    # Read the flag only; never infer it from animal_types.
    return contact.handles_rabies_vector_species is True


def provides_emergency_service(contact) -> bool:
    return bool(contact.services & EMERGENCY_SERVICES)
