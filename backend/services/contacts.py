"""
Contact directory: the Contact record, the fixed tag vocabularies, and the
process-wide directory reference.

The directory is loaded once at startup and never mutated. A reload builds a
brand new tuple and swaps the reference, so a resolution running on another
thread keeps seeing the old directory in full.
"""

import json
import threading
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

from services.hours import Schedule, parse_hours

SERVICE_TYPES = frozenset({
    "unsafe_animal_response",
    "emergency_wildlife_medical",
    "non_emergency_wildlife_rehab",
    "wildlife_stabilization",
    "veterinary_services",
    "domestic_animal_control",
    "livestock_control",
    "rabies_information",
    "general_information",
    "law_enforcement",
})

ANIMAL_TYPES = frozenset({
    "large_mammals",
    "small_mammals",
    "raptors",
    "songbirds",
    "bats",
    "reptiles",
    "domestic_pets",
    "livestock",
    "raccoons",
    "coyotes",
    "skunks",
})


@dataclass(frozen=True)
class Contact:
    """One organization a wildlife call can be referred to."""

    name: str
    phone: str
    coverage: Tuple[str, ...] = ()
    hours: str = ""
    services: frozenset = frozenset()
    animal_types: Tuple[str, ...] = ()
    handles_rabies_vector_species: bool = False
    emergency_phone: Optional[str] = None
    non_emergency_phone: Optional[str] = None
    address: Optional[str] = None
    url: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    # Parsed once here so availability checks never re-scan the text.
    schedule: Schedule = field(init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "schedule", parse_hours(self.hours))

    @property
    def city(self) -> str:
        """City part of "street, city, state zip", or "" when unknown."""
        parts = [p.strip() for p in (self.address or "").split(",")]
        return parts[1] if len(parts) > 1 else ""

    def to_dict(self) -> dict:
        """JSON-safe view in the same snake_case shape as contacts.json."""
        return {
            "name": self.name,
            "phone": self.phone,
            "emergency_phone": self.emergency_phone,
            "non_emergency_phone": self.non_emergency_phone,
            "coverage": list(self.coverage),
            "hours": self.hours,
            "services": sorted(self.services),
            "animal_types": list(self.animal_types),
            "handles_rabies_vector_species": self.handles_rabies_vector_species,
            "address": self.address,
            "url": self.url,
            "email": self.email,
            "notes": self.notes,
        }


def contact_from_dict(record: dict) -> Contact:
    """
    Build a Contact from one contacts.json record.
    Raises ValueError naming the contact and field when the record breaks the schema.
    """
    name = (record.get("name") or "").strip()
    if not name:
        raise ValueError(f"contact record is missing 'name': {record!r}")
    phone = (record.get("phone") or "").strip()
    if not phone:
        raise ValueError(f"contact {name!r} is missing 'phone'")

    services = record.get("services") or []
    unknown = set(services) - SERVICE_TYPES
    if unknown:
        raise ValueError(f"contact {name!r} has unknown services: {sorted(unknown)}")

    animal_types = record.get("animal_types") or []
    unknown = set(animal_types) - ANIMAL_TYPES
    if unknown:
        raise ValueError(f"contact {name!r} has unknown animal_types: {sorted(unknown)}")

    rabies = record.get("handles_rabies_vector_species", False)
    if not isinstance(rabies, bool):
        raise ValueError(f"contact {name!r} field 'handles_rabies_vector_species' must be a boolean")

    return Contact(
        name=name,
        phone=phone,
        coverage=tuple(record.get("coverage") or ()),
        hours=record.get("hours") or "",
        services=frozenset(services),
        animal_types=tuple(animal_types),
        handles_rabies_vector_species=rabies,
        emergency_phone=record.get("emergency_phone"),
        non_emergency_phone=record.get("non_emergency_phone"),
        address=record.get("address"),
        url=record.get("url"),
        email=record.get("email"),
        notes=record.get("notes"),
    )


def build_directory(records: Iterable[dict]) -> Tuple[Contact, ...]:
    return tuple(contact_from_dict(r) for r in records)


def load_directory(path: str) -> Tuple[Contact, ...]:
    """Read contacts.json ({"contacts": [...]}) into an immutable directory."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    records = data.get("contacts", []) if isinstance(data, dict) else data
    return build_directory(records)


# -----------------------------------------------------------------------------
# Process-wide directory reference. Readers grab the tuple once per request.
# -----------------------------------------------------------------------------
_directory: Tuple[Contact, ...] = ()
_lock = threading.Lock()


def get_directory() -> Tuple[Contact, ...]:
    return _directory


def install_directory(contacts: Iterable[Contact]) -> Tuple[Contact, ...]:
    """Swap in a whole new directory. Existing contacts are never touched."""
    global _directory
    new_directory = tuple(contacts)
    with _lock:
        _directory = new_directory
    return new_directory


def reload_directory(path: str) -> Tuple[Contact, ...]:
    """Load *path* and install it. On a bad file the current directory stays in place."""
    contacts = load_directory(path)
    print(f"[Directory] Loaded {len(contacts)} contacts from {path}")
    return install_directory(contacts)


def find_contact(directory: Iterable[Contact], name: str) -> Optional[Contact]:
    """Case-insensitive lookup by exact name."""
    wanted = (name or "").strip().lower()
    for contact in directory:
        if contact.name.lower() == wanted:
            return contact
    return None
