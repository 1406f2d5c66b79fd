"""
Resolver service: turn a caller's situation (Criteria) into a ranked shortlist
of contacts from the directory.

No I/O, no hidden state: the same directory, criteria and instant always give
the same list. When strict filtering finds nobody, constraints are relaxed in a
fixed order (the fallback ladder) so the caller still gets someone to call:

  1. every criterion that was given
  2. same, minus the animal type
  3. statewide contacts
  4. (emergencies only) every 24/7 contact, anywhere
  5. nobody: the caller-facing layer points at the statewide directory

The rabies-vector and open-now limits hold on every rung.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence

import pytz

from config import MAX_RESULTS
from services.hours import is_always_open, is_open
from services.matching import (
    handles_animal_type,
    handles_rabies_vectors,
    is_statewide,
    provides_service,
    serves_area,
)
from services.ranking import rank


class Urgency(str, Enum):
    EMERGENCY = "emergency"
    ROUTINE = "routine"


@dataclass(frozen=True)
class Criteria:
    """Per-turn description of what the caller needs. Absent fields skip their filter."""

    county: Optional[str] = None
    animal_type: Optional[str] = None
    service: Optional[str] = None
    require_open: bool = False
    rabies_vector: bool = False
    urgency: Urgency = Urgency.ROUTINE
    max_results: int = MAX_RESULTS

    def __post_init__(self):
        for name in ("county", "animal_type", "service"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"Criteria.{name} must be a string or None, got {type(value).__name__}")
        for name in ("require_open", "rabies_vector"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"Criteria.{name} must be a boolean")
        try:
            object.__setattr__(self, "urgency", Urgency(self.urgency))
        except ValueError:
            raise ValueError(
                f"Criteria.urgency must be 'emergency' or 'routine', got {self.urgency!r}"
            ) from None
        if isinstance(self.max_results, bool) or not isinstance(self.max_results, int) or self.max_results < 1:
            raise ValueError(f"Criteria.max_results must be a positive integer, got {self.max_results!r}")

    @classmethod
    def from_dict(cls, data: dict) -> "Criteria":
        """Build from a camelCase or snake_case JSON body. Unknown keys are rejected."""
        aliases = {
            "county": "county",
            "animalType": "animal_type",
            "animal_type": "animal_type",
            "service": "service",
            "requireOpen": "require_open",
            "require_open": "require_open",
            "rabiesVector": "rabies_vector",
            "rabies_vector": "rabies_vector",
            "urgency": "urgency",
            "maxResults": "max_results",
            "max_results": "max_results",
        }
        kwargs = {}
        for key, value in (data or {}).items():
            if key not in aliases:
                raise ValueError(f"Criteria has no field {key!r}")
            if value is None or value == "":
                continue
            kwargs[aliases[key]] = value
        return cls(**kwargs)


Predicate = Callable[[object], bool]


def _matching(directory: Iterable, predicates: Sequence[Predicate]) -> List:
    return [c for c in directory if all(p(c) for p in predicates)]


def resolve(directory: Iterable, criteria: Criteria, at: Optional[datetime] = None) -> List:
    """
    Ranked contacts for *criteria*, at most criteria.max_results long.
    Pass *at* explicitly anywhere results must be reproducible; when omitted the
    real current time is used for ranking only.
    """
    contacts = tuple(directory)
    instant = at if at is not None else datetime.now(pytz.utc)

    area_filter: List[Predicate] = []
    if criteria.county:
        area_filter.append(lambda c: serves_area(c, criteria.county))

    animal_filter: List[Predicate] = []
    if criteria.animal_type:
        animal_filter.append(lambda c: handles_animal_type(c, criteria.animal_type))

    other_filters: List[Predicate] = []
    if criteria.service:
        other_filters.append(lambda c: provides_service(c, criteria.service))

    # Kept on every rung: a rabies-vector call never goes to an unequipped contact.
    rabies_filter: List[Predicate] = [handles_rabies_vectors] if criteria.rabies_vector else []

    open_filter: List[Predicate] = []
    if criteria.urgency is Urgency.EMERGENCY or criteria.require_open or at is not None:
        open_filter.append(lambda c: is_open(c, instant))

    ladder = [("strict", area_filter + animal_filter + other_filters + rabies_filter + open_filter)]
    if animal_filter:
        ladder.append(("any animal type", area_filter + other_filters + rabies_filter + open_filter))
    ladder.append(("statewide", [is_statewide] + rabies_filter + open_filter))
    if criteria.urgency is Urgency.EMERGENCY:
        ladder.append(("any 24/7", [is_always_open] + rabies_filter))

    for stage, predicates in ladder:
        found = _matching(contacts, predicates)
        if found:
            if stage != "strict":
                print(f"[Resolve] No strict match for {criteria}; fell back to {stage} ({len(found)} found)")
            return rank(found, instant)[: criteria.max_results]

    print(f"[Resolve] No contacts for {criteria}; caller needs the statewide directory")
    return []
