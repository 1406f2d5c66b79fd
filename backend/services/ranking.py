"""
Contact ranking: a stable total order over candidate contacts.

Precedence, most important first:
  1. 24/7 availability
  2. Emergency-class service (emergency medical or unsafe-animal response)
  3. Open at the evaluation instant
  4. More service tags (broader resource)
Contacts tied on all four keep their input order.
"""

from datetime import datetime
from functools import cmp_to_key
from typing import Iterable, List

from services.hours import is_always_open, is_open
from services.matching import provides_emergency_service


def _prefer(a: bool, b: bool) -> int:
    if a and not b:
        return -1
    if b and not a:
        return 1
    return 0


def compare_contacts(a, b, instant: datetime) -> int:
    """Negative when *a* should come before *b*."""
    return (
        _prefer(is_always_open(a), is_always_open(b))
        or _prefer(provides_emergency_service(a), provides_emergency_service(b))
        or _prefer(is_open(a, instant), is_open(b, instant))
        or len(b.services) - len(a.services)
    )


def rank(contacts: Iterable, instant: datetime) -> List:
    """Return a new, ranked list. The input is never reordered in place."""
    return sorted(contacts, key=cmp_to_key(lambda a, b: compare_contacts(a, b, instant)))
