"""
Shared fixtures: a small contact directory and fixed instants.
Run from the repo root:  pytest
"""

import os
import sys
from datetime import datetime

import pytest
import pytz

# Run from backend/ so imports resolve
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.contacts import build_directory

WSU = {
    "name": "WSU Veterinary Teaching Hospital",
    "phone": "+15093350711",
    "coverage": ["All of Eastern Washington"],
    "hours": "24/7",
    "services": [
        "emergency_wildlife_medical",
        "non_emergency_wildlife_rehab",
        "wildlife_stabilization",
        "veterinary_services",
    ],
    "animal_types": ["large_mammals", "small_mammals", "raptors", "songbirds", "bats", "reptiles"],
    "handles_rabies_vector_species": True,
    "address": "205 Ott Rd, Pullman, WA 99164",
}

SCRAPS = {
    "name": "SCRAPS Spokane",
    "phone": "+15094772532",
    "emergency_phone": "+15094772533",
    "coverage": ["Spokane County"],
    "hours": "24/7 for emergency dispatch; shelter hours vary",
    "services": ["domestic_animal_control", "unsafe_animal_response"],
    "animal_types": ["domestic_pets"],
    "handles_rabies_vector_species": True,
}

CENTRAL = {
    "name": "Central Washington Wildlife Hospital",
    "phone": "+15094507016",
    "coverage": ["Kittitas County", "Yakima County", "Chelan County", "Douglas County", "Grant County"],
    "hours": "Varies, call for intake.",
    "services": ["non_emergency_wildlife_rehab", "veterinary_services"],
    "animal_types": ["small_mammals", "songbirds", "reptiles"],
    "handles_rabies_vector_species": False,
}

WDFW_EASTERN = {
    "name": "WDFW Eastern Region Office",
    "phone": "+15098921001",
    "coverage": ["Ferry", "Stevens", "Pend Oreille", "Lincoln", "Spokane",
                 "Whitman", "Garfield", "Columbia", "Walla Walla", "Asotin"],
    "hours": "Mon-Fri, 8 AM - 5 PM",
    "services": ["general_information"],
    "animal_types": ["large_mammals", "small_mammals", "raptors", "songbirds", "bats", "reptiles"],
    "handles_rabies_vector_species": False,
}

WDFW_HQ = {
    "name": "WDFW Headquarters",
    "phone": "+13609022515",
    "coverage": ["Statewide"],
    "hours": "Mon-Fri, 8 AM - 5 PM",
    "services": ["general_information"],
    "animal_types": [],
    "handles_rabies_vector_species": False,
}


@pytest.fixture
def records():
    return [dict(r) for r in (WSU, SCRAPS, CENTRAL, WDFW_EASTERN, WDFW_HQ)]


@pytest.fixture
def directory(records):
    return build_directory(records)


@pytest.fixture
def by_name(directory):
    return {c.name: c for c in directory}


@pytest.fixture
def wednesday_morning():
    """Wed 2024-07-17 10:00 PDT."""
    return datetime(2024, 7, 17, 17, 0, tzinfo=pytz.utc)


@pytest.fixture
def wednesday_night():
    """Wed 2024-07-17 22:00 PDT."""
    return datetime(2024, 7, 18, 5, 0, tzinfo=pytz.utc)


@pytest.fixture
def saturday_noon():
    """Sat 2024-07-20 12:00 PDT."""
    return datetime(2024, 7, 20, 19, 0, tzinfo=pytz.utc)
