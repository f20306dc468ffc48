"""Shared fixtures for the family graph tests."""

import os
import sys

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from family_models import Gender, Person


def make_person(person_id, first_name, gender=Gender.UNKNOWN, last_name="Windsor", **fields):
    """Build a Person with only the fields a test cares about."""
    return Person(id=person_id, first_name=first_name, last_name=last_name, gender=gender, **fields)


M, F = Gender.MALE, Gender.FEMALE


@pytest.fixture
def five_generations():
    """
    Five generations around George:

        albert = beatrice
        |-- charles = diana          |-- edward = fiona
            |-- george = helen           |-- kate
            |   |-- liam = mia
            |       |-- olivia
            |-- irene
            |   |-- noah
            |-- jack (half sibling, father only)
    """
    return [
        make_person("albert", "Albert", M, birth_year=1900, spouse_id="beatrice"),
        make_person("beatrice", "Beatrice", F, birth_year=1902, spouse_id="albert"),
        make_person("charles", "Charles", M, birth_year=1925, father_id="albert", mother_id="beatrice", spouse_id="diana"),
        make_person("diana", "Diana", F, birth_year=1928, last_name="Spencer", spouse_id="charles"),
        make_person("edward", "Edward", M, birth_year=1927, father_id="albert", mother_id="beatrice", spouse_id="fiona"),
        make_person("fiona", "Fiona", F, birth_year=1929, spouse_id="edward"),
        make_person("george", "George", M, birth_year=1950, father_id="charles", mother_id="diana", spouse_id="helen"),
        make_person("helen", "Helen", F, birth_year=1952, last_name="Baker", spouse_id="george"),
        make_person("irene", "Irene", F, birth_year=1953, father_id="charles", mother_id="diana"),
        make_person("jack", "Jack", M, birth_year=1955, father_id="charles"),
        make_person("kate", "Kate", F, birth_year=1955, father_id="edward", mother_id="fiona"),
        make_person("liam", "Liam", M, birth_year=1975, father_id="george", mother_id="helen", spouse_id="mia"),
        make_person("mia", "Mia", F, birth_year=1976, last_name="Cole", spouse_id="liam"),
        make_person("noah", "Noah", M, birth_year=1980, mother_id="irene"),
        make_person("olivia", "Olivia", F, birth_year=2000, father_id="liam", mother_id="mia"),
    ]
