"""Load GEDCOM files into Person records."""

import logging
import os
import tempfile

from gedcom.element.family import FamilyElement
from gedcom.element.individual import IndividualElement
from gedcom.parser import Parser

from family_models import Gender, Person
from family_store import FamilyStore

logger = logging.getLogger("familygraph.gedcom")

_GENDERS = {"M": Gender.MALE, "F": Gender.FEMALE}


def parse_gedcom_file(file_path: str) -> Parser:
    """Parse a GEDCOM file in non-strict mode and return the parser."""
    parser = Parser()
    parser.parse_file(file_path, strict=False)
    logger.debug(f"Parsed GEDCOM file {file_path}")
    return parser


def parse_gedcom_content(content: str) -> Parser:
    """Parse in-memory GEDCOM text, such as an uploaded file body."""
    # python-gedcom only reads from a path
    with tempfile.TemporaryDirectory(prefix="familygraph-") as workdir:
        path = os.path.join(workdir, "import.ged")
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return parse_gedcom_file(path)


def _person_id(element: IndividualElement) -> str:
    return element.get_pointer().strip('@')


def _extract_year(date_str: str | None) -> int | None:
    if not date_str:
        return None
    for part in date_str.split():
        if part.isdigit() and len(part) == 4:
            return int(part)
    return None


def _family_member(parser: Parser, family: FamilyElement, role: str) -> IndividualElement | None:
    for member in parser.get_family_members(family, role):
        if isinstance(member, IndividualElement):
            return member
    return None


def _direct_relations(parser: Parser, individual: IndividualElement) -> dict[str, str | None]:
    """father/mother from the first FAMC family, spouse from the first FAMS family."""
    relations = {"father_id": None, "mother_id": None, "spouse_id": None}

    for family in parser.get_families(individual, "FAMC"):
        if isinstance(family, FamilyElement):
            father = _family_member(parser, family, "HUSB")
            mother = _family_member(parser, family, "WIFE")
            relations["father_id"] = _person_id(father) if father else None
            relations["mother_id"] = _person_id(mother) if mother else None
            break

    pointer = individual.get_pointer()
    for family in parser.get_families(individual, "FAMS"):
        if isinstance(family, FamilyElement):
            for role in ("HUSB", "WIFE"):
                partner = _family_member(parser, family, role)
                if partner is not None and partner.get_pointer() != pointer:
                    relations["spouse_id"] = _person_id(partner)
                    break
            break

    return relations


def persons_from_gedcom(parser: Parser) -> list[Person]:
    """Map every INDI record to a Person, in file order."""
    persons = []
    for element in parser.get_root_child_elements():
        if not isinstance(element, IndividualElement):
            continue

        person_id = _person_id(element)
        first_name, last_name = element.get_name()
        birth_data = element.get_birth_data()
        death_data = element.get_death_data()

        birth_year = element.get_birth_year()
        birth_year = birth_year if birth_year != -1 else None
        death_year = _extract_year(death_data[0]) if death_data else None
        if birth_year is not None and death_year is not None and death_year < birth_year:
            logger.warning(
                f"Dropping death year {death_year} for {person_id}: before birth year {birth_year}"
            )
            death_year = None

        persons.append(Person(
            id=person_id,
            first_name=first_name or "Unknown",
            last_name=last_name or "Unknown",
            gender=_GENDERS.get(element.get_gender(), Gender.UNKNOWN),
            birth_year=birth_year,
            death_year=death_year,
            location=(birth_data[1] or None) if birth_data and len(birth_data) > 1 else None,
            **_direct_relations(parser, element),
        ))

    logger.info(f"Read {len(persons)} individuals from GEDCOM")
    return persons


def import_gedcom(store: FamilyStore, content: str) -> int:
    """
    Load GEDCOM content into a store. Persons are added first and their
    father/mother/spouse links set afterwards, so forward references work.
    Links to records missing from the file are dropped. Returns the number
    of persons added.
    """
    persons = persons_from_gedcom(parse_gedcom_content(content))
    known_ids = {p.id for p in persons}

    with store.transaction(f"Import {len(persons)} GEDCOM individuals"):
        for person in persons:
            store.add_person(
                person.model_dump(exclude={"id", "avatar_color", "father_id", "mother_id", "spouse_id"}),
                person_id=person.id,
            )
        for person in persons:
            links = {
                field: related_id
                for field, related_id in person.direct_relation_ids().items()
                if related_id in known_ids
            }
            if links:
                store.update_person(person.id, links)

    logger.info(f"Imported {len(persons)} persons into store")
    return len(persons)
