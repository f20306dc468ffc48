"""Person and relationship records for the family graph.

Records are plain pydantic models keyed by string ids. Direct relations
(father, mother, spouse) are stored as ids and resolved through lookups at
traversal time, never as embedded references.
"""

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    UNKNOWN = "UNKNOWN"


class RelationshipType(str, Enum):
    """Extended relationship kinds stored as directional rows."""
    SIBLING = "SIBLING"
    HALF_SIBLING = "HALF_SIBLING"
    STEP_SIBLING = "STEP_SIBLING"
    GRANDPARENT = "GRANDPARENT"
    GRANDCHILD = "GRANDCHILD"
    AUNT_UNCLE = "AUNT_UNCLE"
    NIECE_NEPHEW = "NIECE_NEPHEW"
    FIRST_COUSIN = "FIRST_COUSIN"
    SECOND_COUSIN = "SECOND_COUSIN"
    PARENT_IN_LAW = "PARENT_IN_LAW"
    CHILD_IN_LAW = "CHILD_IN_LAW"
    SIBLING_IN_LAW = "SIBLING_IN_LAW"
    STEP_PARENT = "STEP_PARENT"
    STEP_CHILD = "STEP_CHILD"
    GODPARENT = "GODPARENT"
    GODCHILD = "GODCHILD"
    ADOPTIVE_PARENT = "ADOPTIVE_PARENT"
    ADOPTIVE_CHILD = "ADOPTIVE_CHILD"
    GUARDIAN = "GUARDIAN"
    WARD = "WARD"
    CLOSE_FRIEND = "CLOSE_FRIEND"
    FAMILY_FRIEND = "FAMILY_FRIEND"


AVATAR_COLORS = {
    Gender.MALE: "#3B82F6",
    Gender.FEMALE: "#EC4899",
    Gender.UNKNOWN: "#6B7280",
}

DIRECT_RELATION_FIELDS = ("father_id", "mother_id", "spouse_id")


def avatar_color_for(gender: Gender | str | None) -> str:
    """Avatar color derived from gender; anything unrecognised renders grey."""
    return AVATAR_COLORS.get(gender, AVATAR_COLORS[Gender.UNKNOWN])


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PersonCreate(CamelModel):
    """Fields accepted when adding a person."""
    first_name: str = Field(min_length=1, description="Given name(s).")
    last_name: str = Field(min_length=1, description="Family name.")
    gender: Gender = Gender.UNKNOWN
    birth_year: int | None = None
    death_year: int | None = None
    date_of_birth: date | None = Field(default=None, description="ISO 8601 calendar date.")
    date_of_death: date | None = Field(default=None, description="ISO 8601 calendar date.")
    location: str | None = None
    profile_photo: str | None = Field(
        default=None,
        description="Opaque reference to an uploaded image; never interpreted here.",
    )
    father_id: str | None = None
    mother_id: str | None = None
    spouse_id: str | None = None

    @field_validator("father_id", "mother_id", "spouse_id", "location", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        # Form submissions send "" for an unselected relative
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_life_span(self):
        if self.birth_year is not None and self.death_year is not None:
            if self.death_year < self.birth_year:
                raise ValueError("Year of death must be equal to or greater than year of birth")
        if self.date_of_birth is not None and self.date_of_death is not None:
            if self.date_of_death < self.date_of_birth:
                raise ValueError("Date of death must be equal to or after date of birth")
        return self


class PersonUpdate(CamelModel):
    """Partial update; only the fields explicitly set are applied."""
    first_name: str | None = Field(default=None, min_length=1)
    last_name: str | None = Field(default=None, min_length=1)
    gender: Gender | None = None
    birth_year: int | None = None
    death_year: int | None = None
    date_of_birth: date | None = None
    date_of_death: date | None = None
    location: str | None = None
    profile_photo: str | None = None
    father_id: str | None = None
    mother_id: str | None = None
    spouse_id: str | None = None

    @field_validator("father_id", "mother_id", "spouse_id", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Person(PersonCreate):
    """A stored person. `avatar_color` is always recomputed from `gender`."""
    id: str
    avatar_color: str = AVATAR_COLORS[Gender.UNKNOWN]

    @model_validator(mode="before")
    @classmethod
    def _derive_avatar_color(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = {k: v for k, v in data.items() if k not in ("avatar_color", "avatarColor")}
            data["avatar_color"] = avatar_color_for(data.get("gender", Gender.UNKNOWN))
        return data

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def initials(self) -> str:
        return f"{self.first_name[:1]}{self.last_name[:1]}".upper()

    def direct_relation_ids(self) -> dict[str, str]:
        """The father/mother/spouse ids that are set, keyed by field name."""
        return {
            field: getattr(self, field)
            for field in DIRECT_RELATION_FIELDS
            if getattr(self, field)
        }


class Relationship(CamelModel):
    """One directional relationship row (personFrom -> personTo)."""
    id: str
    type: RelationshipType
    person_from_id: str
    person_to_id: str

    @model_validator(mode="after")
    def _no_self_relationship(self):
        if self.person_from_id == self.person_to_id:
            raise ValueError("A person cannot have a relationship with themselves")
        return self

    @property
    def key(self) -> tuple[str, str, RelationshipType]:
        return (self.person_from_id, self.person_to_id, self.type)
