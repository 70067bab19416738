"""
Domain models for the reference trait matrix.

The matrix (taxa × traits) is supplied by an external loader and is
read-only for the lifetime of an evaluation. A taxon's recorded state for
any trait may be missing, which the engine treats as Unknown and never as
an explicit No.
"""

from enum import Enum, IntEnum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TraitKind(str, Enum):
    """Trait type tag. Matching and scoring switch on this tag."""

    BINARY = "binary"
    CONTINUOUS = "continuous"
    CATEGORICAL_SINGLE = "categorical_single"
    CATEGORICAL_MULTI = "categorical_multi"
    DERIVED = "derived"

    @property
    def is_categorical(self) -> bool:
        return self in (TraitKind.CATEGORICAL_SINGLE, TraitKind.CATEGORICAL_MULTI)


class Ternary(IntEnum):
    """Recorded or observed binary state."""

    NO = -1
    NA = 0
    YES = 1


# Rank labels used by matrix authors for the #Difficulty / #Risk columns
DIFFICULTY_RANKS: Dict[str, float] = {
    "easy": 0.5,
    "normal": 1.0,
    "hard": 2.0,
    "very hard": 3.0,
}

RISK_RANKS: Dict[str, float] = {
    "lowest": 0.0,
    "low": 0.2,
    "medium": 0.5,
    "high": 0.8,
    "highest": 1.0,
}


def parse_difficulty(value) -> float:
    """Parse a difficulty rank label or number. Unrecognised values are 'normal'."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if value > 0 else 1.0
    text = str(value or "").strip().lower()
    if text in DIFFICULTY_RANKS:
        return DIFFICULTY_RANKS[text]
    try:
        number = float(text)
    except ValueError:
        return 1.0
    return number if number > 0 else 1.0


def parse_risk(value) -> float:
    """Parse a risk rank label or number in [0, 1]. Unrecognised values are 'medium'."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if 0.0 <= value <= 1.0 else 0.5
    text = str(value or "").strip().lower()
    if text in RISK_RANKS:
        return RISK_RANKS[text]
    try:
        number = float(text)
    except ValueError:
        return 0.5
    return number if 0.0 <= number <= 1.0 else 0.5


class ContinuousRange(BaseModel):
    """A taxon's recorded [min, max] interval for a continuous trait."""

    min: float
    max: float

    @model_validator(mode="after")
    def order_bounds(self) -> "ContinuousRange":
        if self.min > self.max:
            self.min, self.max = self.max, self.min
        return self

    @property
    def span(self) -> float:
        return self.max - self.min


class Dependency(BaseModel):
    """Prerequisite: the trait is only observable when the parent shows a state."""

    model_config = ConfigDict(populate_by_name=True)

    parent_trait_id: str = Field(alias="parentTraitId")
    required_state: str = Field(alias="requiredState")


class Trait(BaseModel):
    """
    Immutable trait (character) definition.

    Derived traits model a mutually exclusive state group: children share a
    `parent_id` and each child's `state` is the label shown for the group.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: str
    group: str = ""
    kind: TraitKind = Field(default=TraitKind.BINARY, alias="type")
    parent_id: Optional[str] = Field(default=None, alias="parentId")
    state: Optional[str] = None
    min_value: float = Field(default=0.0, alias="minValue")
    max_value: float = Field(default=0.0, alias="maxValue")
    is_integer: bool = Field(default=False, alias="isInteger")
    allowed_states: List[str] = Field(default_factory=list, alias="allowedStates")
    difficulty: float = 1.0
    risk: float = 0.5
    dependency: Optional[Dependency] = None

    @field_validator("difficulty", mode="before")
    @classmethod
    def coerce_difficulty(cls, v):
        return parse_difficulty(v)

    @field_validator("risk", mode="before")
    @classmethod
    def coerce_risk(cls, v):
        return parse_risk(v)

    @property
    def span(self) -> float:
        return max(self.max_value - self.min_value, 0.0)

    @property
    def state_label(self) -> str:
        """Label of a derived child within its group."""
        return self.state or self.name or self.id


class Taxon(BaseModel):
    """A taxon and its recorded trait states."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    traits: Dict[str, Ternary] = Field(default_factory=dict)
    continuous_traits: Dict[str, ContinuousRange] = Field(
        default_factory=dict, alias="continuousTraits"
    )
    categorical_traits: Dict[str, List[str]] = Field(
        default_factory=dict, alias="categoricalTraits"
    )
    description: Optional[str] = None

    def binary_state(self, trait_id: str) -> Ternary:
        return self.traits.get(trait_id, Ternary.NA)

    def range_for(self, trait_id: str) -> Optional[ContinuousRange]:
        return self.continuous_traits.get(trait_id)

    def states_for(self, trait_id: str) -> List[str]:
        return self.categorical_traits.get(trait_id) or []


class Matrix(BaseModel):
    """Reference trait matrix: traits × taxa."""

    name: str = ""
    traits: List[Trait] = Field(default_factory=list)
    taxa: List[Taxon] = Field(default_factory=list)

    def trait_map(self) -> Dict[str, Trait]:
        return {t.id: t for t in self.traits}

    def taxon_by_id(self, taxon_id: str) -> Optional[Taxon]:
        for taxon in self.taxa:
            if taxon.id == taxon_id:
                return taxon
        return None

    def derived_groups(self) -> Dict[str, List[Trait]]:
        """Derived children keyed by their parent group id, in matrix order."""
        groups: Dict[str, List[Trait]] = {}
        for trait in self.traits:
            if trait.kind == TraitKind.DERIVED and trait.parent_id:
                groups.setdefault(trait.parent_id.strip(), []).append(trait)
        return groups

    def group_headers(self) -> Dict[str, Trait]:
        """Header trait per derived group.

        A child's parentId names its header by trait id or, failing that,
        by trait name. Groups without a header are absent.
        """
        groups = self.derived_groups()
        candidates = [t for t in self.traits if t.kind != TraitKind.DERIVED]
        by_id = {t.id: t for t in candidates}
        by_name: Dict[str, Trait] = {}
        for trait in candidates:
            by_name.setdefault(trait.name.strip(), trait)

        headers: Dict[str, Trait] = {}
        for group_id in groups:
            header = by_id.get(group_id) or by_name.get(group_id)
            if header is not None:
                headers[group_id] = header
        return headers
