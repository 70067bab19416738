"""
Shared test fixtures.

Small hand-built matrices covering every trait kind, plus the bundled
sample matrices under config/matrices/.
"""

from pathlib import Path

import pytest

from taxonkey.core.config import EngineConfig
from taxonkey.core.matrix_loader import clear_cache, load_matrix
from taxonkey.domain.models import (
    AlgoOptions,
    ContinuousRange,
    Dependency,
    Matrix,
    Selection,
    Taxon,
    Trait,
    TraitKind,
)
from taxonkey.services.evaluation_service import EvaluationService

MATRICES_DIR = Path(__file__).parent.parent / "config" / "matrices"


@pytest.fixture
def five_taxa_matrix():
    """One binary trait: A=Yes, B=No, C/D/E have no data."""
    return Matrix(
        name="five taxa",
        traits=[Trait(id="t1", name="Trait 1", group="G", kind=TraitKind.BINARY)],
        taxa=[
            Taxon(id="A", name="Taxon A", traits={"t1": 1}),
            Taxon(id="B", name="Taxon B", traits={"t1": -1}),
            Taxon(id="C", name="Taxon C"),
            Taxon(id="D", name="Taxon D"),
            Taxon(id="E", name="Taxon E"),
        ],
    )


@pytest.fixture
def mixed_matrix():
    """Every trait kind, including a derived group and a dependency."""
    traits = [
        Trait(id="wings", name="Has wings", group="Body", kind=TraitKind.BINARY, difficulty="easy"),
        Trait(
            id="wing_spots",
            name="Spots on wings",
            group="Body",
            kind=TraitKind.BINARY,
            dependency=Dependency(parent_trait_id="wings", required_state="Yes"),
        ),
        Trait(
            id="length",
            name="Body length (mm)",
            group="Body",
            kind=TraitKind.CONTINUOUS,
            min_value=0,
            max_value=40,
        ),
        Trait(
            id="habitat",
            name="Habitat",
            group="Ecology",
            kind=TraitKind.CATEGORICAL_SINGLE,
            allowed_states=["forest", "meadow", "wetland"],
        ),
        Trait(
            id="colours",
            name="Colours",
            group="Body",
            kind=TraitKind.CATEGORICAL_MULTI,
            allowed_states=["black", "red", "yellow"],
        ),
        Trait(id="shape", name="Shape", group="Body", kind=TraitKind.BINARY),
        Trait(
            id="shape_round",
            name="Round",
            group="Body",
            kind=TraitKind.DERIVED,
            parent_id="shape",
            state="round",
        ),
        Trait(
            id="shape_long",
            name="Long",
            group="Body",
            kind=TraitKind.DERIVED,
            parent_id="shape",
            state="long",
        ),
    ]
    taxa = [
        Taxon(
            id="alpha",
            name="Alpha",
            traits={"wings": 1, "wing_spots": 1, "shape_round": 1, "shape_long": -1},
            continuous_traits={"length": ContinuousRange(min=10, max=20)},
            categorical_traits={"habitat": ["forest"], "colours": ["black", "red"]},
        ),
        Taxon(
            id="beta",
            name="Beta",
            traits={"wings": 1, "wing_spots": -1, "shape_round": -1, "shape_long": 1},
            continuous_traits={"length": ContinuousRange(min=25, max=35)},
            categorical_traits={"habitat": ["meadow"], "colours": ["yellow"]},
        ),
        Taxon(
            id="gamma",
            name="Gamma",
            traits={"wings": -1, "shape_round": -1, "shape_long": 1},
            continuous_traits={"length": ContinuousRange(min=5, max=8)},
            categorical_traits={"habitat": ["wetland", "meadow"], "colours": ["black"]},
        ),
        Taxon(id="delta", name="Delta", traits={"wings": -1}),
    ]
    return Matrix(name="mixed", traits=traits, taxa=taxa)


@pytest.fixture
def cherry_matrix():
    """Bundled cherry blossom sample (3 taxa, 4 binary traits)."""
    clear_cache()
    return load_matrix(MATRICES_DIR / "cherry_blossoms.yaml")


@pytest.fixture
def mammals_matrix():
    """Bundled small mammals sample (binary + continuous, one NA cell)."""
    clear_cache()
    return load_matrix(MATRICES_DIR / "small_mammals.yaml")


@pytest.fixture
def default_options():
    return AlgoOptions()


@pytest.fixture
def empty_selection():
    return Selection()


@pytest.fixture
def engine_config():
    """Engine constants independent of config/engine.yaml."""
    return EngineConfig()


@pytest.fixture
def evaluation_service(engine_config):
    return EvaluationService(engine_config)
