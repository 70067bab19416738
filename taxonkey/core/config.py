"""
Application settings management.

Settings are loaded from environment variables with .env file support.
Engine tuning constants and default algorithm options come from
config/engine.yaml. All configuration is validated using Pydantic.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from taxonkey.domain.models.options import AlgoOptions


class Settings(BaseSettings):
    """
    Application settings loaded from environment.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================

    config_dir: Path = Field(
        default=Path("config"),
        description="Directory containing YAML configuration files",
    )
    matrix_path: Optional[Path] = Field(
        default=None,
        description="Trait matrix document (YAML or JSON) loaded at startup",
    )

    # ==========================================================================
    # Logging
    # ==========================================================================

    log_dir: Path = Field(default=Path("logs"), description="Directory for per-run log files")
    log_level: str = Field(default="INFO", description="Minimum level for structlog events")
    log_sessions_to_keep: int = Field(
        default=5, ge=1, le=100, description="Number of run log files to retain"
    )

    # ==========================================================================
    # Server Configuration
    # ==========================================================================

    host: str = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")
    debug: bool = Field(default=False, description="Enable debug mode")


# ============================================================================
# Engine Configuration (from YAML)
# ============================================================================


class BayesConfig(BaseModel):
    """Constants for the Bayesian scorer."""

    conflict_floor: float = Field(
        default=1e-6,
        gt=0.0,
        lt=1.0,
        description="Likelihood a contradiction decays towards at conflictPenalty=1",
    )


class RecommenderConfig(BaseModel):
    """Constants for the next-trait recommender."""

    candidate_threshold: float = Field(
        default=0.01,
        ge=0.0,
        le=1.0,
        description="Posterior mass at which a taxon still counts as a candidate (ECR)",
    )
    continuous_bins: int = Field(
        default=4,
        ge=2,
        le=20,
        description="Equal-width bins used to discretise continuous traits",
    )
    min_difficulty: float = Field(
        default=0.1, gt=0.0, description="Floor for difficulty in the pragmatic score"
    )
    min_certainty: float = Field(
        default=0.05,
        gt=0.0,
        le=1.0,
        description="Floor for (1 - risk) in the pragmatic score",
    )


class EngineConfig(BaseModel):
    """
    Complete engine configuration loaded from engine.yaml.

    `defaults` seeds the AlgoOptions a request starts from; every request
    may override any of them.
    """

    defaults: AlgoOptions = Field(default_factory=AlgoOptions)
    bayes: BayesConfig = Field(default_factory=BayesConfig)
    recommender: RecommenderConfig = Field(default_factory=RecommenderConfig)


def load_engine_config(config_path: Optional[Path] = None) -> EngineConfig:
    """
    Load engine configuration from YAML file.

    Args:
        config_path: Path to engine.yaml. If None, uses default path.

    Returns:
        EngineConfig with validated settings

    Raises:
        ValueError: If config validation fails
    """
    if config_path is None:
        # Default path: config/engine.yaml relative to project root
        check_path = Path(__file__).resolve().parent.parent.parent / "config" / "engine.yaml"
        if check_path.exists():
            config_path = check_path
        else:
            cwd_config = Path.cwd() / "config" / "engine.yaml"
            if not cwd_config.exists():
                return EngineConfig()
            config_path = cwd_config

    config_path = Path(config_path).resolve()

    if not config_path.exists():
        return EngineConfig()

    with open(str(config_path)) as f:
        config_data = yaml.safe_load(f)

    if not config_data:
        return EngineConfig()

    return EngineConfig(**config_data)


# Global settings instance
settings = Settings()

# Global engine config instance
engine_config = load_engine_config()
