"""
Configuration management using Pydantic Settings.
Handles environment variables and application configuration.
"""

from typing import Optional, Tuple
from pydantic import Field
from pydantic_settings import BaseSettings


class MutationSettings(BaseSettings):
    """Tunables for feature extraction, similarity search and mutation prediction."""

    feature_dimension: int = Field(
        default=50,
        description="Length of every pattern feature vector"
    )
    filler_strategy: str = Field(
        default="hashed",
        description="How unused feature slots are filled: 'hashed' or 'random'"
    )
    filler_scale: float = Field(
        default=0.1,
        description="Upper bound of filler feature values"
    )

    store_capacity: int = Field(
        default=1000,
        description="Maximum number of patterns kept in the pattern store"
    )

    min_similarity: float = Field(
        default=0.7,
        description="Cosine similarity a neighbour must exceed"
    )
    max_similar: int = Field(
        default=10,
        description="Maximum number of neighbours returned"
    )
    min_similar_patterns: int = Field(
        default=3,
        description="Neighbours required before a prediction is attempted"
    )

    confidence_cap: float = Field(default=0.95)
    confidence_scale: int = Field(default=10)
    default_time_to_mutation_days: int = Field(default=7)

    regression_strategy: str = Field(
        default="mlp",
        description="Local regression strategy: 'mlp', 'ridge' or 'knn'"
    )
    training_epochs: int = Field(default=10)
    training_batch_size: int = Field(default=2)
    hidden_layers: Tuple[int, ...] = Field(default=(128, 64, 32))
    learning_rate: float = Field(default=0.001)
    ridge_alpha: float = Field(default=1.0)
    knn_neighbors: int = Field(default=3)
    random_seed: Optional[int] = Field(
        default=42,
        description="Seed for regression fits and random filler; None for nondeterministic runs"
    )

    variant_count: int = Field(default=3)
    blend_weight_start: float = Field(default=0.3)
    blend_weight_step: float = Field(default=0.2)
    mutation_probability_start: float = Field(default=0.8)
    mutation_probability_step: float = Field(default=0.1)

    max_script_length: int = Field(
        default=5000,
        description="Longest script accepted at the API boundary"
    )
    default_category: str = Field(
        default="Other",
        description="Category used when classification fails"
    )

    class Config:
        env_prefix = "MUTATION_"


class ClassifierSettings(BaseSettings):
    """Scam category classifier settings."""

    provider: str = Field(
        default="keyword",
        description="Category classifier: 'keyword' or 'gemini'"
    )
    gemini_api_key: Optional[str] = Field(
        default=None,
        description="Google Gemini API key, required for the gemini provider"
    )
    model_name: str = Field(default="gemini-2.0-flash")
    timeout_seconds: float = Field(default=10.0)

    class Config:
        env_prefix = "CLASSIFIER_"


class DatabaseSettings(BaseSettings):
    """Optional pattern persistence settings."""

    enabled: bool = Field(
        default=False,
        description="Write analyzed patterns through to the database"
    )
    url: str = Field(
        default="sqlite:///./patterns.db",
        description="SQLAlchemy database URL"
    )
    echo: bool = Field(
        default=False,
        description="Enable SQLAlchemy query logging"
    )
    warm_start_limit: int = Field(
        default=1000,
        description="Patterns loaded into the store at startup"
    )

    class Config:
        env_prefix = "DATABASE_"


class Settings(BaseSettings):
    """Main application settings."""

    # Application metadata
    app_name: str = "Scam Mutation Engine"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "production"
    log_level: str = "INFO"

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1

    mutation: MutationSettings = MutationSettings()
    classifier: ClassifierSettings = ClassifierSettings()
    database: DatabaseSettings = DatabaseSettings()

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"


# Global settings instance
settings = Settings()
