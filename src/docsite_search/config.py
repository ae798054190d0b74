"""Centralized configuration for docsite-search using Pydantic Settings."""

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SearchSettings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    Every knob that changes ranking or tokenization lives here so it can be
    tuned per site and pinned in tests. Analyzer and weight values are copied
    into the index artifact at build time; query-time code reads them back from
    the artifact rather than from these settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCSITE_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Tokenization
    min_token_length: int = Field(default=2, ge=1, description="Tokens shorter than this are dropped")
    use_stopwords: bool = Field(default=True, description="Drop common English stopwords")
    apply_stemming: bool = Field(default=True, description="Apply the lightweight suffix stemmer")

    # Field weights
    title_weight: float = Field(default=10.0, ge=0.0, description="Boost applied to title matches")
    description_weight: float = Field(default=2.0, ge=0.0, description="Boost applied to description matches")
    body_weight: float = Field(default=1.0, ge=0.0, description="Boost applied to body matches")

    # Ranking
    match_policy: Literal["any", "all"] = Field(
        default="any",
        description="'any' = OR semantics with coordination boost, 'all' = every query token must match",
    )
    length_normalization: bool = Field(
        default=True, description="Saturate term frequency and normalize by field length"
    )
    idf_weighting: bool = Field(default=True, description="Weight terms by inverse document frequency")

    # Query UI contract
    max_results: int = Field(default=8, ge=1, description="Maximum hits returned to the search UI")
    min_query_chars: int = Field(default=2, ge=0, description="Shorter (trimmed) queries return no hits")
    snippet_length: int = Field(default=120, ge=1, description="Maximum snippet length in characters")
    snippet_context: int = Field(default=40, ge=0, description="Characters kept before the first match")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    json_logs: bool = Field(default=False, description="Emit structured JSON log lines")

    @model_validator(mode="after")
    def _check_weights(self) -> "SearchSettings":
        if not (self.title_weight or self.description_weight or self.body_weight):
            raise ValueError(
                "At least one of TITLE_WEIGHT, DESCRIPTION_WEIGHT or BODY_WEIGHT must be positive; "
                "with every field weight at zero no document could ever score."
            )
        if self.snippet_context >= self.snippet_length:
            raise ValueError("SNIPPET_CONTEXT must be smaller than SNIPPET_LENGTH")
        return self

    def field_weights(self) -> dict[str, float]:
        """Return the configured boost for each indexed field."""
        return {
            "title": self.title_weight,
            "description": self.description_weight,
            "body": self.body_weight,
        }
