"""Configuration models loaded from YAML."""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, Field


class AgentConfig(BaseModel):
    """Generation settings for one pipeline stage (skeleton, outline, section, ...)."""

    model: Optional[str] = None
    temperature: float = Field(ge=0.0, le=1.0, default=0.7)
    max_tokens: int = Field(ge=1, default=4000)


class ProviderConfig(BaseModel):
    kind: str = Field(
        default="chat_completions",
        description="Backend implementation: anthropic, chat_completions or pydantic_ai.",
    )
    model: str
    base_url: str = ""
    api_key_env: str = ""
    timeout_seconds: int = Field(ge=1, default=600)
    json_mode: bool = Field(default=True, description="Send response_format=json_object for structured calls.")


class ExpansionConfig(BaseModel):
    skeleton_max_words: int = Field(ge=100, default=15000)
    two_tier_threshold_words: int = Field(ge=1000, default=50000)
    chunk_size_words: int = Field(ge=1000, default=50000)
    default_strongest_points: int = Field(ge=1, default=50)
    large_structure_threshold: int = Field(ge=1, default=50000)
    min_default_target: int = Field(ge=1, default=5000)
    default_expansion_factor: int = Field(ge=1, default=10)
    convergence_ratio: float = Field(gt=0.0, le=1.0, default=0.95)
    max_attempts_per_section: int = Field(ge=1, le=100, default=20)
    max_words_per_call: int = Field(ge=100, default=4000)
    min_words_per_call: int = Field(ge=1, default=150)
    underlength_ratio: float = Field(ge=0.0, le=1.0, default=0.10)
    underlength_retries: int = Field(ge=0, le=10, default=2)
    continuation_paragraphs: int = Field(ge=1, default=3)
    continuation_delay_seconds: float = Field(ge=0.0, default=0.3)
    section_delay_seconds: float = Field(ge=0.0, default=0.5)
    audit_max_words: int = Field(ge=100, default=4000)
    excerpt_max_words: int = Field(ge=100, default=3000)
    summary_max_words: int = Field(ge=50, default=400)
    max_key_claims: int = Field(ge=1, le=8, default=8)


class PersistenceConfig(BaseModel):
    enabled: bool = False
    db_path: str = "data/expansions.db"


class SettingsConfig(BaseModel):
    default_provider: str = "anthropic"
    providers: Dict[str, ProviderConfig] = Field(default_factory=dict)
    agents: Dict[str, AgentConfig] = Field(default_factory=dict)
    expansion: ExpansionConfig = Field(default_factory=ExpansionConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    log_dir: str = "logs"

    def agent(self, stage: str) -> AgentConfig:
        """Return the agent config for *stage*, falling back to defaults."""
        return self.agents.get(stage) or AgentConfig()
