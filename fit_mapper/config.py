"""Configuration management for the Fit Mapper try-on pipeline."""

from pathlib import Path
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class InferenceConfig(BaseModel):
    """Gemini generateContent endpoint settings."""
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    analysis_model: str = "gemini-2.5-flash-preview-09-2025"
    synthesis_model: str = "gemini-2.5-flash-image-preview"
    timeout: float = 300.0  # 5 min, image generation is slow

    def endpoint(self, model: str) -> str:
        return f"{self.base_url.rstrip('/')}/models/{model}:generateContent"


class SynthesisConfig(BaseModel):
    """Image synthesis settings."""
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)


class RetryConfig(BaseModel):
    """Retry settings for transport failures (1 = no retry)."""
    max_attempts: int = Field(default=1, ge=1)
    backoff_min: float = 1.0
    backoff_max: float = 10.0


class PipelineSettings(BaseModel):
    """Batch execution settings."""
    max_concurrent_items: int = Field(default=1, ge=1)  # 1 = sequential


class PipelineConfig(BaseSettings):
    """Main pipeline configuration."""

    # Paths
    output_dir: Path = Path("output/results")

    # Sub-configs
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    synthesis: SynthesisConfig = Field(default_factory=SynthesisConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)

    # Gemini credential (loaded from .env)
    gemini_api_key: str | None = None

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = ""
        env_nested_delimiter = "__"
        extra = "ignore"


def load_config() -> PipelineConfig:
    """Load configuration from environment and defaults."""
    return PipelineConfig()
