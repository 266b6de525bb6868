"""Analysis pipeline configuration."""

from pydantic import BaseModel, Field, model_validator


class AnalysisConfig(BaseModel):
    """Tunables for segmentation, discovery and batched analysis."""

    # Segmentation (characters)
    window_size: int = Field(default=6000, gt=0)
    overlap_size: int = Field(default=300, ge=0)
    break_ratio: float = Field(default=0.7, ge=0.0, le=1.0)  # Earliest allowed snap point

    # Discovery sampling
    sample_count: int = Field(default=3, ge=2)
    sample_size: int = Field(default=8000, gt=0)
    min_mentions: int = 3  # Registry noise threshold

    # Batched analysis
    batch_size: int = Field(default=3, gt=0)
    batch_delay_seconds: float = Field(default=0.1, ge=0.0)

    # Alias matching of oracle output (rapidfuzz ratio, 0-100)
    name_match_threshold: int = Field(default=90, ge=0, le=100)

    # Oracle call settings
    discovery_temperature: float = 0.2
    analysis_temperature: float = 0.1
    discovery_max_tokens: int = 1000
    analysis_max_tokens: int = 1500

    # Finished runs kept for status lookups
    max_tracked_runs: int = Field(default=100, gt=0)

    @model_validator(mode="after")
    def _check_overlap(self) -> "AnalysisConfig":
        if self.overlap_size >= self.window_size:
            raise ValueError("overlap_size must be smaller than window_size")
        return self


# Default configuration
default_config = AnalysisConfig()
