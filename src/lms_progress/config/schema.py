from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, ValidationInfo, field_validator


class SourcesConfig(BaseModel):
    """Where the fixture-backed source adapter reads its records from."""

    fixture_path: Path | None = Field(
        default=None,
        description="JSON file holding enrollment, lookup and hierarchy payloads.",
    )


class ConcurrencyConfig(BaseModel):
    """Bounds for the per-item lookup fan-out of a pass."""

    max_concurrent_lookups: int = Field(8, ge=1)


class BandThresholds(BaseModel):
    """Completion percentages separating the dashboard performance bands."""

    fair: int = Field(50, ge=0, le=100)
    good: int = Field(70, ge=0, le=100)
    excellent: int = Field(90, ge=0, le=100)

    @field_validator("good")
    @classmethod
    def good_above_fair(cls, value: int, info: ValidationInfo) -> int:
        """Ensure the bands stay ordered from fair to excellent."""
        fair = info.data.get("fair", 50)
        if value <= fair:
            raise ValueError("good threshold must be greater than fair")
        return value

    @field_validator("excellent")
    @classmethod
    def excellent_above_good(cls, value: int, info: ValidationInfo) -> int:
        good = info.data.get("good", 70)
        if value <= good:
            raise ValueError("excellent threshold must be greater than good")
        return value


class AggregationConfig(BaseModel):
    """Controls for supervisory rankings."""

    ranking_limit: int = Field(3, ge=1)
    band_thresholds: BandThresholds = Field(default_factory=BandThresholds)


class LoggingConfig(BaseModel):
    """Controls for logging output and format."""

    level: str = Field("INFO")
    use_json: bool = False


class Settings(BaseModel):
    """Top-level project configuration aggregating all sub-settings."""

    project_name: str = Field("LMS Progress Monitor")
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
