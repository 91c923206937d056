"""Configuration management for TestIntel."""

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


DEFAULT_WEIGHTS = {
    "historical_failure_rate": 0.30,
    "last_failure_recency": 0.20,
    "complexity": 0.20,
    "dependency_weight": 0.15,
    "recent_changes_impact": 0.15,
}


class ProjectConfig(BaseModel):
    """Project identification and metadata."""

    name: str = Field(description="Project name for identification")
    description: str = Field(default="", description="Brief description of the project")


class HistoryConfig(BaseModel):
    """Execution history retention configuration."""

    database_path: str = Field(
        default=".testintel/history.db", description="SQLite file holding execution history"
    )
    max_records: int = Field(default=100, description="Executions retained per test case")

    @field_validator("max_records")
    @classmethod
    def validate_max_records(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_records must be at least 1")
        return v


class ScoringConfig(BaseModel):
    """Risk scoring weights and thresholds."""

    weights: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_WEIGHTS),
        description="Weight applied to each risk factor",
    )
    critical_threshold: int = Field(default=70, description="Minimum score for critical risk")
    high_threshold: int = Field(default=50, description="Minimum score for high risk")
    medium_threshold: int = Field(default=30, description="Minimum score for medium risk")
    recent_failure_days: int = Field(default=7, description="Failure age scoring 100 recency")
    stale_failure_days: int = Field(default=30, description="Failure age scoring 50 recency")
    recent_changes_days: int = Field(default=7, description="Window for code change impact")

    @field_validator("weights")
    @classmethod
    def validate_weights(cls, v: dict[str, float]) -> dict[str, float]:
        unknown = set(v) - set(DEFAULT_WEIGHTS)
        if unknown:
            raise ValueError(f"Unknown risk factors in weights: {sorted(unknown)}")
        if any(w < 0 for w in v.values()):
            raise ValueError("Weights cannot be negative")
        return {**DEFAULT_WEIGHTS, **v}

    @model_validator(mode="after")
    def validate_thresholds(self) -> "ScoringConfig":
        if not (0 <= self.medium_threshold <= self.high_threshold <= self.critical_threshold <= 100):
            raise ValueError("Thresholds must satisfy 0 <= medium <= high <= critical <= 100")
        if self.recent_failure_days > self.stale_failure_days:
            raise ValueError("recent_failure_days cannot exceed stale_failure_days")
        return self


class PredictionConfig(BaseModel):
    """Failure prediction configuration."""

    window_size: int = Field(default=10, description="Number of recent executions inspected")
    failure_rate_threshold: float = Field(
        default=0.30, description="Failure rate above which a failure is predicted"
    )
    risk_factor_threshold: int = Field(
        default=2, description="Risk factor count above which a failure is predicted"
    )

    @field_validator("window_size")
    @classmethod
    def validate_window(cls, v: int) -> int:
        if v < 1:
            raise ValueError("window_size must be at least 1")
        return v


class OrderingConfig(BaseModel):
    """Execution ordering configuration."""

    default_duration_ms: int = Field(default=3000, description="Duration assumed without history")
    duration_scale_ms: int = Field(default=10000, description="Duration that cancels the speed bonus")
    detection_threshold: int = Field(
        default=50, description="Failure probability (percent) counted as a likely failure"
    )

    @field_validator("duration_scale_ms")
    @classmethod
    def validate_scale(cls, v: int) -> int:
        if v < 1:
            raise ValueError("duration_scale_ms must be positive")
        return v


class GitConfig(BaseModel):
    """Git integration configuration."""

    enabled: bool = Field(default=True, description="Read changed files from git")
    compare_ref: str = Field(default="HEAD~1", description="Git ref to compare against")
    include_uncommitted: bool = Field(default=True, description="Include uncommitted changes")


class TestIntelConfig(BaseModel):
    """Main configuration for TestIntel."""

    __test__ = False  # not a pytest test class

    project: ProjectConfig = Field(default_factory=lambda: ProjectConfig(name="my-project"))
    catalog_file: str = Field(default="test_cases.json", description="Path to the test case catalog")
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    prediction: PredictionConfig = Field(default_factory=PredictionConfig)
    ordering: OrderingConfig = Field(default_factory=OrderingConfig)
    git: GitConfig = Field(default_factory=GitConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "TestIntelConfig":
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = json.load(f)

        return cls.model_validate(data)

    @classmethod
    def find_and_load(cls, start_dir: Path | str | None = None) -> "TestIntelConfig":
        """Find and load configuration file, searching up the directory tree."""
        path = cls.find(start_dir)
        if path is None:
            raise FileNotFoundError(
                "No configuration file found. Create testintel.json or run 'testintel init'"
            )
        return cls.from_file(path)

    @staticmethod
    def find(start_dir: Path | str | None = None) -> Optional[Path]:
        """Return the nearest configuration file path, or None."""
        if start_dir is None:
            start_dir = Path.cwd()
        else:
            start_dir = Path(start_dir)

        config_names = ["testintel.json", ".testintel.json"]

        current = start_dir.resolve()
        for directory in (current, *current.parents):
            for name in config_names:
                config_path = directory / name
                if config_path.exists():
                    return config_path
        return None

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)

    def get_absolute_paths(self, base_dir: Path | str | None = None) -> dict[str, Path]:
        """Get absolute paths for various config paths."""
        if base_dir is None:
            base_dir = Path.cwd()
        else:
            base_dir = Path(base_dir)

        return {
            "catalog_file": (base_dir / self.catalog_file).resolve(),
            "database_path": (base_dir / self.history.database_path).resolve(),
        }


def get_default_config() -> TestIntelConfig:
    """Return a default configuration."""
    return TestIntelConfig(project=ProjectConfig(name="my-project"))


def create_example_config(output_path: Path | str) -> Path:
    """Create an example configuration file."""
    output_path = Path(output_path)
    config = get_default_config()
    config.project.description = "Brief description of your project"
    config.to_file(output_path)
    return output_path
