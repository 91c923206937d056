"""Tests for the configuration module."""

import json
import tempfile
from pathlib import Path

import pytest

from testintel.config import (
    DEFAULT_WEIGHTS,
    HistoryConfig,
    OrderingConfig,
    PredictionConfig,
    ScoringConfig,
    TestIntelConfig,
    create_example_config,
    get_default_config,
)


class TestScoringConfig:
    """Tests for ScoringConfig."""

    def test_default_values(self):
        """Test default weights and thresholds."""
        config = ScoringConfig()
        assert config.weights == DEFAULT_WEIGHTS
        assert (config.critical_threshold, config.high_threshold, config.medium_threshold) == (70, 50, 30)

    def test_partial_weights_merge_with_defaults(self):
        """Test overriding one weight keeps the others."""
        config = ScoringConfig(weights={"complexity": 0.5})
        assert config.weights["complexity"] == 0.5
        assert config.weights["historical_failure_rate"] == 0.30

    def test_negative_weight_rejected(self):
        """Test weights must be non-negative."""
        with pytest.raises(ValueError):
            ScoringConfig(weights={"complexity": -1})

    def test_unknown_factor_rejected(self):
        """Test unknown factor names are rejected."""
        with pytest.raises(ValueError):
            ScoringConfig(weights={"coverage": 0.1})

    def test_unordered_thresholds_rejected(self):
        """Test thresholds must be ordered."""
        with pytest.raises(ValueError):
            ScoringConfig(high_threshold=80)


class TestOtherSections:
    """Tests for the smaller config sections."""

    def test_history_cap_validation(self):
        with pytest.raises(ValueError):
            HistoryConfig(max_records=0)

    def test_prediction_window_validation(self):
        with pytest.raises(ValueError):
            PredictionConfig(window_size=0)

    def test_ordering_defaults(self):
        config = OrderingConfig()
        assert config.default_duration_ms == 3000
        assert config.duration_scale_ms == 10000


class TestTestIntelConfig:
    """Tests for TestIntelConfig."""

    def test_not_collected_by_pytest(self):
        """Test the Test-prefixed model opts out of collection without adding a field."""
        assert TestIntelConfig.__test__ is False
        assert "__test__" not in TestIntelConfig.model_fields
        assert "__test__" not in get_default_config().model_dump()

    def test_default_config(self):
        """Test creating a default configuration."""
        config = get_default_config()
        assert config.project.name == "my-project"
        assert config.history.max_records == 100
        assert config.prediction.window_size == 10
        assert config.catalog_file == "test_cases.json"

    def test_from_file(self):
        """Test loading configuration from a file."""
        config_data = {
            "project": {"name": "test-project"},
            "history": {"max_records": 50},
            "scoring": {"weights": {"complexity": 0.1}},
        }

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "testintel.json"
            path.write_text(json.dumps(config_data))

            config = TestIntelConfig.from_file(path)
            assert config.project.name == "test-project"
            assert config.history.max_records == 50
            assert config.scoring.weights["complexity"] == 0.1

    def test_from_file_not_found(self):
        """Test loading from non-existent file raises error."""
        with pytest.raises(FileNotFoundError):
            TestIntelConfig.from_file("/nonexistent/path.json")

    def test_find_and_load_searches_parents(self):
        """Test the config file is found from a nested directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir)
            create_example_config(base / ".testintel.json")
            nested = base / "a" / "b"
            nested.mkdir(parents=True)

            assert TestIntelConfig.find(nested) == (base / ".testintel.json").resolve()
            assert TestIntelConfig.find_and_load(nested).project.name == "my-project"

    def test_to_file(self):
        """Test saving configuration to a file."""
        config = get_default_config()
        config.project.name = "saved-project"

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            config.to_file(path)

            assert path.exists()

            loaded = TestIntelConfig.from_file(path)
            assert loaded.project.name == "saved-project"
            assert loaded == config

    def test_create_example_config(self):
        """Test creating an example configuration file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "example.json"
            result = create_example_config(path)

            assert result == path
            with open(path) as f:
                data = json.load(f)
                assert "project" in data
                assert "scoring" in data
                assert "history" in data

    def test_get_absolute_paths(self):
        """Test getting absolute paths from config."""
        config = get_default_config()

        with tempfile.TemporaryDirectory() as tmpdir:
            paths = config.get_absolute_paths(tmpdir)

            assert paths["database_path"].is_absolute()
            assert paths["database_path"].name == "history.db"
            assert paths["catalog_file"].name == "test_cases.json"
