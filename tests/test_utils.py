"""Tests for utility functions."""

import json

import pytest
from pydantic import ValidationError

from mcp_toolsearch.errors import ConfigInvalidError
from mcp_toolsearch.models.config import ToolSearchConfig
from mcp_toolsearch.models.search import SortOrder
from mcp_toolsearch.utils import load_config, load_servers, options_from_config


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_valid_config(self, tmp_path, sample_config_data):
        """Test loading a valid config file."""
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps(sample_config_data))

        config = load_config(str(config_file))

        assert [s.name for s in config.servers] == ["files", "weather"]
        assert config.timeout == 10

    def test_load_servers(self, tmp_path, sample_config_data):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps(sample_config_data))

        servers = load_servers(config_file)

        assert servers[1].transport_type == "sse"

    def test_load_missing_file_raises(self):
        """Test that a missing file raises ConfigInvalidError."""
        with pytest.raises(ConfigInvalidError, match="Config file not found") as exc_info:
            load_config("/nonexistent/config.json")
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_load_invalid_json_raises(self, tmp_path):
        """Test that invalid JSON raises ConfigInvalidError."""
        config_file = tmp_path / "config.json"
        config_file.write_text("not valid json {")

        with pytest.raises(ConfigInvalidError, match="Invalid JSON"):
            load_config(str(config_file))

    def test_load_invalid_schema_raises(self, tmp_path):
        """Test that an invalid schema raises ConfigInvalidError."""
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"servers": [{"name": "x"}]}))

        with pytest.raises(ConfigInvalidError, match="Invalid configuration"):
            load_config(str(config_file))


class TestOptionsFromConfig:
    """Tests for options_from_config function."""

    def test_uses_config_defaults(self, sample_config_data):
        config = ToolSearchConfig.model_validate(
            {**sample_config_data, "continue_on_error": False}
        )

        options = options_from_config(config)

        assert options.timeout == 10
        assert options.continue_on_error is False
        assert options.sort_order is SortOrder.SERVER_THEN_TOOL

    def test_overrides_applied(self, sample_config_data):
        config = ToolSearchConfig.model_validate(sample_config_data)

        options = options_from_config(
            config, timeout=2.5, max_results=3, sort_order=SortOrder.TOOL_THEN_SERVER
        )

        assert options.timeout == 2.5
        assert options.max_results == 3
        assert options.sort_order is SortOrder.TOOL_THEN_SERVER

    @pytest.mark.parametrize("timeout", [0, -1, 0.0])
    def test_non_positive_timeout_disables_deadline(self, sample_config_data, timeout):
        config = ToolSearchConfig.model_validate(sample_config_data)

        options = options_from_config(config, timeout=timeout)

        assert options.timeout is None

    def test_out_of_range_override_rejected(self, sample_config_data):
        config = ToolSearchConfig.model_validate(sample_config_data)

        with pytest.raises(ValidationError):
            options_from_config(config, max_results=-1)

    def test_none_overrides_ignored(self, sample_config_data):
        config = ToolSearchConfig.model_validate(sample_config_data)

        options = options_from_config(config, timeout=None, max_results=None)

        assert options.timeout == 10
        assert options.max_results is None
