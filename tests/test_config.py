"""
Unit tests for configuration loading and validation.

Tests strict validation and error handling for pricing tables, tool
definitions and budget options.
"""

import json
import os
import tempfile
from decimal import Decimal

import pytest
import yaml

from agentic_budget.config.loader import (
    BudgetOptions,
    load_pricing_table,
    load_tool_definitions,
)
from agentic_budget.tools.dynamic import DEFAULT_TOOL_DEFINITIONS


class TestBudgetOptions:
    """Test caller budget options."""

    def test_defaults_disable_tracking(self):
        options = BudgetOptions()
        assert options.max_cost_cents is None
        assert options.conservative_mode is False
        assert not options.tracking_enabled

    def test_zero_budget_enables_tracking(self):
        assert BudgetOptions(max_cost_cents=0).tracking_enabled

    @pytest.mark.parametrize("value", [-1, 1.5, "100", True])
    def test_invalid_budget(self, value):
        with pytest.raises(ValueError, match="max_cost_cents"):
            BudgetOptions(max_cost_cents=value)


class ConfigFileTest:
    """Base class providing temporary config files."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "config.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            if filename.endswith(".json"):
                json.dump(config_data, f)
            else:
                yaml.dump(config_data, f)
        return config_path

    def _write_text(self, text: str, filename: str = "config.yaml") -> str:
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write(text)
        return config_path


class TestPricingLoading(ConfigFileTest):
    """Test pricing table loading."""

    ENTRY = {
        "max_input_tokens": 8192,
        "max_output_tokens": 4096,
        "input_cost_per_token": 0.00003,
        "output_cost_per_token": 0.00006,
    }

    def test_valid_pricing_loads_correctly(self):
        path = self._write_config({"my-model": self.ENTRY})
        table = load_pricing_table(path)

        entry = table.get_pricing("my-model")
        assert entry.max_total_tokens == 8192  # defaults to max_input_tokens
        assert entry.max_output_tokens == 4096
        assert entry.input_cost_per_token == Decimal("0.00003")
        assert entry.output_cost_per_token == Decimal("0.00006")

    def test_litellm_total_limit(self):
        """LiteLLM's max_tokens is the total limit and caps the adaptive ceiling."""
        from agentic_budget.core.budget import create_budget_tracker

        path = self._write_config({"my-model": dict(self.ENTRY, max_tokens=2048)}, "prices.json")
        table = load_pricing_table(path)

        assert table.get_pricing("my-model").max_total_tokens == 2048
        assert create_budget_tracker(100, pricing_table=table).get_default_max_tokens("my-model") == 2048

    def test_explicit_total_limit_wins(self):
        path = self._write_config({"my-model": dict(self.ENTRY, max_tokens=2048, max_total_tokens=6000)})
        assert load_pricing_table(path).get_pricing("my-model").max_total_tokens == 6000

    def test_json_file(self):
        path = self._write_config({"my-model": dict(self.ENTRY, max_total_tokens=16000)}, "prices.json")
        table = load_pricing_table(path)
        assert table.get_pricing("my-model").max_total_tokens == 16000

    def test_extra_keys_ignored(self):
        path = self._write_config({"my-model": dict(self.ENTRY, litellm_provider="openai", mode="chat")})
        assert "my-model" in load_pricing_table(path)

    def test_loaded_table_computes_costs(self):
        from agentic_budget.core.budget import create_budget_tracker

        path = self._write_config({"my-model": self.ENTRY})
        tracker = create_budget_tracker(100, pricing_table=load_pricing_table(path))
        assert tracker.estimate_cost("my-model", 1000, 500) == 6

    def test_missing_keys(self):
        path = self._write_config({"my-model": {"max_input_tokens": 10}})
        with pytest.raises(ValueError, match="Missing required keys in my-model"):
            load_pricing_table(path)

    def test_skip_incomplete(self):
        path = self._write_config({
            "my-model": self.ENTRY,
            "embedding-model": {"input_cost_per_token": 0.0000001},
            "sample_spec": "not a dict",
        })
        table = load_pricing_table(path, skip_incomplete=True)
        assert table.models() == ["my-model"]

    @pytest.mark.parametrize("key,value", [
        ("max_output_tokens", 0),
        ("max_output_tokens", "big"),
        ("max_input_tokens", True),
    ])
    def test_invalid_limits(self, key, value):
        path = self._write_config({"my-model": dict(self.ENTRY, **{key: value})})
        with pytest.raises(ValueError, match="must be a positive integer"):
            load_pricing_table(path)

    def test_negative_cost(self):
        path = self._write_config({"my-model": dict(self.ENTRY, input_cost_per_token=-0.1)})
        with pytest.raises(ValueError, match="must be >= 0"):
            load_pricing_table(path)

    def test_non_numeric_cost(self):
        path = self._write_config({"my-model": dict(self.ENTRY, input_cost_per_token="cheap")})
        with pytest.raises(ValueError, match="must be a number"):
            load_pricing_table(path)

    def test_empty_file(self):
        path = self._write_text("")
        with pytest.raises(ValueError, match="Pricing file is empty"):
            load_pricing_table(path)

    def test_non_mapping_file(self):
        path = self._write_config(["gpt-4"])
        with pytest.raises(ValueError, match="must map model names"):
            load_pricing_table(path)

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_pricing_table(os.path.join(self.temp_dir, "missing.yaml"))

    def test_invalid_yaml(self):
        path = self._write_text("my-model: [unclosed")
        with pytest.raises(yaml.YAMLError, match="Invalid YAML"):
            load_pricing_table(path)


class TestToolDefinitionLoading(ConfigFileTest):
    """Test tool definition loading."""

    TOOL = {
        "name": "openai",
        "description": "Ask OpenAI",
        "provider": "OpenAI",
        "default_model": "gpt-4",
        "model_options": ["gpt-4", "gpt-3.5-turbo"],
    }

    MCP_TOOL = {
        "name": "github",
        "description": "GitHub via MCP",
        "provider": "mcp",
        "server_url": "https://api.githubcopilot.com/mcp/",
        "server_label": "github_mcp",
        "allowed_tools": ["search_repositories"],
        "auth": {"type": "bearer", "header_name": "Authorization", "env_var": "GITHUB_TOKEN"},
    }

    def test_bundled_definitions(self):
        definitions = load_tool_definitions(str(DEFAULT_TOOL_DEFINITIONS))

        assert [t.name for t in definitions.tools] == ["openai", "anthropic"]
        assert [t.name for t in definitions.mcp_tools] == ["github", "filesystem"]
        assert definitions.tools[0].default_model == "gpt-4-1106-preview"
        assert definitions.tools[1].default_model == "claude-3-5-sonnet-20240620"
        assert definitions.mcp_tools[0].auth.env_var == "GITHUB_TOKEN"
        assert definitions.mcp_tools[1].require_approval == "always"
        assert definitions.mcp_tools[1].auth is None

    def test_valid_definitions(self):
        path = self._write_config({"tools": [self.TOOL], "mcp_tools": [self.MCP_TOOL]})
        definitions = load_tool_definitions(path)

        tool = definitions.tools[0]
        assert tool.provider == "openai"  # normalized to lowercase
        assert tool.model_options == ("gpt-4", "gpt-3.5-turbo")
        assert tool.custom_parameters == {}

        mcp_tool = definitions.mcp_tools[0]
        assert mcp_tool.require_approval == "never"
        assert mcp_tool.allowed_tools == ("search_repositories",)
        assert mcp_tool.auth.type == "bearer"

    def test_tools_only(self):
        path = self._write_config({"tools": [self.TOOL]})
        definitions = load_tool_definitions(path)
        assert definitions.mcp_tools == []

    def test_unknown_top_level_key(self):
        path = self._write_config({"tools": [self.TOOL], "plugins": []})
        with pytest.raises(ValueError, match="Unknown keys in tool definitions"):
            load_tool_definitions(path)

    def test_unknown_tool_key(self):
        path = self._write_config({"tools": [dict(self.TOOL, temperature=0.5)]})
        with pytest.raises(ValueError, match=r"Unknown keys in tools\[0\]"):
            load_tool_definitions(path)

    def test_missing_tool_key(self):
        tool = dict(self.TOOL)
        del tool["default_model"]
        path = self._write_config({"tools": [tool]})
        with pytest.raises(ValueError, match=r"Missing required keys in tools\[0\]"):
            load_tool_definitions(path)

    def test_default_model_outside_options(self):
        path = self._write_config({"tools": [dict(self.TOOL, default_model="gpt-4o")]})
        with pytest.raises(ValueError, match="must be one of model_options"):
            load_tool_definitions(path)

    def test_empty_model_options(self):
        path = self._write_config({"tools": [dict(self.TOOL, model_options=[])]})
        with pytest.raises(ValueError, match="non-empty list of strings"):
            load_tool_definitions(path)

    def test_duplicate_names(self):
        path = self._write_config({"tools": [self.TOOL], "mcp_tools": [dict(self.MCP_TOOL, name="openai")]})
        with pytest.raises(ValueError, match="Duplicate tool names"):
            load_tool_definitions(path)

    def test_mcp_wrong_provider(self):
        path = self._write_config({"mcp_tools": [dict(self.MCP_TOOL, provider="openai")]})
        with pytest.raises(ValueError, match="must be 'mcp'"):
            load_tool_definitions(path)

    def test_mcp_invalid_approval(self):
        path = self._write_config({"mcp_tools": [dict(self.MCP_TOOL, require_approval="sometimes")]})
        with pytest.raises(ValueError, match="require_approval must be one of"):
            load_tool_definitions(path)

    def test_mcp_incomplete_auth(self):
        path = self._write_config({"mcp_tools": [dict(self.MCP_TOOL, auth={"type": "bearer"})]})
        with pytest.raises(ValueError, match=r"Missing required keys in mcp_tools\[0\].auth"):
            load_tool_definitions(path)

    def test_mcp_invalid_auth_type(self):
        auth = {"type": "oauth", "header_name": "Authorization", "env_var": "TOKEN"}
        path = self._write_config({"mcp_tools": [dict(self.MCP_TOOL, auth=auth)]})
        with pytest.raises(ValueError, match="auth type must be one of"):
            load_tool_definitions(path)

    def test_tools_must_be_list(self):
        path = self._write_config({"tools": {"openai": self.TOOL}})
        with pytest.raises(ValueError, match="'tools' must be a list"):
            load_tool_definitions(path)

    def test_empty_file(self):
        path = self._write_text("")
        with pytest.raises(ValueError, match="Tool definitions file is empty"):
            load_tool_definitions(path)
