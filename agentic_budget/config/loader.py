"""
Configuration management and loading.

Loads pricing tables and tool definitions from YAML (or JSON, which YAML
parses as-is) and defines the caller-facing budget options.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from agentic_budget.core.pricing import PricingEntry, PricingTable
from agentic_budget.tools.factory import ToolConfig
from agentic_budget.tools.mcp import MCPAuthConfig, MCPToolConfig

# Keys LiteLLM-style pricing files carry that are accepted and ignored
_PRICING_REQUIRED_KEYS = {
    'max_input_tokens', 'max_output_tokens',
    'input_cost_per_token', 'output_cost_per_token',
}


@dataclass(frozen=True)
class BudgetOptions:
    """Caller options for one chat exchange.

    Tracking is active whenever max_cost_cents is set, including 0.
    """
    max_cost_cents: Optional[int] = None
    conservative_mode: bool = False

    def __post_init__(self):
        """Validate the budget ceiling."""
        if self.max_cost_cents is None:
            return
        if isinstance(self.max_cost_cents, bool) or not isinstance(self.max_cost_cents, int):
            raise ValueError("max_cost_cents must be an integer number of cents")
        if self.max_cost_cents < 0:
            raise ValueError("max_cost_cents must be >= 0")

    @property
    def tracking_enabled(self) -> bool:
        return self.max_cost_cents is not None


@dataclass(frozen=True)
class ToolDefinitions:
    """Tool and MCP tool configurations loaded from a definitions file."""
    tools: List[ToolConfig]
    mcp_tools: List[MCPToolConfig]


def _read_config_file(path: str) -> Any:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")


def _check_keys(data: Dict, allowed: set, required: set, path: str) -> None:
    unknown_keys = set(data.keys()) - allowed
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")
    missing_keys = required - set(data.keys())
    if missing_keys:
        raise ValueError(f"Missing required keys in {path}: {missing_keys}")


def _positive_int(value: Any, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"'{path}' must be a positive integer")
    return value


def _non_negative_decimal(value: Any, path: str) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"'{path}' must be a number")
    try:
        # str() keeps the written decimal digits of floats like 3e-05
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"'{path}' must be a number")
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"'{path}' must be >= 0")
    return amount


def _string_list(value: Any, path: str) -> List[str]:
    if not isinstance(value, list) or not value or not all(isinstance(v, str) for v in value):
        raise ValueError(f"'{path}' must be a non-empty list of strings")
    return value


def load_pricing_table(path: str, skip_incomplete: bool = False) -> PricingTable:
    """Load a pricing table from a YAML or JSON file.

    The file maps model identifiers to entries with ``max_input_tokens``,
    ``max_output_tokens``, ``input_cost_per_token``, ``output_cost_per_token``
    and optionally ``max_total_tokens``. LiteLLM files give the total limit as
    ``max_tokens``, which is read when ``max_total_tokens`` is absent; with
    neither, the total limit defaults to ``max_input_tokens``.
    Other keys, such as LiteLLM provider metadata, are ignored.

    Args:
        path: Path to the pricing file
        skip_incomplete: Skip entries missing cost or limit keys instead of
            failing (useful for LiteLLM files that also list non-chat models)

    Returns:
        PricingTable with one entry per model

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If the file is not valid YAML/JSON
        ValueError: If an entry is invalid
    """
    raw_config = _read_config_file(path)
    if not raw_config:
        raise ValueError("Pricing file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Pricing file must map model names to pricing entries")

    prices = {}
    for model, data in raw_config.items():
        if not isinstance(data, dict):
            if skip_incomplete:
                continue
            raise ValueError(f"Pricing entry '{model}' must be a dictionary")

        missing_keys = _PRICING_REQUIRED_KEYS - set(data.keys())
        if missing_keys:
            if skip_incomplete:
                continue
            raise ValueError(f"Missing required keys in {model}: {missing_keys}")

        max_input = _positive_int(data['max_input_tokens'], f"{model}.max_input_tokens")
        prices[str(model)] = PricingEntry(
            max_total_tokens=_positive_int(
                data.get('max_total_tokens', data.get('max_tokens', max_input)),
                f"{model}.max_total_tokens",
            ),
            max_input_tokens=max_input,
            max_output_tokens=_positive_int(data['max_output_tokens'], f"{model}.max_output_tokens"),
            input_cost_per_token=_non_negative_decimal(
                data['input_cost_per_token'], f"{model}.input_cost_per_token"
            ),
            output_cost_per_token=_non_negative_decimal(
                data['output_cost_per_token'], f"{model}.output_cost_per_token"
            ),
        )

    return PricingTable(prices)


def load_tool_definitions(path: str) -> ToolDefinitions:
    """Load and validate tool definitions from a YAML file.

    Args:
        path: Path to the definitions file with ``tools`` and ``mcp_tools`` sections

    Returns:
        Validated ToolDefinitions

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If a definition is invalid
    """
    raw_config = _read_config_file(path)
    if not raw_config:
        raise ValueError("Tool definitions file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Tool definitions file must be a dictionary")

    _check_keys(raw_config, {'tools', 'mcp_tools'}, set(), "tool definitions")

    tools_data = raw_config.get('tools') or []
    if not isinstance(tools_data, list):
        raise ValueError("'tools' must be a list")
    mcp_data = raw_config.get('mcp_tools') or []
    if not isinstance(mcp_data, list):
        raise ValueError("'mcp_tools' must be a list")

    tools = [_parse_tool_config(data, f"tools[{i}]") for i, data in enumerate(tools_data)]
    mcp_tools = [_parse_mcp_tool_config(data, f"mcp_tools[{i}]") for i, data in enumerate(mcp_data)]

    names = [t.name for t in tools] + [t.name for t in mcp_tools]
    duplicates = {name for name in names if names.count(name) > 1}
    if duplicates:
        raise ValueError(f"Duplicate tool names: {duplicates}")

    return ToolDefinitions(tools=tools, mcp_tools=mcp_tools)


def _parse_tool_config(data: Any, path: str) -> ToolConfig:
    """Parse and validate one provider tool definition.

    Raises:
        ValueError: If the definition is invalid
    """
    if not isinstance(data, dict):
        raise ValueError(f"{path} must be a dictionary")

    _check_keys(
        data,
        allowed={'name', 'description', 'provider', 'default_model', 'model_options', 'custom_parameters'},
        required={'name', 'description', 'provider', 'default_model', 'model_options'},
        path=path,
    )

    custom_parameters = data.get('custom_parameters') or {}
    if not isinstance(custom_parameters, dict):
        raise ValueError(f"'custom_parameters' in {path} must be a dictionary")

    return ToolConfig(
        name=str(data['name']),
        description=str(data['description']),
        provider=str(data['provider']).lower(),
        default_model=str(data['default_model']),
        model_options=tuple(_string_list(data['model_options'], f"{path}.model_options")),
        custom_parameters=custom_parameters,
    )


def _parse_mcp_tool_config(data: Any, path: str) -> MCPToolConfig:
    """Parse and validate one MCP tool definition.

    Raises:
        ValueError: If the definition is invalid
    """
    if not isinstance(data, dict):
        raise ValueError(f"{path} must be a dictionary")

    _check_keys(
        data,
        allowed={
            'name', 'description', 'provider', 'server_url', 'server_label',
            'allowed_tools', 'require_approval', 'auth',
        },
        required={'name', 'description', 'server_url', 'server_label', 'allowed_tools'},
        path=path,
    )

    if data.get('provider', 'mcp') != 'mcp':
        raise ValueError(f"'provider' in {path} must be 'mcp'")

    auth = None
    if data.get('auth') is not None:
        auth_data = data['auth']
        if not isinstance(auth_data, dict):
            raise ValueError(f"'auth' in {path} must be a dictionary")
        keys = {'type', 'header_name', 'env_var'}
        _check_keys(auth_data, allowed=keys, required=keys, path=f"{path}.auth")
        auth = MCPAuthConfig(
            type=str(auth_data['type']),
            header_name=str(auth_data['header_name']),
            env_var=str(auth_data['env_var']),
        )

    return MCPToolConfig(
        name=str(data['name']),
        description=str(data['description']),
        server_url=str(data['server_url']),
        server_label=str(data['server_label']),
        allowed_tools=tuple(_string_list(data['allowed_tools'], f"{path}.allowed_tools")),
        require_approval=str(data.get('require_approval', 'never')),
        auth=auth,
    )
