"""
Configuration for agentic_budget.

Pricing tables, tool definitions, and caller budget options.
"""
