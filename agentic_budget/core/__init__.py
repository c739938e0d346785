"""
Core modules for agentic_budget.

This package contains pricing, budget tracking, and the cost-aware
execution guard applied around every LLM call.
"""
