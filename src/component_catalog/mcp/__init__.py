"""
Tool protocol surface for the component catalog
"""

from .protocol import ToolDispatcher, ToolOutcome, to_tool_result
from .tools import TOOL_DEFINITIONS, TOOL_SCHEMAS

__all__ = ["ToolDispatcher", "ToolOutcome", "to_tool_result", "TOOL_DEFINITIONS", "TOOL_SCHEMAS"]
