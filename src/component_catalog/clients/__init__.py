"""
Client modules for external service communication
"""

from .extraction import HttpExtractionSource

__all__ = ["HttpExtractionSource"]
