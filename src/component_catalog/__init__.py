"""
Component Catalog
Cached, rate-limited search over UI component records behind a tool protocol
"""

__version__ = "2.0.0"
