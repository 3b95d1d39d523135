"""
psakdin-search - full-text search over rulings (psakei din), as MCP tools
"""

__version__ = "0.1.0"
