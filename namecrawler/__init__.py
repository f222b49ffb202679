"""
Name Discovery Crawler

Breadth-first enumeration of the names reachable through an autocomplete API.
"""

__version__ = "1.0.0"
__description__ = "Breadth-first name discovery over an undocumented autocomplete API"
