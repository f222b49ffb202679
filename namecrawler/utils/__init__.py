"""
Utility modules for the name discovery crawler.
"""

from .config import Config, ConfigManager, load_config

__all__ = ['Config', 'ConfigManager', 'load_config']
