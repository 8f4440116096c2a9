# In utils/__init__.py

from .config import Config, ConfigurationError
from .overrides import OverrideStore

__all__ = ['Config', 'ConfigurationError', 'OverrideStore']
