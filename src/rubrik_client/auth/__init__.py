"""Authentication strategies for Rubrik CDM."""
from .base import AuthStrategy
from .basic import BasicAuth

__all__ = ["AuthStrategy", "BasicAuth"]
