"""
F1 Jolpica Client Package.
"""

from .client import ClientConfig, F1Client
from .config import validate_configuration
from .models.response import Response, decode

__version__ = "0.1.0"

__all__ = ["ClientConfig", "F1Client", "Response", "decode", "validate_configuration"]
