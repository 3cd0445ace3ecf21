from .base import APL, AplError
from .file import FileAPL
from .upstash import UpstashAPL
from .factory import create_apl

__all__ = [
    "APL", "AplError",
    "FileAPL", "UpstashAPL",
    "create_apl",
]
