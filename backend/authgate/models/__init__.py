# Authgate Models
from authgate.models.base import BaseModel
from authgate.models.token_blacklist import TokenBlacklist
from authgate.models.user import User

__all__ = [
    "BaseModel",
    "TokenBlacklist",
    "User",
]
