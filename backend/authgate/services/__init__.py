# Authgate Services
from authgate.services.auth import AuthResult, AuthService, get_token_codec
from authgate.services.revocation import RevocationRegistry
from authgate.services.tokens import TokenCodec, TokenConfig
from authgate.services.user_store import UserStore

__all__ = [
    "AuthResult",
    "AuthService",
    "RevocationRegistry",
    "TokenCodec",
    "TokenConfig",
    "UserStore",
    "get_token_codec",
]
