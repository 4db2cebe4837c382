"""Authentication for FieldWatch.

Credential validation, token storage and the session state machine that
every API call is made through.
"""

from fieldwatch.auth.models import Credentials, LoginResult, TokenPair
from fieldwatch.auth.session import SessionContext
from fieldwatch.auth.store import MemoryTokenStore, TokenStore, YamlTokenStore, create_token_store
from fieldwatch.auth.validators import validate_credentials

__all__ = [
    "Credentials",
    "LoginResult",
    "MemoryTokenStore",
    "SessionContext",
    "TokenPair",
    "TokenStore",
    "YamlTokenStore",
    "create_token_store",
    "validate_credentials",
]
