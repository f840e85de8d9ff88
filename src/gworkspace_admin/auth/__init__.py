"""Authentication for gworkspace-admin.

Two modes are supported:

- ``dwd``: a service account with domain-wide delegation impersonates a user.
- ``user``: an administrator authorizes interactively; the token is stored
  next to the configuration and refreshed automatically.
"""

from gworkspace_admin.auth.models import OAuthToken, StoredToken, TokenMetadata, TokenStatus
from gworkspace_admin.auth.oauth_manager import OAuthManager, load_client_secrets
from gworkspace_admin.auth.providers import (
    DelegatedTokenProvider,
    StaticTokenProvider,
    TokenProvider,
    UserTokenProvider,
)
from gworkspace_admin.auth.token_storage import TokenStorage

__all__ = [
    "DelegatedTokenProvider",
    "OAuthManager",
    "OAuthToken",
    "StaticTokenProvider",
    "StoredToken",
    "TokenMetadata",
    "TokenProvider",
    "TokenStatus",
    "TokenStorage",
    "UserTokenProvider",
    "load_client_secrets",
]
