"""JSON token persistence for interactive (user mode) configurations.

Each configuration keeps its token in ``<name>_token.json`` next to its YAML
file. The file holds a single StoredToken and is written with 0600
permissions.
"""

import json
import logging
from pathlib import Path

from gworkspace_admin.auth.models import (
    OAuthToken,
    StoredToken,
    TokenMetadata,
    TokenStatus,
)

logger = logging.getLogger(__name__)


class TokenStorage:
    """Stores the OAuth token of one configuration.

    Attributes:
        token_path: Path to the token file.

    Example:
        ```python
        storage = TokenStorage(config_dir / "work_token.json")
        storage.store(token, TokenMetadata(service_name="work"))
        stored = storage.retrieve()
        ```
    """

    def __init__(self, token_path: Path) -> None:
        self.token_path = token_path

    def _ensure_dir(self) -> None:
        directory = self.token_path.parent
        if not directory.exists():
            directory.mkdir(parents=True, mode=0o700)

    def _load(self) -> dict | None:
        if not self.token_path.exists():
            return None
        try:
            with open(self.token_path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.debug(f"Could not read {self.token_path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def store(self, token: OAuthToken, metadata: TokenMetadata) -> None:
        """Write the token, replacing any previous one.

        Args:
            token: OAuth token data to store.
            metadata: Token metadata.
        """
        stored = StoredToken(version=1, metadata=metadata, token=token)
        self._ensure_dir()
        with open(self.token_path, "w") as f:
            f.write(stored.model_dump_json(indent=2))
        self.token_path.chmod(0o600)

    def retrieve(self) -> StoredToken | None:
        """Read the token.

        Returns:
            StoredToken if present and well formed, None otherwise.
        """
        data = self._load()
        if not data:
            return None
        try:
            return StoredToken.model_validate(data)
        except ValueError:
            return None

    def delete(self) -> bool:
        """Remove the token file.

        Returns:
            True if a file was removed.
        """
        if not self.token_path.exists():
            return False
        self.token_path.unlink()
        return True

    def get_status(self) -> TokenStatus:
        """Get the status of the stored token."""
        data = self._load()
        if data is None:
            return TokenStatus.MISSING
        stored = self.retrieve()
        if stored is None:
            return TokenStatus.INVALID
        if stored.token.is_expired():
            return TokenStatus.EXPIRED
        return TokenStatus.VALID
