"""Session identifier pseudonymization."""

import hashlib


class IdentityHasher:
    """One-way SHA-256 digest of a session id.

    Applied before the id is sent to feedback, lead or support collaborators.
    Chat and history collaborators receive the raw id.
    """

    def hash(self, session_id: str) -> str:
        """
        Hash a session id.

        Args:
            session_id: Raw session identifier

        Returns:
            Lowercase hex SHA-256 digest (64 characters)
        """
        return hashlib.sha256(session_id.encode("utf-8")).hexdigest()
