"""
Durable, encrypted key-value store for session credentials (access/refresh tokens, role, user id, email).
Values are Fernet-encrypted at rest; the key is loaded from file or generated and saved (no key material in code).
Rows are scoped by service name so dev/staging/prod installs do not see each other's session.
"""
import logging
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy.orm import sessionmaker

from student_client.config import CREDENTIAL_KEY_PATH, CREDENTIAL_SERVICE
from student_client.database import make_engine, make_session_factory
from student_client.models import CredentialEntry

logger = logging.getLogger(__name__)


def load_or_create_key(path: str | None) -> bytes:
    """
    Load a Fernet key from path, or generate and save one. Returns the key bytes.
    If the file can't be written, the key is kept in memory only (values won't survive a restart).
    """
    if not path:
        path = ".edulens_credential_key"
    p = Path(path)
    if p.exists():
        try:
            key = p.read_bytes().strip()
            Fernet(key)
            return key
        except (OSError, ValueError) as e:
            logger.warning("Failed to load credential key from %s: %s; generating new key", path, e)
    key = Fernet.generate_key()
    try:
        p.write_bytes(key)
        p.chmod(0o600)
        logger.info("Generated and saved credential key to %s", path)
    except OSError as e:
        logger.warning("Could not save credential key to %s: %s", path, e)
    return key


class CredentialStore:
    """get/set/delete against one service scope. set(key, None) deletes, like a keychain item."""

    def __init__(
        self,
        session_factory: sessionmaker | None = None,
        *,
        key: bytes | None = None,
        service: str = CREDENTIAL_SERVICE,
    ) -> None:
        if session_factory is None:
            session_factory = make_session_factory(make_engine())
        self._session_factory = session_factory
        self._fernet = Fernet(key if key is not None else load_or_create_key(CREDENTIAL_KEY_PATH))
        self.service = service

    def get(self, key: str) -> str | None:
        db = self._session_factory()
        try:
            row = self._find(db, key)
            if row is None:
                return None
            try:
                return self._fernet.decrypt(row.value.encode("ascii")).decode("utf-8")
            except InvalidToken:
                # Written with a different key (e.g. key file was replaced); treat as absent
                logger.warning("Stored credential %s could not be decrypted; ignoring", key)
                return None
        finally:
            db.close()

    def set(self, key: str, value: str | None) -> None:
        if value is None:
            self.delete(key)
            return
        ciphertext = self._fernet.encrypt(value.encode("utf-8")).decode("ascii")
        db = self._session_factory()
        try:
            row = self._find(db, key)
            if row is None:
                db.add(CredentialEntry(service=self.service, account=key, value=ciphertext))
            else:
                row.value = ciphertext
            db.commit()
        finally:
            db.close()

    def delete(self, key: str) -> None:
        db = self._session_factory()
        try:
            db.query(CredentialEntry).filter(
                CredentialEntry.service == self.service,
                CredentialEntry.account == key,
            ).delete()
            db.commit()
        finally:
            db.close()

    def clear(self, keys: list[str]) -> None:
        """Delete every given key in one transaction."""
        db = self._session_factory()
        try:
            db.query(CredentialEntry).filter(
                CredentialEntry.service == self.service,
                CredentialEntry.account.in_(keys),
            ).delete(synchronize_session=False)
            db.commit()
        finally:
            db.close()

    def _find(self, db, key: str) -> CredentialEntry | None:
        return (
            db.query(CredentialEntry)
            .filter(CredentialEntry.service == self.service, CredentialEntry.account == key)
            .first()
        )
