"""
Username -> password digest mapping, persisted under `user:<username>`.

The default `sha256` scheme is an unsalted, unstretched hex SHA-256 digest,
kept so existing stores stay readable. It is weak against offline guessing;
deployments that care should set DIGEST_SCHEME=pbkdf2_sha256, which stores
salted passlib hashes. `verify` accepts either format.
"""
import hashlib
import hmac

from passlib.context import CryptContext

from notes_core.config import DIGEST_SCHEMES
from notes_core.errors import DuplicateUsername, PersistenceFailure, UserNotFound, ValidationError
from notes_database.store import RevisionConflict, StorageError

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Compared against when the user is unknown, so both failure paths do the same work.
_DUMMY_SHA256 = hashlib.sha256(b"").hexdigest()


def credential_key(username: str) -> str:
    return f"user:{username}"


def sha256_digest(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


# PUBLIC_INTERFACE
class CredentialStore:
    """Registers accounts and checks passwords against their stored digest."""

    def __init__(self, store, scheme: str = "sha256"):
        if scheme not in DIGEST_SCHEMES:
            raise ValueError(f"Unknown digest scheme: {scheme}")
        self._store = store
        self.scheme = scheme

    def digest(self, password: str) -> str:
        if self.scheme == "pbkdf2_sha256":
            return pwd_context.hash(password)
        return sha256_digest(password)

    def register(self, username: str, password: str) -> None:
        """
        Creates the credential for `username`.
        Raises DuplicateUsername if one already exists.
        """
        if not username or not password:
            raise ValidationError("Username and password are required.")
        try:
            self._store.compare_and_set(credential_key(username), self.digest(password), 0)
        except RevisionConflict:
            raise DuplicateUsername(username) from None
        except StorageError as exc:
            raise PersistenceFailure(str(exc)) from exc

    def exists(self, username: str) -> bool:
        return self._stored_digest(username) is not None

    def verify(self, username: str, password: str) -> bool:
        """
        Returns whether `password` matches the stored digest.
        Raises UserNotFound when `username` has no credential.
        """
        stored = self._stored_digest(username)
        if stored is None:
            if self.scheme == "pbkdf2_sha256":
                pwd_context.dummy_verify()
            else:
                hmac.compare_digest(_DUMMY_SHA256, sha256_digest(password))
            raise UserNotFound(username)
        return self._check(stored, password)

    @staticmethod
    def _check(stored: str, password: str) -> bool:
        if stored.startswith("$"):
            return pwd_context.verify(password, stored)
        return hmac.compare_digest(stored, sha256_digest(password))

    def _stored_digest(self, username: str):
        try:
            return self._store.get(credential_key(username))
        except StorageError as exc:
            raise PersistenceFailure(str(exc)) from exc
