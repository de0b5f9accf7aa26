import hashlib

import pytest

from notes_core.credentials import CredentialStore, credential_key
from notes_core.errors import DuplicateUsername, UserNotFound, ValidationError

def test_register_stores_sha256_hex_digest(store):
    credentials = CredentialStore(store)
    credentials.register("alice", "pw1")
    assert store.get(credential_key("alice")) == hashlib.sha256(b"pw1").hexdigest()

def test_register_duplicate_username(store):
    credentials = CredentialStore(store)
    credentials.register("alice", "pw1")
    with pytest.raises(DuplicateUsername):
        credentials.register("alice", "pw2")
    # The first credential is untouched
    assert credentials.verify("alice", "pw1")

def test_usernames_are_case_sensitive(store):
    credentials = CredentialStore(store)
    credentials.register("alice", "pw1")
    credentials.register("Alice", "pw2")
    assert credentials.verify("Alice", "pw2")
    assert not credentials.verify("Alice", "pw1")

@pytest.mark.parametrize("username,password", [("", "pw"), ("alice", "")])
def test_register_requires_username_and_password(store, username, password):
    with pytest.raises(ValidationError):
        CredentialStore(store).register(username, password)

def test_verify_only_exact_password(store):
    credentials = CredentialStore(store)
    credentials.register("alice", "pw1")
    assert credentials.verify("alice", "pw1")
    assert not credentials.verify("alice", "PW1")
    assert not credentials.verify("alice", "pw1 ")

def test_verify_unknown_user(store):
    with pytest.raises(UserNotFound):
        CredentialStore(store).verify("bob", "x")

def test_pbkdf2_scheme_is_salted(store):
    credentials = CredentialStore(store, scheme="pbkdf2_sha256")
    credentials.register("alice", "pw1")
    credentials.register("bob", "pw1")
    stored_alice = store.get(credential_key("alice"))
    assert stored_alice.startswith("$pbkdf2-sha256$")
    assert stored_alice != store.get(credential_key("bob"))
    assert credentials.verify("alice", "pw1")
    assert not credentials.verify("alice", "pw2")
    with pytest.raises(UserNotFound):
        credentials.verify("carol", "pw1")

def test_verify_reads_either_format(store):
    CredentialStore(store).register("legacy", "old")
    hardened = CredentialStore(store, scheme="pbkdf2_sha256")
    assert hardened.verify("legacy", "old")

def test_unknown_scheme(store):
    with pytest.raises(ValueError):
        CredentialStore(store, scheme="md5")
