"""Security tests."""

import base64
import json

import pytest
from authgateway_core.security.auth import (
    AuthStatus,
    BasicAuthenticator,
    Credentials,
    encode_basic,
)
from authgateway_core.security.credentials import StaticCredentialStore


def basic(raw: bytes) -> str:
    return "Basic " + base64.b64encode(raw).decode()


@pytest.fixture
def auth():
    return BasicAuthenticator(StaticCredentialStore({"admin": "supersecretpassword"}))


class TestExtractCredentials:
    """Test parsing of the Authorization header."""

    def test_valid_header(self, auth):
        """Test a well-formed header."""
        creds = auth.extract_credentials(basic(b"admin:supersecretpassword"))
        assert creds == Credentials("admin", "supersecretpassword")

    def test_missing_header(self, auth):
        """Test absent header."""
        assert auth.extract_credentials(None) is None

    def test_other_scheme(self, auth):
        """Test non-Basic schemes are rejected."""
        assert auth.extract_credentials("Bearer abc.def") is None

    def test_prefix_is_case_sensitive(self, auth):
        """Test the literal 'Basic ' prefix is required."""
        token = base64.b64encode(b"admin:supersecretpassword").decode()
        assert auth.extract_credentials(f"basic {token}") is None
        assert auth.extract_credentials(f"Basic{token}") is None

    def test_invalid_base64(self, auth):
        """Test garbage after the prefix."""
        assert auth.extract_credentials("Basic !!!not-base64") is None

    def test_bad_padding(self, auth):
        """Test truncated base64."""
        assert auth.extract_credentials("Basic YWRtaW46c") is None

    def test_no_separator(self, auth):
        """Test decoded text without a colon."""
        assert auth.extract_credentials(basic(b"adminsupersecret")) is None

    def test_not_utf8(self, auth):
        """Test decoded bytes that are not text."""
        assert auth.extract_credentials(basic(b"\xff\xfe:\xff")) is None

    def test_splits_on_first_colon(self, auth):
        """Test passwords may contain colons."""
        creds = auth.extract_credentials(basic(b"admin:pa:ss:word"))
        assert creds.username == "admin"
        assert creds.password == "pa:ss:word"

    def test_empty_parts(self, auth):
        """Test empty username and password still parse."""
        creds = auth.extract_credentials(basic(b":"))
        assert creds == Credentials("", "")

    def test_repr_hides_password(self):
        """Test credentials never print the password."""
        assert "secret" not in repr(Credentials("admin", "secret"))


class TestAuthenticate:
    """Test credential validation."""

    def test_exact_match(self, auth):
        """Test matching credentials."""
        assert auth.authenticate(Credentials("admin", "supersecretpassword"))

    def test_wrong_password(self, auth):
        """Test a wrong password."""
        assert not auth.authenticate(Credentials("admin", "wrongpassword"))

    def test_unknown_user(self, auth):
        """Test a user that is not in the store."""
        assert not auth.authenticate(Credentials("root", "supersecretpassword"))

    def test_no_case_folding(self, auth):
        """Test usernames and passwords are compared exactly."""
        assert not auth.authenticate(Credentials("Admin", "supersecretpassword"))
        assert not auth.authenticate(Credentials("admin", "SUPERSECRETPASSWORD"))

    def test_non_ascii_password(self):
        """Test UTF-8 passwords compare correctly."""
        auth = BasicAuthenticator(StaticCredentialStore({"jörg": "pässwörd"}))
        assert auth.authenticate(Credentials("jörg", "pässwörd"))
        assert not auth.authenticate(Credentials("jörg", "passwort"))


class TestCheck:
    """Test the combined check and its internal failure reasons."""

    def test_success(self, auth):
        """Test a valid header."""
        result = auth.check(encode_basic("admin", "supersecretpassword"))
        assert result.is_authenticated
        assert result.identity == "admin"

    @pytest.mark.parametrize(
        "header,status",
        [
            (None, AuthStatus.MISSING),
            ("Basic !!!not-base64", AuthStatus.MALFORMED),
            ("Digest username=admin", AuthStatus.MALFORMED),
            (encode_basic("admin", "wrongpassword"), AuthStatus.INVALID),
        ],
    )
    def test_failures(self, auth, header, status):
        """Test each failure kind is classified."""
        result = auth.check(header)
        assert not result.is_authenticated
        assert result.status == status
        assert result.identity is None
        assert result.error


class TestStaticCredentialStore:
    """Test the in-memory credential store."""

    def test_lookup(self):
        """Test lookups."""
        store = StaticCredentialStore({"admin": "pw"})
        assert store.lookup("admin") == "pw"
        assert store.lookup("other") is None
        assert "admin" in store
        assert "other" not in store
        assert len(store) == 1

    def test_copy_on_construction(self):
        """Test later changes to the source dict are not seen."""
        users = {"admin": "pw"}
        store = StaticCredentialStore(users)
        users["admin"] = "changed"
        users["eve"] = "pw"
        assert store.lookup("admin") == "pw"
        assert store.lookup("eve") is None

    def test_table_is_read_only(self):
        """Test the underlying mapping cannot be mutated."""
        store = StaticCredentialStore({"admin": "pw"})
        with pytest.raises(TypeError):
            store._users["admin"] = "x"

    def test_rejects_colon_in_username(self):
        """Test usernames with ':' can never authenticate and are refused."""
        with pytest.raises(ValueError):
            StaticCredentialStore({"a:b": "pw"})

    def test_rejects_non_string(self):
        """Test passwords must be strings."""
        with pytest.raises(TypeError):
            StaticCredentialStore({"admin": 1234})

    def test_from_json(self, tmp_path):
        """Test loading a JSON credential file."""
        path = tmp_path / "users.json"
        path.write_text(json.dumps({"admin": "pw", "ops": "x:y"}))
        store = StaticCredentialStore.from_json(path)
        assert store.lookup("ops") == "x:y"
        assert len(store) == 2

    def test_from_json_requires_object(self, tmp_path):
        """Test a JSON list is refused."""
        path = tmp_path / "users.json"
        path.write_text("[]")
        with pytest.raises(ValueError):
            StaticCredentialStore.from_json(path)
