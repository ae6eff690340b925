"""Tests for credential sets, secret handling and request signing."""

import logging

import pytest
import requests
from pydantic import SecretStr

from qiniu_artifacts.core.auth import FORM_CONTENT_TYPE, QBoxAuth, sign, signing_data
from qiniu_artifacts.core.credentials import CredentialSet, as_secret, reveal
from qiniu_artifacts.exceptions import MissingFieldError


class TestCredentialSet:
    def test_secret_is_wrapped(self):
        creds = CredentialSet("ak", "sk", "ci")

        assert isinstance(creds.secret_key, SecretStr)
        assert creds.secret_key.get_secret_value() == "sk"

    def test_secret_not_in_repr_or_str(self):
        creds = CredentialSet("ak", "super-secret-value", "ci")

        assert "super-secret-value" not in repr(creds)
        assert "super-secret-value" not in str(creds)
        assert "ak" in repr(creds)

    def test_values_are_stripped(self):
        creds = CredentialSet(" ak ", "sk", " ci ")
        assert creds.access_key == "ak"
        assert creds.bucket_name == "ci"

    def test_incomplete_set_is_allowed(self):
        creds = CredentialSet(access_key="ak")

        assert not creds.is_complete()
        assert creds.missing_fields() == ["secret_key", "bucket_name"]

    @pytest.mark.parametrize("kwargs, field", [
        ({"access_key": "", "secret_key": "s", "bucket_name": "b"}, "access_key"),
        ({"access_key": "a", "secret_key": "", "bucket_name": "b"}, "secret_key"),
        ({"access_key": "a", "secret_key": "s", "bucket_name": ""}, "bucket_name"),
        ({}, "access_key"),
    ])
    def test_require_complete_names_first_missing_field(self, kwargs, field):
        with pytest.raises(MissingFieldError) as exc_info:
            CredentialSet(**kwargs).require_complete()

        assert exc_info.value.field == field
        assert field in str(exc_info.value)

    def test_none_values_count_as_empty(self):
        creds = CredentialSet(None, None, None)
        assert creds.missing_fields() == ["access_key", "secret_key", "bucket_name"]


class TestSecretHelpers:
    def test_as_secret(self):
        assert as_secret("x").get_secret_value() == "x"
        assert as_secret(None).get_secret_value() == ""
        secret = SecretStr("y")
        assert as_secret(secret) is secret

    def test_reveal_logs_purpose_not_value(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="qiniu_artifacts.core.credentials"):
            value = reveal(SecretStr("hunter2"), "unit test")

        assert value == "hunter2"
        assert "unit test" in caplog.text
        assert "hunter2" not in caplog.text


class TestSigning:
    def test_signing_data_without_body(self):
        assert signing_data("/v2/bucketInfo?bucket=ci") == b"/v2/bucketInfo?bucket=ci\n"

    def test_form_body_is_signed(self):
        data = signing_data("/move", "from=a&to=b", FORM_CONTENT_TYPE)
        assert data == b"/move\nfrom=a&to=b"

    def test_non_form_body_is_not_signed(self):
        data = signing_data("/move", b'{"a": 1}', "application/json")
        assert data == b"/move\n"

    def test_known_signatures(self):
        assert sign(b"sk", b"/v2/bucketInfo?bucket=ci\n") == "SP6Cd-mT6yxUQevR0YD4SL65Aq8="
        assert sign(b"sk", b"/move\nfrom=a&to=b") == "-PtvgtaUHngvxo8F1MHfvKETcY0="


class TestQBoxAuth:
    def test_adds_authorization_header(self):
        request = requests.Request(
            "POST",
            "http://uc.qbox.me/v2/bucketInfo",
            params={"bucket": "ci"},
            headers={"Content-Type": FORM_CONTENT_TYPE},
            auth=QBoxAuth(CredentialSet("ak", "sk", "ci")),
        ).prepare()

        assert request.headers["Authorization"] == "QBox ak:SP6Cd-mT6yxUQevR0YD4SL65Aq8="

    def test_signs_form_body(self):
        request = requests.Request(
            "POST",
            "http://rs.qiniu.com/move",
            data={"from": "a", "to": "b"},
            auth=QBoxAuth(CredentialSet("ak", "sk", "ci")),
        ).prepare()

        assert request.headers["Authorization"] == "QBox ak:-PtvgtaUHngvxo8F1MHfvKETcY0="

    def test_requires_complete_credentials(self):
        with pytest.raises(MissingFieldError, match="secret_key"):
            QBoxAuth(CredentialSet("ak", "", "ci"))

    def test_repr_hides_secret(self):
        auth = QBoxAuth(CredentialSet("ak", "very-secret", "ci"))
        assert "very-secret" not in repr(auth)
