"""Unit tests for credential_factory module."""

from unittest.mock import patch

import pytest

from azscrape.credential_factory import AuthMethod, CredentialFactory, CredentialFactoryError


class TestCredentialFactory:
    """Tests for CredentialFactory.create_credential()."""

    @patch("azscrape.credential_factory.DefaultAzureCredential")
    def test_default(self, mock_default):
        credential = CredentialFactory.create_credential()
        assert credential is mock_default.return_value
        mock_default.assert_called_once_with()

    @patch("azscrape.credential_factory.DefaultAzureCredential")
    def test_default_with_managed_identity_client_id(self, mock_default):
        CredentialFactory.create_credential(AuthMethod.DEFAULT, client_id="client-1")
        mock_default.assert_called_once_with(managed_identity_client_id="client-1")

    @patch("azscrape.credential_factory.AzureCliCredential")
    def test_azure_cli(self, mock_cli):
        assert CredentialFactory.create_credential(AuthMethod.AZURE_CLI) is mock_cli.return_value

    @patch("azscrape.credential_factory.ManagedIdentityCredential")
    def test_managed_identity(self, mock_mi):
        CredentialFactory.create_credential(AuthMethod.MANAGED_IDENTITY, client_id="client-1")
        mock_mi.assert_called_once_with(client_id="client-1")

    @patch("azscrape.credential_factory.DefaultAzureCredential")
    def test_sdk_error_wrapped(self, mock_default):
        mock_default.side_effect = ValueError("bad environment")

        with pytest.raises(CredentialFactoryError, match="bad environment"):
            CredentialFactory.create_credential()

    def test_unsupported_method(self):
        with pytest.raises(CredentialFactoryError, match="Unsupported"):
            CredentialFactory.create_credential("client_secret")  # type: ignore[arg-type]
