"""Credential factory for Azure authentication.

This module creates Azure Identity SDK credential objects used by the
discovery client and the azblob snapshot store.

Supported credential types:
- DefaultAzureCredential: Environment, workload/managed identity, CLI (default)
- AzureCliCredential: Delegate to Azure CLI (forced with --az-cli)
- ManagedIdentityCredential: Managed identity (system or user-assigned)

Security:
- No token storage - delegates to Azure Identity SDK
- Client secrets from environment variables only
"""

from enum import StrEnum
from typing import Any

from azure.identity import AzureCliCredential, DefaultAzureCredential, ManagedIdentityCredential


class CredentialFactoryError(Exception):
    """Raised when credential creation fails."""

    pass


class AuthMethod(StrEnum):
    """Authentication method enumeration."""

    DEFAULT = "default"
    AZURE_CLI = "azure_cli"
    MANAGED_IDENTITY = "managed_identity"


class CredentialFactory:
    """Factory for creating Azure Identity credentials.

    Philosophy:
    - Ruthless simplicity: delegate to Azure SDK, don't reinvent
    - Fail-fast: catch configuration errors immediately
    """

    @staticmethod
    def create_credential(
        method: AuthMethod = AuthMethod.DEFAULT, client_id: str | None = None
    ) -> Any:
        """Create Azure Identity credential.

        Args:
            method: Authentication method
            client_id: Client ID of a user-assigned managed identity

        Returns:
            Azure Identity credential object (TokenCredential)

        Raises:
            CredentialFactoryError: If credential creation fails
        """
        try:
            if method == AuthMethod.AZURE_CLI:
                return AzureCliCredential()

            if method == AuthMethod.MANAGED_IDENTITY:
                if client_id:
                    return ManagedIdentityCredential(client_id=client_id)
                return ManagedIdentityCredential()

            if method == AuthMethod.DEFAULT:
                if client_id:
                    return DefaultAzureCredential(managed_identity_client_id=client_id)
                return DefaultAzureCredential()

        except Exception as e:
            raise CredentialFactoryError(f"Failed to create {method} credential: {e}") from e

        raise CredentialFactoryError(f"Unsupported authentication method: {method}")


__all__ = ["AuthMethod", "CredentialFactory", "CredentialFactoryError"]
