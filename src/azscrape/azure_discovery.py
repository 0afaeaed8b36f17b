"""Azure Discovery Module.

Enumerates Azure subscriptions and resource groups through the Azure SDK and
memoizes the results in TTL caches to minimize Azure API calls.

Key features:
- Cached subscription and resource group listings (default TTL: 30 minutes)
- Optional subscription filter
- Parallel per-subscription enumeration
- Failures propagate and are never cached
"""

import logging
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from azure.core.exceptions import AzureError
from azure.mgmt.resource import ResourceManagementClient, SubscriptionClient
from azure.mgmt.resource.resources.models import ResourceGroup
from azure.mgmt.resource.subscriptions.models import Subscription

from azscrape.cache.ttl_cache import TTLCache

logger = logging.getLogger(__name__)

# Constants
DEFAULT_CACHE_TTL = 1800  # 30 minutes
DEFAULT_MAX_WORKERS = 8
SUBSCRIPTIONS_CACHE_KEY = "subscriptions"


class AzureDiscoveryError(Exception):
    """Exception raised for Azure discovery failures."""

    pass


def resource_groups_cache_key(subscription_id: str) -> str:
    """Cache key for the resource group listing of a subscription."""
    return f"resourcegroups:{subscription_id}"


class AzureDiscoveryClient:
    """Discovers Azure subscriptions and resource groups.

    Example:
        >>> client = AzureDiscoveryClient(CredentialFactory.create_credential())
        >>> for sub_id, groups in client.list_all_cached_resource_groups().items():
        ...     print(sub_id, len(groups))
    """

    def __init__(
        self,
        credential: Any,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        subscription_filter: Iterable[str] | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        subscription_client: SubscriptionClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize discovery client.

        Args:
            credential: Azure credential (TokenCredential)
            cache_ttl: TTL in seconds for cached listings
            subscription_filter: Subscription IDs to restrict discovery to
            max_workers: Parallel workers for per-subscription enumeration
            subscription_client: Preconfigured client, mainly for tests
            clock: Monotonic clock for listing expiry
        """
        self.credential = credential
        self.max_workers = max_workers
        self.subscription_filter: list[str] = []
        self.set_subscription_filter(*(subscription_filter or []))

        self._subscription_client = subscription_client
        self._subscription_cache: TTLCache[list[Subscription]] = TTLCache(
            default_ttl=cache_ttl, clock=clock
        )
        self._resource_group_cache: TTLCache[dict[str, ResourceGroup]] = TTLCache(
            default_ttl=cache_ttl, clock=clock
        )

    @property
    def subscription_client(self) -> SubscriptionClient:
        if self._subscription_client is None:
            self._subscription_client = SubscriptionClient(self.credential)
        return self._subscription_client

    def resource_client(self, subscription_id: str) -> ResourceManagementClient:
        """Create a resource management client for a subscription."""
        return ResourceManagementClient(self.credential, subscription_id)

    def set_cache_ttl(self, ttl: float) -> None:
        """Set TTL used for listings cached from now on."""
        self._subscription_cache.default_ttl = ttl
        self._resource_group_cache.default_ttl = ttl

    def set_subscription_filter(self, *subscription_ids: str) -> None:
        """Restrict discovery to these subscriptions (none = all)."""
        self.subscription_filter = [sub_id.lower() for sub_id in subscription_ids if sub_id]

    def start_cache_janitors(self) -> None:
        self._subscription_cache.start_janitor()
        self._resource_group_cache.start_janitor()

    def stop_cache_janitors(self) -> None:
        self._subscription_cache.stop_janitor()
        self._resource_group_cache.stop_janitor()

    def list_subscriptions(self) -> list[Subscription]:
        """List subscriptions visible to the credential, honoring the filter.

        Raises:
            AzureDiscoveryError: If the Azure query fails
        """
        try:
            subscriptions = list(self.subscription_client.subscriptions.list())
        except AzureError as e:
            raise AzureDiscoveryError(f"Failed to list Azure subscriptions: {e}") from e

        if self.subscription_filter:
            subscriptions = [
                sub
                for sub in subscriptions
                if (sub.subscription_id or "").lower() in self.subscription_filter
            ]

        return subscriptions

    def list_cached_subscriptions(self) -> list[Subscription]:
        """Cached variant of list_subscriptions."""

        def produce() -> list[Subscription]:
            logger.debug("Updating cached Azure Subscription list")
            subscriptions = self.list_subscriptions()
            logger.debug(f"Found {len(subscriptions)} Azure Subscriptions")
            return subscriptions

        return self._subscription_cache.cached(SUBSCRIPTIONS_CACHE_KEY, produce)

    def list_resource_groups(self, subscription_id: str) -> dict[str, ResourceGroup]:
        """List resource groups of a subscription keyed by lower-cased name.

        Raises:
            AzureDiscoveryError: If the Azure query fails
        """
        try:
            client = self.resource_client(subscription_id)
            return {
                (group.name or "").lower(): group for group in client.resource_groups.list()
            }
        except AzureError as e:
            raise AzureDiscoveryError(
                f"Failed to list resource groups of subscription {subscription_id}: {e}"
            ) from e

    def list_cached_resource_groups(self, subscription_id: str) -> dict[str, ResourceGroup]:
        """Cached variant of list_resource_groups."""

        def produce() -> dict[str, ResourceGroup]:
            logger.debug(f"Updating cached Azure ResourceGroup list (subscription {subscription_id})")
            groups = self.list_resource_groups(subscription_id)
            logger.debug(
                f"Found {len(groups)} Azure ResourceGroups (subscription {subscription_id})"
            )
            return groups

        return self._resource_group_cache.cached(
            resource_groups_cache_key(subscription_id), produce
        )

    def list_all_cached_resource_groups(self) -> dict[str, dict[str, ResourceGroup]]:
        """Cached resource groups of all subscriptions, enumerated in parallel.

        Returns:
            Mapping of subscription ID to resource groups by lower-cased name

        Raises:
            AzureDiscoveryError: If any subscription query fails
        """
        subscription_ids = [
            sub.subscription_id for sub in self.list_cached_subscriptions() if sub.subscription_id
        ]
        if not subscription_ids:
            return {}

        workers = max(1, min(self.max_workers, len(subscription_ids)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = executor.map(self.list_cached_resource_groups, subscription_ids)
            return dict(zip(subscription_ids, results, strict=True))


__all__ = [
    "AzureDiscoveryClient",
    "AzureDiscoveryError",
    "DEFAULT_CACHE_TTL",
    "resource_groups_cache_key",
]
