"""Resource group inventory collector."""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from azscrape.azure_discovery import AzureDiscoveryClient
from azscrape.collector.collector import Collector, _utcnow
from azscrape.collector.metrics import CollectorState

logger = logging.getLogger(__name__)

SUBSCRIPTION_INFO = "azurerm_subscription_info"
RESOURCEGROUP_INFO = "azurerm_resourcegroup_info"


class ResourceGroupCollector(Collector):
    """Collects subscription and resource group info metrics."""

    def __init__(
        self,
        discovery: AzureDiscoveryClient,
        scrape_interval: timedelta,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.discovery = discovery
        super().__init__("resourcegroups", scrape_interval, clock=clock)

    def setup(self, state: CollectorState) -> None:
        state.register(SUBSCRIPTION_INFO)
        state.register(RESOURCEGROUP_INFO)

    def collect_metrics(self, state: CollectorState) -> None:
        subscription_metric = state.get(SUBSCRIPTION_INFO)
        resourcegroup_metric = state.get(RESOURCEGROUP_INFO)

        for subscription in self.discovery.list_cached_subscriptions():
            subscription_metric.add(
                {
                    "subscription_id": subscription.subscription_id or "",
                    "subscription_name": subscription.display_name or "",
                }
            )

        for subscription_id, groups in sorted(
            self.discovery.list_all_cached_resource_groups().items()
        ):
            for name, group in sorted(groups.items()):
                properties = getattr(group, "properties", None)
                resourcegroup_metric.add(
                    {
                        "subscription_id": subscription_id,
                        "resource_group": name,
                        "location": (group.location or "").lower(),
                        "provisioning_state": getattr(properties, "provisioning_state", None)
                        or "",
                    }
                )

        logger.debug(
            f"Collected {len(subscription_metric)} subscriptions, "
            f"{len(resourcegroup_metric)} resource groups"
        )


__all__ = ["RESOURCEGROUP_INFO", "SUBSCRIPTION_INFO", "ResourceGroupCollector"]
