"""
Waits for the cluster-api resources to become usable.

Two phases share one deadline: first the API group/version must show up in
discovery, then listing the target resource in the namespace must succeed.
"""

import logging
import time
from typing import Any, Callable

from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from ..config import RETRY_INTERVAL_RESOURCE_READY, TIMEOUT_RESOURCE_READY
from ..error_handling import PollTimeoutError, ReadinessTimeoutError
from .polling import poll_immediate

logger = logging.getLogger(__name__)

CLUSTER_API_GROUP = "cluster.k8s.io"
CLUSTER_API_VERSION = "v1alpha1"

# Failures that mean "not there yet" while polling
_NOT_READY_ERRORS = (ApiException, HTTPError, OSError)


class ResourceReadinessWaiter:
    """Poll until a custom resource group is discoverable and listable."""

    def __init__(
        self,
        api: Any,
        namespace: str,
        group: str = CLUSTER_API_GROUP,
        version: str = CLUSTER_API_VERSION,
        plural: str = "clusters",
        interval: float = RETRY_INTERVAL_RESOURCE_READY,
        timeout: float = TIMEOUT_RESOURCE_READY,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the waiter.

        Args:
            api: kubernetes.client.CustomObjectsApi (or compatible)
            namespace: Namespace for the list check
            group: API group to wait for
            version: API version to wait for
            plural: Resource plural for the list check
            interval: Seconds between checks
            timeout: Overall budget in seconds for both phases
            sleep: Sleep function, replaceable in tests
            clock: Monotonic clock, replaceable in tests
        """
        self.api = api
        self.namespace = namespace
        self.group = group
        self.version = version
        self.plural = plural
        self.interval = interval
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock

    @property
    def group_version(self) -> str:
        return f"{self.group}/{self.version}"

    def _discoverable(self) -> bool:
        logger.info("Waiting for %s resources to become available...", self.group_version)
        try:
            self.api.get_api_resources(self.group, self.version)
        except _NOT_READY_ERRORS as e:
            logger.debug("%s not discoverable yet: %s", self.group_version, e)
            return False
        return True

    def _listable(self) -> bool:
        logger.info("Waiting for %s resources to be listable...", self.group_version)
        try:
            self.api.list_namespaced_custom_object(
                self.group, self.version, self.namespace, self.plural
            )
        except _NOT_READY_ERRORS as e:
            logger.debug("%s %s not listable yet: %s", self.group_version, self.plural, e)
            return False
        return True

    def wait(self) -> None:
        """Block until the resource is discoverable and listable.

        Raises:
            ReadinessTimeoutError: If either phase runs out of time
        """
        deadline = self._clock() + self.timeout

        try:
            poll_immediate(
                self.interval,
                self.timeout,
                self._discoverable,
                operation=f"{self.group_version} discovery",
                sleep=self._sleep,
            )
        except PollTimeoutError as e:
            raise ReadinessTimeoutError(e.operation, e.timeout) from e

        remaining = deadline - self._clock()
        try:
            poll_immediate(
                self.interval,
                remaining,
                self._listable,
                operation=f"{self.group_version} {self.plural} in namespace {self.namespace}",
                sleep=self._sleep,
            )
        except PollTimeoutError as e:
            raise ReadinessTimeoutError(e.operation, self.timeout) from e


def wait_for_cluster_resource_ready(api: Any, namespace: str, **kwargs: Any) -> None:
    """Wait for cluster.k8s.io/v1alpha1 clusters to be listable in a namespace."""
    ResourceReadinessWaiter(api, namespace, **kwargs).wait()
