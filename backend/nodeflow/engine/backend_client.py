"""HTTP client for the execution backend (cache invalidation)."""
import logging

import requests

logger = logging.getLogger(__name__)


class BackendClient:
    """Talks to the execution backend at ``http://{address}``.

    Network failures are logged and reported as ``False``; nothing is
    retried.
    """

    def __init__(self, address: str, timeout: float | None = None):
        self.base_url = f"http://{address}"
        self.timeout = timeout

    def clear_node_cache(self, node_id: str | list[str]) -> bool:
        """Ask the backend to drop cached results for one or more nodes."""
        url = f"{self.base_url}/clearNodeCache"
        try:
            response = requests.delete(url, json={"nodeId": node_id}, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Can't connect to server to clear cache for %s: %s", node_id, exc)
            return False
        if not response.ok:
            logger.warning(
                "Cache invalidation for %s rejected: HTTP %s", node_id, response.status_code,
            )
        return response.ok
