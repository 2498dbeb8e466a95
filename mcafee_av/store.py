"""Elasticsearch sink for scan results (REST API via ``requests``)."""

from __future__ import annotations

import requests

from mcafee_av.exceptions import PLUGIN_CATEGORY, PLUGIN_NAME, StoreError
from mcafee_av.models import Verdict
from mcafee_av.render import to_document

DEFAULT_INDEX = "malice"


class ElasticsearchStore:
    """Upsert plugin results into the shared Malice index.

    Each scanned file is one document, keyed by scan id; every plugin writes
    its own ``plugins.<category>.<name>`` sub-object.

    Args:
        url: Root URL of the Elasticsearch cluster.
        index: Index holding the scan documents.
        timeout: Request timeout in seconds.
        session: Optional pre-configured :class:`requests.Session`.

    Example::

        store = ElasticsearchStore("http://elasticsearch:9200")
        store.init()
        store.store_results(scan_id, verdict)
    """

    def __init__(
        self,
        url: str,
        index: str = DEFAULT_INDEX,
        timeout: float = 30,
        session: requests.Session | None = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._index = index
        self._timeout = timeout
        self._session = session or requests.Session()

    def init(self) -> None:
        """Create the index if it does not exist yet.

        Raises:
            StoreError: If the cluster is unreachable or refuses the request.
        """
        resp = self._request("HEAD", f"/{self._index}")
        if resp.status_code == 404:
            resp = self._request("PUT", f"/{self._index}")
            # Another plugin may have won the race.
            if resp.status_code == 400 and "already_exists" in resp.text:
                return
        self._raise_for_status(resp)

    def store_results(self, scan_id: str, verdict: Verdict) -> dict:
        """Merge *verdict* into the document for *scan_id*.

        Returns:
            The decoded Elasticsearch response.

        Raises:
            StoreError: If the upsert fails.
        """
        body = {
            "doc": {"plugins": {PLUGIN_CATEGORY: {PLUGIN_NAME: to_document(verdict)}}},
            "doc_as_upsert": True,
        }
        resp = self._request("POST", f"/{self._index}/_update/{scan_id}", json=body)
        self._raise_for_status(resp)
        return resp.json()  # type: ignore[no-any-return]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            return self._session.request(
                method, f"{self._url}{path}", timeout=self._timeout, **kwargs
            )
        except requests.RequestException as exc:
            raise StoreError(f"elasticsearch request failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(resp: requests.Response) -> None:
        if resp.ok:
            return
        raise StoreError(
            f"failed to index malice/{PLUGIN_NAME} results: "
            f"HTTP {resp.status_code} {resp.text[:200]}"
        )
