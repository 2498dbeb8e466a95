"""POSTs JSON results back to the Malice webhook endpoint."""

from __future__ import annotations

import requests

from mcafee_av.exceptions import CallbackError

SCAN_ID_HEADER = "X-Malice-ID"


def post_results(
    endpoint: str,
    body: bytes,
    scan_id: str,
    proxy: str = "",
    timeout: float = 30,
    session: requests.Session | None = None,
) -> requests.Response:
    """Send *body* to *endpoint*, tagged with *scan_id*.

    Args:
        endpoint: Webhook URL.
        body: Verdict JSON.
        scan_id: Correlation id sent as ``X-Malice-ID``.
        proxy: Optional upstream proxy used for this request only.

    Raises:
        CallbackError: If the endpoint is unset, unreachable or answers with
            an error status.
    """
    if not endpoint:
        raise CallbackError("no webhook endpoint configured (set MALICE_ENDPOINT)")

    session = session or requests.Session()
    proxies = {"http": proxy, "https": proxy} if proxy else None
    try:
        resp = session.post(
            endpoint,
            data=body,
            headers={"Content-Type": "application/json", SCAN_ID_HEADER: scan_id},
            proxies=proxies,
            timeout=timeout,
        )
    except requests.RequestException as exc:
        raise CallbackError(f"could not reach webhook {endpoint}: {exc}") from exc

    if not resp.ok:
        raise CallbackError(f"webhook {endpoint} answered HTTP {resp.status_code}: {resp.text}")
    return resp
