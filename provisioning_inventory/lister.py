"""Fetch every application in the org, following ``Link: rel="next"`` cursors."""

from typing import List

from . import console
from .http_client import APIError, OktaClient
from .models import Application

APPS_PATH = "/api/v1/apps"
PAGE_SIZE = 200


def list_applications(client: OktaClient, page_size: int = PAGE_SIZE) -> List[Application]:
    """Return all applications in API order.

    Any failure here is fatal for the run: transport errors and non-2xx
    responses propagate as ``APIError`` and are not retried.  A next link
    pointing at a page already fetched is reported the same way.
    """
    apps: List[Application] = []
    url = APPS_PATH
    params = {"limit": page_size}
    page = 0
    seen = set()

    while url:
        if url in seen:
            raise APIError(None, "app listing pagination repeated a page", url=url)
        seen.add(url)
        page += 1
        resp = client.get(url, params=params)
        if not resp.ok:
            raise resp.to_error()
        try:
            items = resp.json()
        except ValueError as exc:
            raise APIError(None, f"invalid JSON in app listing: {exc}", url=resp.url) from exc
        if not isinstance(items, list):
            raise APIError(resp.status_code, "app listing did not return a JSON array", url=resp.url)

        apps.extend(Application.from_api(item) for item in items if isinstance(item, dict))
        console.debug(f"page {page}: {len(items)} application(s)")

        url = resp.next_link()
        # the next link already carries limit and the cursor
        params = None

    console.info(f"Found {len(apps)} application(s)")
    return apps
