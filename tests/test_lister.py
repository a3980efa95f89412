"""Tests for the application lister: Link-header pagination and fatal errors."""

import pytest
from provisioning_inventory.http_client import APIError, OktaClient
from provisioning_inventory.lister import list_applications
from tests.mock_okta_server import MockOktaServer, make_app


def _apps(n):
    return [make_app(f"0oa{i}", f"app{i}", status="ACTIVE" if i % 2 else "INACTIVE") for i in range(n)]


def test_follows_next_links_in_order():
    with MockOktaServer(apps=_apps(7)) as server:
        with OktaClient(server.base_url, "t") as client:
            apps = list_applications(client, page_size=3)
        assert [a.id for a in apps] == [f"0oa{i}" for i in range(7)]
        # 3 + 3 + 1
        assert server.count("/api/v1/apps") == 3


def test_single_page_with_default_page_size():
    with MockOktaServer(apps=_apps(5)) as server:
        with OktaClient(server.base_url, "t") as client:
            apps = list_applications(client)
        assert len(apps) == 5
        assert server.count("/api/v1/apps") == 1


def test_empty_org():
    with MockOktaServer(apps=[]) as server:
        with OktaClient(server.base_url, "t") as client:
            assert list_applications(client) == []


def test_application_fields_mapped():
    with MockOktaServer(apps=[make_app("0oa1", "slack", label="Slack Prod", status="INACTIVE")]) as server:
        with OktaClient(server.base_url, "t") as client:
            app = list_applications(client)[0]
    assert (app.id, app.name, app.label, app.status) == ("0oa1", "slack", "Slack Prod", "INACTIVE")
    assert not app.is_active


def test_listing_error_is_fatal():
    with MockOktaServer(apps=_apps(2), errors={"/api/v1/apps": 500}) as server:
        with OktaClient(server.base_url, "t") as client:
            with pytest.raises(APIError) as info:
                list_applications(client)
    assert info.value.status_code == 500


def test_listing_429_is_not_retried():
    with MockOktaServer(apps=_apps(2), throttle={"/api/v1/apps": 1}) as server:
        with OktaClient(server.base_url, "t") as client:
            with pytest.raises(APIError) as info:
                list_applications(client)
        assert info.value.is_rate_limited
        assert server.count("/api/v1/apps") == 1


def test_repeated_next_link_is_fatal():
    with MockOktaServer(apps=_apps(4), stuck_cursor=True) as server:
        with OktaClient(server.base_url, "t") as client:
            with pytest.raises(APIError) as info:
                list_applications(client, page_size=2)
        assert "repeated" in str(info.value)
        # first page, then the cursor page once before the loop is detected
        assert server.count("/api/v1/apps") == 2
