"""Unit tests for cdevents_adapter.api.app application factory.

Usage
-----
Run with pytest::

    pytest tests/unit/test_api_app.py

"""

from __future__ import annotations

from unittest import mock

import falcon
import falcon.asgi
import falcon.testing
import pytest

from cdevents_adapter.adapter import IngressError
from cdevents_adapter.api.app import AppDependencies, create_app
from cdevents_adapter.service import AppendResult


class _Probe:
    def __init__(self, *, ready: bool = True) -> None:
        self.is_ready = ready


@pytest.fixture
def gateway() -> mock.AsyncMock:
    """Return a gateway double accepting every append."""
    gateway = mock.AsyncMock()
    gateway.append.return_value = AppendResult(
        subject="webhooks.gitea.push", stream="cdevents-adapter-webhooks", sequence=17
    )
    return gateway


@pytest.fixture
def client(gateway: mock.AsyncMock) -> falcon.testing.TestClient:
    """Build a test client without the lifespan middleware."""
    return falcon.testing.TestClient(
        create_app(AppDependencies(gateway=gateway, probe=_Probe()))
    )


class TestHealth:
    """Tests for the probe endpoints."""

    def test_returns_falcon_app(self, gateway: mock.AsyncMock) -> None:
        """create_app() returns a Falcon ASGI App."""
        app = create_app(AppDependencies(gateway=gateway, probe=_Probe()))
        assert isinstance(app, falcon.asgi.App), "expected Falcon ASGI App"

    def test_healthz(self, client: falcon.testing.TestClient) -> None:
        """/healthz always reports ok."""
        result = client.simulate_get("/healthz")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /healthz"
        assert result.json == {"status": "ok"}, "wrong /healthz body"

    def test_readyz_when_connected(self, client: falcon.testing.TestClient) -> None:
        """/readyz reports ready while the broker is reachable."""
        result = client.simulate_get("/readyz")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /readyz"
        assert result.json == {"status": "ready"}, "wrong /readyz body"

    def test_readyz_when_disconnected(self, gateway: mock.AsyncMock) -> None:
        """/readyz reports 503 without a broker connection."""
        client = falcon.testing.TestClient(
            create_app(AppDependencies(gateway=gateway, probe=_Probe(ready=False)))
        )

        result = client.simulate_get("/readyz")

        assert result.status == falcon.HTTP_503, "expected HTTP 503 from /readyz"
        assert result.json == {"status": "unavailable"}


class TestGiteaWebhook:
    """Tests for POST /webhook."""

    def test_accepts_gitea_delivery(
        self, client: falcon.testing.TestClient, gateway: mock.AsyncMock
    ) -> None:
        """The X-Gitea-Event header selects the routing key."""
        result = client.simulate_post(
            "/webhook",
            body=b'{"ref": "refs/heads/main"}',
            headers={"X-Gitea-Event": "push", "Content-Type": "application/json"},
        )

        assert result.status == falcon.HTTP_202, "expected HTTP 202"
        assert result.json == {
            "subject": "webhooks.gitea.push",
            "stream": "cdevents-adapter-webhooks",
            "sequence": 17,
        }
        gateway.append.assert_awaited_once_with(
            "gitea.push", b'{"ref": "refs/heads/main"}'
        )

    def test_missing_event_header(
        self, client: falcon.testing.TestClient, gateway: mock.AsyncMock
    ) -> None:
        """Deliveries without the event header are rejected."""
        result = client.simulate_post("/webhook", body=b"{}")

        assert result.status == falcon.HTTP_400
        assert result.json["field"] == "X-Gitea-Event"
        gateway.append.assert_not_awaited()

    def test_malformed_event_header(
        self, client: falcon.testing.TestClient, gateway: mock.AsyncMock
    ) -> None:
        """Header values that would break the subject are rejected."""
        result = client.simulate_post(
            "/webhook", body=b"{}", headers={"X-Gitea-Event": "push.>"}
        )

        assert result.status == falcon.HTTP_400
        gateway.append.assert_not_awaited()

    def test_empty_body(
        self, client: falcon.testing.TestClient, gateway: mock.AsyncMock
    ) -> None:
        """Empty deliveries are rejected."""
        result = client.simulate_post(
            "/webhook", body=b"", headers={"X-Gitea-Event": "push"}
        )

        assert result.status == falcon.HTTP_400
        assert result.json["field"] == "body"
        gateway.append.assert_not_awaited()


class TestRoutedWebhook:
    """Tests for POST /webhook/{routing_key}."""

    def test_uses_path_routing_key(
        self, client: falcon.testing.TestClient, gateway: mock.AsyncMock
    ) -> None:
        """The routing key comes from the URL path."""
        result = client.simulate_post("/webhook/gitea.pull_request", body=b"{}")

        assert result.status == falcon.HTTP_202
        gateway.append.assert_awaited_once_with("gitea.pull_request", b"{}")

    @pytest.mark.parametrize(
        "routing_key", ["gitea..push", ".push", "gitea.*", "gitea.push."]
    )
    def test_rejects_malformed_routing_key(
        self,
        client: falcon.testing.TestClient,
        gateway: mock.AsyncMock,
        routing_key: str,
    ) -> None:
        """Routing keys must be dot-separated names."""
        result = client.simulate_post(f"/webhook/{routing_key}", body=b"{}")

        assert result.status == falcon.HTTP_400
        assert result.json["field"] == "suffix"
        gateway.append.assert_not_awaited()

    def test_broker_failure_returns_503(
        self, client: falcon.testing.TestClient, gateway: mock.AsyncMock
    ) -> None:
        """Ingress failures ask the sender to retry."""
        gateway.append.side_effect = IngressError.not_connected()

        result = client.simulate_post("/webhook/gitea.push", body=b"{}")

        assert result.status == falcon.HTTP_503
        assert result.json == {
            "title": "Event bus unavailable",
            "description": "not connected to NATS",
        }
