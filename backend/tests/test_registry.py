# =============================================================================
# HELPDESK API - SERVICE REGISTRY TESTS
# =============================================================================
# Collaborator lookup, lazy construction and test overrides
# =============================================================================

import pytest
from fastapi.testclient import TestClient

from helpdesk.services.ai import GeminiAnalyzer
from helpdesk.services.enrichment import (
    EnrichmentQueue,
    SchedulerEnrichmentQueue,
    SynchronousEnrichmentQueue,
)
from helpdesk.services.registry import (
    ServiceRegistry,
    registry,
    get_storage_service,
    get_ai_service,
    get_enrichment_queue,
)
from helpdesk.services.storage import LocalStorage, StorageBackend

from fakes import FakeAnalyzer


@pytest.mark.unit
class TestServiceRegistry:

    def test_built_once_on_first_get(self):
        builds = []

        def build_storage():
            builds.append(1)
            return LocalStorage(base_dir="/tmp/uploads")

        services = ServiceRegistry()
        services.register('storage', build_storage)

        assert services.cached('storage') is None
        first = services.get('storage')

        assert services.get('storage') is first
        assert services.cached('storage') is first
        assert builds == [1]

    def test_unknown_collaborator(self):
        with pytest.raises(KeyError):
            ServiceRegistry().get('mailer')

    def test_override_wins_until_cleared(self):
        services = ServiceRegistry()
        services.register('ai', lambda: GeminiAnalyzer(api_key=""))
        built = services.get('ai')
        fake = FakeAnalyzer()

        services.override('ai', fake)
        assert services.get('ai') is fake
        # cached() reports the built instance, never the override
        assert services.cached('ai') is built

        services.clear_all_overrides()
        assert services.get('ai') is built

    def test_reregister_drops_built_instance(self):
        services = ServiceRegistry()
        services.register('enrichment_queue', SchedulerEnrichmentQueue)
        services.get('enrichment_queue')

        services.register('enrichment_queue', SynchronousEnrichmentQueue)

        assert services.cached('enrichment_queue') is None
        assert isinstance(services.get('enrichment_queue'), SynchronousEnrichmentQueue)


@pytest.mark.unit
class TestHelpdeskCollaborators:

    def test_getters_return_overrides(self, storage, analyzer, enrichment_queue):
        assert get_storage_service() is storage
        assert get_ai_service() is analyzer
        assert get_enrichment_queue() is enrichment_queue

    def test_production_defaults(self):
        registry.clear_all_overrides()

        assert isinstance(get_storage_service(), LocalStorage)
        assert isinstance(get_ai_service(), GeminiAnalyzer)
        queue = get_enrichment_queue()
        assert isinstance(queue, SchedulerEnrichmentQueue)
        # Nothing submitted yet, so no scheduler thread was started
        assert queue._scheduler is None

    @pytest.mark.parametrize("interface", [StorageBackend, EnrichmentQueue])
    def test_interfaces_are_abstract(self, interface):
        with pytest.raises(TypeError):
            interface()

    def test_incomplete_storage_rejected(self):
        class UploadOnly(StorageBackend):
            def upload(self, data, original_name, destination):
                return {"filename": original_name}

        with pytest.raises(TypeError):
            UploadOnly()


@pytest.mark.integration
class TestOverridesReachEndpoints:

    def test_ticket_creation_uses_overridden_queue(self, client: TestClient, customer_headers):
        queue = SynchronousEnrichmentQueue(analyzer=FakeAnalyzer())
        registry.override('enrichment_queue', queue)

        response = client.post("/api/v1/tickets", data={"title": "VPN down", "description": "No tunnel"},
                               headers=customer_headers)

        assert queue.submitted == [response.json()["data"]["id"]]

    def test_suggestion_uses_overridden_analyzer(self, client: TestClient, create_ticket,
                                                 customer_headers, team_headers):
        registry.override('ai', FakeAnalyzer(suggestion="Please restart the router."))
        ticket = create_ticket(customer_headers)

        response = client.post(f"/api/v1/tickets/{ticket['id']}/suggest-response",
                               headers=team_headers)

        assert response.json()["data"]["suggestion"] == "Please restart the router."
