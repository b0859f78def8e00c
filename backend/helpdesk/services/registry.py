# =============================================================================
# HELPDESK API - SERVICE REGISTRY
# =============================================================================
# External collaborators of the helpdesk, resolved by name:
#   storage          -> LocalStorage (uploads)
#   ai               -> GeminiAnalyzer
#   enrichment_queue -> SchedulerEnrichmentQueue
# Instances are built lazily and kept for the process lifetime.
# Tests install overrides, which take precedence over the built instances.
# =============================================================================

from typing import Any, Callable, Dict, Optional


class ServiceRegistry:
    """
    Lazily built collaborators with test overrides.

    Usage:
        storage = registry.get('storage')
        registry.override('ai', FakeAnalyzer())
    """

    def __init__(self):
        self._factories: Dict[str, Callable[[], Any]] = {}
        self._instances: Dict[str, Any] = {}
        self._overrides: Dict[str, Any] = {}

    def register(self, name: str, factory: Callable[[], Any]) -> None:
        """Declare how name is built; drops an instance built by a previous factory."""
        self._factories[name] = factory
        self._instances.pop(name, None)

    def get(self, name: str) -> Any:
        """
        Override for name, else the (lazily built) instance.

        Raises:
            KeyError: unknown collaborator
        """
        if name in self._overrides:
            return self._overrides[name]
        if name not in self._instances:
            if name not in self._factories:
                raise KeyError(f"Service '{name}' not registered")
            self._instances[name] = self._factories[name]()
        return self._instances[name]

    def cached(self, name: str) -> Optional[Any]:
        """Instance already built for name (overrides excluded), never builds one."""
        return self._instances.get(name)

    def override(self, name: str, instance: Any) -> None:
        self._overrides[name] = instance

    def clear_all_overrides(self) -> None:
        self._overrides.clear()


def _build_storage():
    from .storage import LocalStorage
    return LocalStorage()


def _build_analyzer():
    from .ai import GeminiAnalyzer
    return GeminiAnalyzer()


def _build_enrichment_queue():
    from .enrichment import SchedulerEnrichmentQueue
    return SchedulerEnrichmentQueue()


registry = ServiceRegistry()
registry.register('storage', _build_storage)
registry.register('ai', _build_analyzer)
registry.register('enrichment_queue', _build_enrichment_queue)


# =============================================================================
# FASTAPI DEPENDENCIES
# =============================================================================

def get_storage_service():
    return registry.get('storage')


def get_ai_service():
    return registry.get('ai')


def get_enrichment_queue():
    return registry.get('enrichment_queue')
