"""Registry of scheduling provider adapters. Add new adapters here."""
import logging
from typing import Any

logger = logging.getLogger(__name__)

_adapters: dict[str, Any] = {}


def register(name: str, adapter: Any) -> None:
    """Register an adapter (e.g. 'acuity', 'square')."""
    _adapters[name] = adapter
    logger.info("Registered availability adapter: %s", name)


def get_adapter(name: str) -> Any:
    """Get adapter by name. Raises KeyError if unknown."""
    if name not in _adapters:
        raise KeyError(f"Unknown provider: {name}. Available: {list(_adapters.keys())}")
    return _adapters[name]


def list_adapters() -> list[str]:
    """List registered provider ids, in registration order."""
    return list(_adapters.keys())


def _init_registry() -> None:
    from chairtime.services.providers.acuity_provider import AcuityAdapter
    from chairtime.services.providers.square_provider import SquareAdapter

    register("acuity", AcuityAdapter())
    register("square", SquareAdapter())


# Register built-in adapters on first import
_init_registry()
