"""Handler registry: which handler classes run for an entity type.

Manifesto:
    A central registry lets the caller dispatch a batch by entity type
    without import-time coupling to every handler module.

Tags:
    trigger-spine, framework, registry, handler-discovery

Doc-Types:
    api-reference
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from trigger_spine.core.bypass import handler_identity
from trigger_spine.core.logging import get_logger

if TYPE_CHECKING:
    from trigger_spine.framework.handler import TriggerHandler

logger = get_logger(__name__)


@dataclass(frozen=True)
class Registration:
    entity_type: str
    handler_cls: type["TriggerHandler"]
    order: int = 100

    @property
    def name(self) -> str:
        return handler_identity(self.handler_cls)


# Global handler registry: entity type -> registrations
_registry: dict[str, list[Registration]] = {}


def register_handler(
    entity_type: str, *, order: int = 100
) -> Callable[[type["TriggerHandler"]], type["TriggerHandler"]]:
    """Decorator to register a handler class for an entity type.

    Handlers for the same entity type run in ascending ``order``, then by name.
    """

    def decorator(cls: type["TriggerHandler"]) -> type["TriggerHandler"]:
        registration = Registration(entity_type=entity_type, handler_cls=cls, order=order)
        existing = _registry.setdefault(entity_type, [])
        if any(r.name == registration.name for r in existing):
            raise ValueError(f"Handler '{registration.name}' is already registered for '{entity_type}'")
        existing.append(registration)
        existing.sort(key=lambda r: (r.order, r.name))
        logger.debug("handler_registered", entity_type=entity_type, handler=registration.name, order=order)
        return cls

    return decorator


def get_handlers(entity_type: str) -> list[type["TriggerHandler"]]:
    """Handler classes registered for an entity type, in run order."""
    return [r.handler_cls for r in _registry.get(entity_type, [])]


def list_handlers() -> dict[str, list[str]]:
    """Entity type -> handler names, for diagnostics."""
    return {entity_type: [r.name for r in regs] for entity_type, regs in sorted(_registry.items())}


def clear_registry() -> None:
    """Clear registry (for testing)."""
    _registry.clear()
