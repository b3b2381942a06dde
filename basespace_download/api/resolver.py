"""Look up display names for samples and projects."""

from __future__ import annotations

import logging
from enum import Enum

from .schemas import decode_name

logger = logging.getLogger(__name__)


class EntityKind(str, Enum):
    SAMPLE = "samples"
    PROJECT = "projects"


def resolve_name(client, kind: EntityKind, entity_id: str) -> str:
    """Return the ``Name`` of ``GET {kind}/{entity_id}``."""
    kind = EntityKind(kind)
    name = decode_name(client.fetch(f"{kind.value}/{entity_id}"))
    logger.debug("Resolved %s %s -> %s", kind.value, entity_id, name)
    return name
