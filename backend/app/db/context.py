"""Request context for tenancy enforcement."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class RequestContext:
    """Request context containing the authenticated owner identity.

    Every content-store read and write is scoped by ``owner_id``.
    """

    owner_id: UUID
