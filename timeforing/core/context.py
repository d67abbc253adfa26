"""Per-request context handed explicitly to the crud layer for logging."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RequestContext:
    subject: str
    correlation_id: str | None = None
    name: str | None = None
    email: str | None = None
    roles: tuple[str, ...] = field(default_factory=tuple)

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def log_extra(self, **fields: Any) -> dict[str, Any]:
        """Build the ``extra`` mapping understood by ``JsonLogFormatter``."""

        data: dict[str, Any] = {"principal": self.subject}
        if self.correlation_id:
            data["correlation_id"] = self.correlation_id
        data.update(fields)
        return {"extra_data": data}


ANONYMOUS = RequestContext(subject="anonymous")
