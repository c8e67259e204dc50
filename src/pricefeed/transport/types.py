"""Transport-level type definitions."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class HttpResponse:
    """Status and decoded JSON body of one HTTP exchange.

    ``body`` is None for HEAD requests and for bodies that are not valid JSON.
    """

    status: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
