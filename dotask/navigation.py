"""Navigator — records route changes requested by the stores."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class Navigator:
    """Holds the current route and the history of redirects."""

    def __init__(self, initial: str = "/") -> None:
        self.current: str = initial
        self.history: list[str] = [initial]

    def goto(self, route: str) -> None:
        if not route.startswith("/"):
            raise ValueError(f"Route must be absolute: {route!r}")
        logger.info("Navigating %s -> %s", self.current, route)
        self.current = route
        self.history.append(route)
