"""Install-mode registry.

Maps the ``mode`` of an update object to a factory building the backend
that writes it. Backends register themselves once at startup; the
registry is then only read.
"""

import logging
from typing import Callable, Optional, Protocol

from updateagent.models.metadata import ObjectMetadata


class InstallModeNotFoundError(LookupError):
    """Raised when no backend is registered under a name."""

    def __str__(self) -> str:
        return self.args[0]


class InstallMode(Protocol):
    """Contract every install backend implements.

    A backend is built fresh for each object. ``setup`` resolves the
    target without touching it, ``install`` writes the payload and
    ``cleanup`` must succeed even if ``setup`` never ran.
    """

    def load_object(self, obj: ObjectMetadata) -> None: ...

    async def setup(self) -> None: ...

    async def install(self) -> None: ...

    async def cleanup(self) -> None: ...


class InstallModeRegistry:
    """Name → factory lookup for install backends."""

    def __init__(self):
        self.logger = logging.getLogger("updateagent.installmodes")
        self._factories: dict[str, Callable[[], InstallMode]] = {}
        self._requirements: dict[str, Callable[[], None]] = {}

    def register(
        self,
        name: str,
        factory: Callable[[], InstallMode],
        check_requirements: Optional[Callable[[], None]] = None,
    ) -> None:
        """Register a backend factory; the last registration wins.

        Args:
            name: Install mode name as found in object metadata
            factory: Zero-argument callable building a new backend
            check_requirements: Optional startup check, raises on failure
        """
        if name in self._factories:
            self.logger.warning(f"Install mode '{name}' registered twice, overriding")
        self._factories[name] = factory
        if check_requirements is not None:
            self._requirements[name] = check_requirements
        else:
            self._requirements.pop(name, None)
        self.logger.debug(f"Registered install mode '{name}'")

    def get_object(self, name: str) -> InstallMode:
        """Build a fresh backend for ``name``.

        Raises:
            InstallModeNotFoundError: If ``name`` was never registered
        """
        factory = self._factories.get(name)
        if factory is None:
            raise InstallModeNotFoundError(f"no such install mode: {name}")
        return factory()

    def check_requirements(self) -> None:
        """Run every registered requirement check, stopping at the first failure."""
        for name, check in self._requirements.items():
            self.logger.debug(f"Checking requirements of install mode '{name}'")
            check()

    def names(self) -> list[str]:
        return sorted(self._factories)
