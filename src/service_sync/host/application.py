"""Host applications.

An application mounts services on paths, lets plugins hook into service
registration and runs a one-time ``setup`` before serving. Two generations
exist and differ only in how plugins observe registration:

- ``Application`` calls each function in ``mixins`` as ``(service, path)``
- ``LegacyApplication`` calls each function in ``providers`` as ``(path, service)``
"""

import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from loguru import logger

from .registry import ServiceRegistry, normalize_path

Plugin = Callable[["HostApplication"], Any]


class HostApplication(ABC):
    """Common service mounting and lifecycle for both application generations."""

    def __init__(self) -> None:
        self._registry = ServiceRegistry()
        self._is_setup = False

    @property
    def services(self) -> ServiceRegistry:
        return self._registry

    @property
    def is_setup(self) -> bool:
        return self._is_setup

    def configure(self, plugin: Plugin) -> "HostApplication":
        """Run a plugin against this application."""
        plugin(self)
        return self

    def use(self, path: str, service: Any) -> "HostApplication":
        """Mount a service on a path and notify registration hooks."""
        path = normalize_path(path)
        self._notify_registration(path, service)
        self._registry.register(path, service)
        logger.debug(f"Registered service {path!r}")
        return self

    def service(self, path: str) -> Any:
        """Get the service mounted on ``path``."""
        return self._registry.get(path)

    async def setup(self) -> "HostApplication":
        """Call ``setup(app, path)`` on every service that defines it."""
        for path, service in self._registry.items():
            service_setup = getattr(service, "setup", None)
            if callable(service_setup):
                result = service_setup(self, path)
                if inspect.isawaitable(result):
                    await result
        self._is_setup = True
        logger.debug(f"Application setup complete ({len(self._registry)} services)")
        return self

    async def teardown(self) -> "HostApplication":
        """Release application resources."""
        self._is_setup = False
        return self

    @abstractmethod
    def _notify_registration(self, path: str, service: Any) -> None:
        """Call the registration hooks for a newly mounted service."""


class Application(HostApplication):
    """Application whose registration hooks are ``mixins``."""

    def __init__(self) -> None:
        super().__init__()
        self.mixins: list[Callable[[Any, str], Any]] = []

    def _notify_registration(self, path: str, service: Any) -> None:
        for mixin in self.mixins:
            mixin(service, path)


class LegacyApplication(HostApplication):
    """Application whose registration hooks are ``providers``."""

    def __init__(self) -> None:
        super().__init__()
        self.providers: list[Callable[[str, Any], Any]] = []

    def _notify_registration(self, path: str, service: Any) -> None:
        for provider in self.providers:
            provider(path, service)
