"""Service registry keyed by service path."""

from collections.abc import Iterator
from typing import Any


def normalize_path(path: str) -> str:
    """Strip leading and trailing slashes from a service path."""
    return path.strip("/")


class ServiceRegistry:
    """Registry for the services mounted on an application."""

    def __init__(self):
        """Initialize an empty service registry."""
        self._services: dict[str, Any] = {}

    def register(self, path: str, service: Any) -> str:
        """Register a service under a path.

        Args:
            path: The path the service is mounted on
            service: The service instance

        Returns:
            The normalized path
        """
        path = normalize_path(path)
        self._services[path] = service
        return path

    def get(self, path: str) -> Any:
        """Get a service by path.

        Raises:
            KeyError: If no service is registered on the path
        """
        path = normalize_path(path)

        if path not in self._services:
            raise KeyError(f"Service {path} not registered")

        return self._services[path]

    def items(self) -> list[tuple[str, Any]]:
        return list(self._services.items())

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and normalize_path(path) in self._services

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._services))

    def __len__(self) -> int:
        return len(self._services)
