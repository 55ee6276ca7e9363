"""Attachment strategies.

The relay configures every service when it is registered on the host
application. Which registration hook is available depends on the host:
``mixins`` receive ``(service, path)``, legacy ``providers`` receive
``(path, service)``. Both strategies end in the same ``configure_service``
call; the strategy is chosen once from the capabilities the host exposes.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from loguru import logger

from service_sync.exceptions import AttachmentError

ConfigureService = Callable[[Any, str], Any]


class AttachmentStrategy(ABC):
    """Hooks ``configure_service`` into a host's service registration."""

    @abstractmethod
    def install(self, app: Any, configure_service: ConfigureService) -> None:
        """Arrange for ``configure_service(service, path)`` to run on registration."""

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MixinStrategy(AttachmentStrategy):
    """Attach through ``app.mixins``."""

    def install(self, app: Any, configure_service: ConfigureService) -> None:
        app.mixins.append(configure_service)


class ProviderStrategy(AttachmentStrategy):
    """Attach through the legacy ``app.providers`` hook."""

    def install(self, app: Any, configure_service: ConfigureService) -> None:
        def provider(path: str, service: Any) -> Any:
            return configure_service(service, path)

        app.providers.append(provider)


def select_strategy(app: Any) -> AttachmentStrategy:
    """Pick the attachment strategy supported by ``app``.

    Raises:
        AttachmentError: If the app has neither ``mixins`` nor ``providers``
    """
    if isinstance(getattr(app, "mixins", None), list):
        strategy: AttachmentStrategy = MixinStrategy()
    elif isinstance(getattr(app, "providers", None), list):
        strategy = ProviderStrategy()
    else:
        raise AttachmentError(f"{type(app).__name__} exposes neither mixins nor providers")

    logger.debug(f"Attaching to {type(app).__name__} with {strategy.name}")
    return strategy
