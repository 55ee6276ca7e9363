"""Tests for host applications."""

import pytest

from service_sync.host import Application, HostApplication, LegacyApplication, Service


class TrackingService(Service):
    """Service that records setup calls."""

    def __init__(self):
        super().__init__()
        self.setup_calls = []

    async def setup(self, app, path):
        self.setup_calls.append((app, path))


def test_use_and_service():
    app = Application()
    service = Service()

    app.use("/messages", service)

    assert app.service("messages") is service
    assert "messages" in app.services


def test_configure_runs_plugin():
    app = Application()
    seen = []

    assert app.configure(seen.append) is app
    assert seen == [app]


def test_mixins_called_on_registration():
    app = Application()
    calls = []
    app.mixins.append(lambda service, path: calls.append((service, path)))
    service = Service()

    app.use("/messages/", service)

    assert calls == [(service, "messages")]


def test_providers_called_on_registration():
    app = LegacyApplication()
    calls = []
    app.providers.append(lambda path, service: calls.append((path, service)))
    service = Service()

    app.use("messages", service)

    assert calls == [("messages", service)]


def test_application_generations_expose_one_hook_each():
    assert not hasattr(Application(), "providers")
    assert not hasattr(LegacyApplication(), "mixins")


@pytest.mark.asyncio
async def test_setup_calls_service_setup():
    app = Application()
    service = TrackingService()
    app.use("messages", service)

    assert not app.is_setup
    await app.setup()

    assert service.setup_calls == [(app, "messages")]
    assert app.is_setup


@pytest.mark.asyncio
async def test_setup_accepts_plain_objects():
    app = Application()
    app.use("static", object())

    await app.setup()

    assert app.is_setup


@pytest.mark.asyncio
async def test_teardown():
    app = Application()
    await app.setup()

    await app.teardown()

    assert not app.is_setup


def test_host_application_requires_registration_hook():
    with pytest.raises(TypeError):
        HostApplication()
