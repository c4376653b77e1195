import pytest

from manager.account import (
    Account,
    AccountId,
    DigitalOceanAccount,
    DigitalOceanLocation,
    DigitalOceanStatus,
)
from manager.cloud import CloudProviderId
from manager.server import ManagedServer, ManagedServerHost


def test_account_id_equality() -> None:
    first = AccountId("do-123", CloudProviderId.DIGITALOCEAN)
    second = AccountId("do-123", CloudProviderId.DIGITALOCEAN)

    assert first == second
    assert first != AccountId("do-123", CloudProviderId.GCP)


def test_interfaces_are_abstract() -> None:
    for interface in (Account, DigitalOceanAccount, ManagedServer, ManagedServerHost):
        with pytest.raises(TypeError):
            interface()


@pytest.mark.asyncio
async def test_concrete_account_satisfies_interface() -> None:
    class FakeHost(ManagedServerHost):
        def get_host_id(self) -> str:
            return "droplet-1"

        async def delete(self) -> None:
            return None

    class FakeServer(ManagedServer):
        def get_id(self) -> str:
            return "server-1"

        def get_host(self) -> ManagedServerHost:
            return FakeHost()

        def is_install_completed(self) -> bool:
            return True

        async def wait_on_install(self) -> None:
            return None

    class FakeAccount(DigitalOceanAccount):
        def __init__(self) -> None:
            self.listeners = []
            self.servers: list[ManagedServer] = []

        def get_id(self) -> AccountId:
            return AccountId("do-123", CloudProviderId.DIGITALOCEAN)

        async def get_display_name(self) -> str:
            return "user@example.com"

        def get_credentials(self) -> object:
            return {"access_token": "token"}

        def disconnect(self) -> None:
            self.servers.clear()

        def register_account_connection_issue_listener(self, fn) -> None:
            self.listeners.append(fn)

        async def get_status(self) -> DigitalOceanStatus:
            return DigitalOceanStatus.ACTIVE

        async def list_locations(self) -> list[DigitalOceanLocation]:
            return [DigitalOceanLocation("nyc", ("nyc1", "nyc3"))]

        async def create_server(self, name: str, location: DigitalOceanLocation) -> ManagedServer:
            server = FakeServer()
            self.servers.append(server)
            return server

        async def list_servers(self, fetch_from_host: bool) -> list[ManagedServer]:
            return list(self.servers)

    account = FakeAccount()
    location = (await account.list_locations())[0]
    server = await account.create_server("Outline", location)

    assert account.get_id().cloud_provider_id is CloudProviderId.DIGITALOCEAN
    assert await account.get_status() is DigitalOceanStatus.ACTIVE
    assert await account.list_servers(fetch_from_host=False) == [server]
    assert server.get_host().get_host_id() == "droplet-1"
