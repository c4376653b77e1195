from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .cloud import CloudProviderId
from .server import ManagedServer


@dataclass(frozen=True)
class AccountId:
    # Identifier assigned by the cloud provider.
    cloud_specific_id: str
    cloud_provider_id: CloudProviderId


class Account(ABC):
    @abstractmethod
    def get_id(self) -> AccountId:
        raise NotImplementedError

    @abstractmethod
    async def get_display_name(self) -> str:
        """Human readable name, ideally the email or username used to log in."""
        raise NotImplementedError

    @abstractmethod
    def get_credentials(self) -> object:
        raise NotImplementedError

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect the account and revoke its credentials."""
        raise NotImplementedError


class DigitalOceanStatus(str, Enum):
    ACTIVE = "active"
    EMAIL_UNVERIFIED = "email_unverified"
    MISSING_BILLING_INFORMATION = "missing_billing_information"
    LOCKED = "locked"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DigitalOceanLocation:
    region_id: str
    data_centers: tuple[str, ...] = ()


class DigitalOceanAccount(Account):
    @abstractmethod
    def register_account_connection_issue_listener(self, fn: Callable[[], None]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_status(self) -> DigitalOceanStatus:
        raise NotImplementedError

    @abstractmethod
    async def list_locations(self) -> list[DigitalOceanLocation]:
        """Locations that support every resource an Outline server needs."""
        raise NotImplementedError

    @abstractmethod
    async def create_server(self, name: str, location: DigitalOceanLocation) -> ManagedServer:
        """Create a server; it is not usable until ``wait_on_install`` completes."""
        raise NotImplementedError

    @abstractmethod
    async def list_servers(self, fetch_from_host: bool) -> list[ManagedServer]:
        raise NotImplementedError
