from __future__ import annotations

from abc import ABC, abstractmethod


class ManagedServerHost(ABC):
    """The cloud machine an Outline server runs on."""

    @abstractmethod
    def get_host_id(self) -> str:
        raise NotImplementedError

    @abstractmethod
    async def delete(self) -> None:
        raise NotImplementedError


class ManagedServer(ABC):
    """A server created and managed through a connected cloud account."""

    @abstractmethod
    def get_id(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def get_host(self) -> ManagedServerHost:
        raise NotImplementedError

    @abstractmethod
    def is_install_completed(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def wait_on_install(self) -> None:
        """Resolve once the server software has finished installing."""
        raise NotImplementedError
