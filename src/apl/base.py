from abc import ABC, abstractmethod

from src.models.auth import AuthData


class AplError(Exception):
    """Raised when the auth persistence backend cannot be reached or answers with an error."""


class APL(ABC):
    """Auth Persistence Layer: stores one AuthData per installation, keyed by API URL."""

    @abstractmethod
    def get(self, api_url: str) -> AuthData | None: ...

    @abstractmethod
    def set(self, auth_data: AuthData) -> None: ...

    @abstractmethod
    def delete(self, api_url: str) -> None: ...

    @abstractmethod
    def get_all(self) -> list[AuthData]: ...

    def is_configured(self) -> bool:
        return True
