"""Base identity provider — abstract interface every backend must implement."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class IdentityProviderError(Exception):
    """An identity provider call failed; the message is safe to show callers."""


class UserNotFoundError(IdentityProviderError):
    """No user is registered under the given email."""


@dataclass
class Identity:
    """Value object returned by :meth:`IdentityProvider.get_by_email`."""

    uid: str
    email: str
    email_verified: bool = False


class IdentityProvider(ABC):
    """Abstract base class for user directories the OTP flows act on.

    Implementations raise :class:`IdentityProviderError` (or a subclass) for
    every failure so callers only have one exception family to handle.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name (used in logs)."""

    @abstractmethod
    async def get_by_email(self, email: str) -> Identity:
        """Return the user registered under *email*.

        Raises :class:`UserNotFoundError` if there is none.
        """

    @abstractmethod
    async def update_user(
        self,
        uid: str,
        *,
        email_verified: bool | None = None,
        password: str | None = None,
    ) -> None:
        """Apply the given changes to the user identified by *uid*.

        Parameters left as ``None`` are not touched.
        """
