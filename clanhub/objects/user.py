from __future__ import annotations

from clanhub.constants.privileges import Privileges
from clanhub.utils import make_safe_name

__all__ = ("User",)


class User:
    """A user of the host chat server, as seen by the clan system."""

    def __init__(
        self,
        name: str,
        priv: Privileges = Privileges.UNRESTRICTED,
        online: bool = True,
    ) -> None:
        self.name = name
        self.priv = priv
        self.online = online

    @property
    def id(self) -> str:
        return make_safe_name(self.name)

    def __repr__(self) -> str:
        return f"<{self.name} ({self.id})>"
