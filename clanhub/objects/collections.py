from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from clanhub.logging import Ansi
from clanhub.logging import log
from clanhub.objects.channel import Channel
from clanhub.objects.user import User
from clanhub.utils import make_safe_name

if TYPE_CHECKING:
    from clanhub.usecases.channels import ChannelMetadata

__all__ = ("Channels", "Users")


class Channels(list[Channel]):
    """The currently active chat channels on the server."""

    def __init__(self, debug: bool = False) -> None:
        super().__init__()
        self.debug = debug

    def __iter__(self) -> Iterator[Channel]:
        return super().__iter__()

    def __contains__(self, o: object) -> bool:
        """Check whether internal list contains `o`."""
        # Allow string to be passed to compare vs. id.
        if isinstance(o, str):
            return o in (chan.id for chan in self)
        else:
            return super().__contains__(o)

    def __repr__(self) -> str:
        return f'[{", ".join(c.id for c in self)}]'

    def get_by_id(self, channel_id: str) -> Channel | None:
        """Get a channel from the list by `channel_id`."""
        for channel in self:
            if channel.id == channel_id:
                return channel

        return None

    def append(self, channel: Channel) -> None:
        """Append `channel` to the list."""
        super().append(channel)

        if self.debug:
            log(f"{channel} added to channels list.")

    def remove(self, channel: Channel) -> None:
        """Remove `channel` from the list."""
        super().remove(channel)

        if self.debug:
            log(f"{channel} removed from channels list.")

    # channel gateway

    def exists(self, channel_id: str) -> bool:
        return channel_id in self

    async def create_channel(
        self,
        channel_id: str,
        metadata: ChannelMetadata,
    ) -> Channel | None:
        """Create a private, persistent channel; `None` if the id is taken."""
        if channel_id in self:
            log(f"Refusing to create channel {channel_id}: already exists.", Ansi.LYELLOW)
            return None

        channel = Channel(
            id=channel_id,
            title=metadata["title"],
            auth=dict(metadata["auth"]),
            rank_symbols=dict(metadata["rank_symbols"]),
            private=True,
            modjoin="+",
            persist=True,
        )
        self.append(channel)
        return channel

    async def destroy_channel(self, channel_id: str) -> None:
        channel = self.get_by_id(channel_id)
        if channel is not None:
            self.remove(channel)

    async def post_system_message(self, channel_id: str, text: str) -> None:
        channel = self.get_by_id(channel_id)
        if channel is not None:
            channel.send_bot(text)


class Users(list[User]):
    """The users currently known to the server."""

    def __iter__(self) -> Iterator[User]:
        return super().__iter__()

    def __contains__(self, user: object) -> bool:
        # allow us to either pass in the user
        # obj, or the user name as a string.
        if isinstance(user, str):
            return make_safe_name(user) in (u.id for u in self)
        else:
            return super().__contains__(user)

    def __repr__(self) -> str:
        return f'[{", ".join(map(repr, self))}]'

    def get(self, name: str) -> User | None:
        """Get a user by name (or id) from the list."""
        safe_name = make_safe_name(name)
        for user in self:
            if user.id == safe_name:
                return user

        return None

    def get_online(self, name: str) -> User | None:
        """Get a user by name, only if they're currently online."""
        user = self.get(name)
        if user is None or not user.online:
            return None

        return user
