from __future__ import annotations

__all__ = ("Channel",)

MAX_MESSAGE_LENGTH = 2000


class Channel:
    """A clan's chat channel.

    Possibly confusing attributes
    -----------
    auth: `dict[str, str]`
        Maps user ids to the channel auth symbol they hold.

    rank_symbols: `dict[str, str]`
        Maps clan rank names to the auth symbol granted for them;
        shown to channel staff as a legend.

    messages: `list[str]`
        System messages posted to the channel, oldest first.
    """

    def __init__(
        self,
        id: str,
        title: str,
        auth: dict[str, str] | None = None,
        rank_symbols: dict[str, str] | None = None,
        private: bool = True,
        modjoin: str = "+",
        persist: bool = True,
    ) -> None:
        self.id = id
        self.title = title

        if auth is None:
            auth = {}

        self.auth = auth

        if rank_symbols is None:
            rank_symbols = {}

        self.rank_symbols = rank_symbols

        self.private = private
        self.modjoin = modjoin
        self.persist = persist

        self.messages: list[str] = []

    def __repr__(self) -> str:
        return f"<#{self.id}>"

    def send_bot(self, msg: str) -> None:
        """Post `msg` to the channel as a system message."""
        msg_len = len(msg)

        if msg_len >= MAX_MESSAGE_LENGTH:
            msg = f"message would have been too long ({msg_len} chars)"

        self.messages.append(msg)
