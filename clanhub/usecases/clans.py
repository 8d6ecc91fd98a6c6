from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Collection
from enum import StrEnum

from clanhub._typing import UNSET
from clanhub._typing import _UnsetSentinel
from clanhub.constants.privileges import ClanRank
from clanhub.errors import Error
from clanhub.errors import ErrorCode
from clanhub.logging import Ansi
from clanhub.logging import log
from clanhub.objects.clan import Clan
from clanhub.objects.clan import ClanMember
from clanhub.objects.user import User
from clanhub.repositories.clans import CLAN_ID_MAX_LENGTH
from clanhub.repositories.clans import CLAN_NAME_MAX_LENGTH
from clanhub.repositories.clans import DESCRIPTION_MAX_LENGTH
from clanhub.repositories.clans import ICON_MAX_LENGTH
from clanhub.repositories.clans import USER_ID_MAX_LENGTH
from clanhub.repositories.clans import ClanStore
from clanhub.repositories.clans import PersistenceError
from clanhub.usecases.audit import AuditLog
from clanhub.usecases.authorization import Capability
from clanhub.usecases.authorization import authorize
from clanhub.usecases.channels import ChannelGateway
from clanhub.usecases.channels import make_clan_channel_metadata
from clanhub.utils import make_safe_name
from clanhub.utils import unix_time

DEFAULT_STARTING_POINTS = 1000


class PointsDirection(StrEnum):
    GIVE = "give"
    TAKE = "take"


def validate_rank(rank: object) -> ClanRank | Error:
    # bools are ints, but never ranks
    if not isinstance(rank, bool) and isinstance(rank, int):
        try:
            return ClanRank(rank)
        except ValueError:
            pass

    return Error(
        user_feedback=(
            f"Invalid rank: {rank}. Ranks range from "
            f"{int(ClanRank.RECRUIT)} (Recruit) to {int(ClanRank.LEADER)} (Leader)."
        ),
        error_code=ErrorCode.INVALID_RANK,
    )


def validate_user_id(user_id: str) -> None | Error:
    """Check a normalized user id fits our tables."""
    if not user_id:
        return Error(
            user_feedback="A user must be given.",
            error_code=ErrorCode.INVALID_INPUT,
        )

    if len(user_id) > USER_ID_MAX_LENGTH:
        return Error(
            user_feedback=f"User names may be at most {USER_ID_MAX_LENGTH} characters.",
            error_code=ErrorCode.INVALID_INPUT,
        )

    return None


class ClanRegistry:
    """The single entrypoint for reading & mutating clans.

    Every mutation is run as validate -> authorize -> mutate -> persist
    while holding the clan's lock, so that operations on the same clan
    queue behind each other rather than interleaving their reads and
    writes. Operations on different clans never contend.

    Results are returned as either the updated `Clan`, or an `Error`
    describing why nothing was changed.
    """

    def __init__(
        self,
        store: ClanStore,
        channels: ChannelGateway,
        audit: AuditLog,
        starting_points: int = DEFAULT_STARTING_POINTS,
        disallowed_names: Collection[str] = (),
    ) -> None:
        self.store = store
        self.channels = channels
        self.audit = audit
        self.starting_points = starting_points
        self.disallowed_names = {make_safe_name(n) for n in disallowed_names}

        self.locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    # helpers

    async def _load(self, clan_id: str) -> Clan | Error:
        try:
            clan = await self.store.get(clan_id)
        except PersistenceError:
            return Error(
                user_feedback="Failed to read clan data.",
                error_code=ErrorCode.PERSISTENCE_FAILURE,
            )

        if clan is None:
            return Error(
                user_feedback=f'Clan "{clan_id}" not found.',
                error_code=ErrorCode.UNKNOWN_CLAN,
            )

        return clan

    async def _persist(self, clan: Clan) -> None | Error:
        if not await self.store.save(clan):
            return Error(
                user_feedback=f'Failed to save clan "{clan.name}".',
                error_code=ErrorCode.PERSISTENCE_FAILURE,
            )

        return None

    async def _notify(self, clan_id: str, msg: str) -> None:
        """Post a system message to a clan's channel (best effort)."""
        try:
            await self.channels.post_system_message(clan_id, msg)
        except Exception as exc:
            log(f"Failed to notify channel {clan_id!r}: {exc!r}", Ansi.LYELLOW)

    # read

    async def get_clan(self, clan_id: str) -> Clan | Error:
        return await self._load(make_safe_name(clan_id))

    async def list_clans(
        self,
        page: int | None = None,
        page_size: int | None = None,
    ) -> tuple[list[Clan], int] | Error:
        try:
            clans = await self.store.fetch_many(page=page, page_size=page_size)
            total = await self.store.fetch_count()
        except PersistenceError:
            return Error(
                user_feedback="Failed to read clan data.",
                error_code=ErrorCode.PERSISTENCE_FAILURE,
            )

        return clans, total

    async def restore_channels(self, page_size: int = 100) -> int:
        """Create a channel for every stored clan that lacks one.

        Channels are held in memory, so this runs once at startup.
        Returns how many channels were created.
        """
        restored = 0
        page = 1
        while True:
            clans = await self.store.fetch_many(page=page, page_size=page_size)
            for clan in clans:
                if self.channels.exists(clan.id):
                    continue

                metadata = make_clan_channel_metadata(clan)
                if await self.channels.create_channel(clan.id, metadata) is not None:
                    restored += 1

            if len(clans) < page_size:
                break

            page += 1

        return restored

    # create

    async def create_clan(self, actor: User, name: str, leader_id: str) -> Clan | Error:
        """Create a clan led by `leader_id`, along with its channel."""
        if error := authorize(actor, Capability.ELEVATED):
            return error

        name = name.strip()
        if not name:
            return Error(
                user_feedback="Clan names may not be empty.",
                error_code=ErrorCode.INVALID_NAME,
            )

        clan_id = make_safe_name(name)
        if not clan_id:
            return Error(
                user_feedback="Clan names must contain at least one letter or digit.",
                error_code=ErrorCode.INVALID_NAME,
            )

        if len(name) > CLAN_NAME_MAX_LENGTH or len(clan_id) > CLAN_ID_MAX_LENGTH:
            return Error(
                user_feedback=(
                    f"Clan names may be at most {CLAN_NAME_MAX_LENGTH} characters, "
                    f"{CLAN_ID_MAX_LENGTH} of them letters or digits."
                ),
                error_code=ErrorCode.INVALID_NAME,
            )

        if clan_id in self.disallowed_names:
            return Error(
                user_feedback="Disallowed clan name; pick another.",
                error_code=ErrorCode.INVALID_NAME,
            )

        leader_id = make_safe_name(leader_id)
        if error := validate_user_id(leader_id):
            return error

        async with self.locks[clan_id]:
            try:
                existing = await self.store.get(clan_id)
            except PersistenceError:
                return Error(
                    user_feedback="Failed to read clan data.",
                    error_code=ErrorCode.PERSISTENCE_FAILURE,
                )

            if existing is not None:
                return Error(
                    user_feedback=f'Clan "{existing.name}" already exists.',
                    error_code=ErrorCode.DUPLICATE_CLAN,
                )

            if self.channels.exists(clan_id):
                return Error(
                    user_feedback=f'Channel "{clan_id}" already exists.',
                    error_code=ErrorCode.DUPLICATE_CLAN,
                )

            created_at = unix_time()
            clan = Clan(
                id=clan_id,
                name=name,
                leader=leader_id,
                points=self.starting_points,
                created_at=created_at,
                members={
                    leader_id: ClanMember(
                        id=leader_id,
                        rank=ClanRank.LEADER,
                        joined_at=created_at,
                    ),
                },
            )

            if error := await self._persist(clan):
                return error

            # the clan & its channel must exist together;
            # if the channel can't be made, undo the clan.
            try:
                channel = await self.channels.create_channel(
                    clan_id,
                    make_clan_channel_metadata(clan),
                )
            except Exception as exc:
                log(f"Failed to create channel for {clan!r}: {exc!r}", Ansi.LRED)
                channel = None

            if channel is None:
                if not await self.store.delete(clan_id):
                    log(
                        f"Failed to roll back {clan!r} after channel creation "
                        "failed; the clan must be removed manually.",
                        Ansi.LRED,
                    )

                return Error(
                    user_feedback=f'Failed to create a channel for clan "{name}".',
                    error_code=ErrorCode.EXTERNAL_COLLABORATOR_FAILURE,
                )

        self.audit.record("CLANCREATE", actor, f"{clan.name} (leader: {leader_id})")
        await self._notify(
            clan.id,
            f"The clan {clan.name} has been created with {leader_id} as the leader.",
        )
        return clan

    # update

    async def adjust_points(
        self,
        actor: User,
        clan_id: str,
        amount: int,
        direction: PointsDirection,
    ) -> Clan | Error:
        """Give points to, or take points from a clan."""
        if error := authorize(actor, Capability.ELEVATED):
            return error

        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            return Error(
                user_feedback="Points must be a positive whole number.",
                error_code=ErrorCode.INVALID_AMOUNT,
            )

        if direction not in (PointsDirection.GIVE, PointsDirection.TAKE):
            return Error(
                user_feedback=f"Unknown points direction: {direction}.",
                error_code=ErrorCode.INVALID_INPUT,
            )

        clan_id = make_safe_name(clan_id)
        async with self.locks[clan_id]:
            clan = await self._load(clan_id)
            if isinstance(clan, Error):
                return clan

            if direction == PointsDirection.TAKE:
                if clan.points - amount < 0:
                    return Error(
                        user_feedback=(
                            f'Cannot deduct {amount} points from clan "{clan.name}" '
                            "as it would result in negative points."
                        ),
                        error_code=ErrorCode.INSUFFICIENT_POINTS,
                    )

                clan.points -= amount
            else:
                clan.points += amount

            if error := await self._persist(clan):
                return error

        if direction == PointsDirection.GIVE:
            self.audit.record("GIVEPOINTS", actor, f"{amount} points to {clan.name}")
            msg = f"{actor.name} has given {amount} points to the clan."
        else:
            self.audit.record("TAKEPOINTS", actor, f"{amount} points from {clan.name}")
            msg = f"{actor.name} has deducted {amount} points from the clan."

        await self._notify(clan.id, f"{msg} Total points: {clan.points}")
        return clan

    async def set_rank(
        self,
        actor: User,
        clan_id: str,
        user_id: str,
        rank: ClanRank | int,
    ) -> Clan | Error:
        """Set a member's rank; promoting to leader demotes the old leader."""
        parsed_rank = validate_rank(rank)
        if isinstance(parsed_rank, Error):
            return parsed_rank

        rank = parsed_rank

        clan_id = make_safe_name(clan_id)
        user_id = make_safe_name(user_id)
        async with self.locks[clan_id]:
            clan = await self._load(clan_id)
            if isinstance(clan, Error):
                return clan

            if error := authorize(actor, Capability.ELEVATED_OR_LEADER, clan):
                return error

            member = clan.get_member(user_id)
            if member is None:
                return Error(
                    user_feedback=f'{user_id} is not a member of clan "{clan.name}".',
                    error_code=ErrorCode.UNKNOWN_MEMBER,
                )

            if member.rank == rank:
                return clan

            if rank == ClanRank.LEADER:
                for previous_leader in clan.leaders:
                    previous_leader.rank = ClanRank.DEPUTY

                member.rank = ClanRank.LEADER
                clan.leader = member.id
            elif member.rank == ClanRank.LEADER:
                return Error(
                    user_feedback=(
                        "The clan leader can't be demoted; "
                        "promote a new leader instead."
                    ),
                    error_code=ErrorCode.INVALID_RANK,
                )
            else:
                member.rank = rank

            if error := await self._persist(clan):
                return error

        self.audit.record("SETCLANRANK", actor, f"{user_id} to {rank!s} in {clan.name}")
        await self._notify(clan.id, f"{actor.name} has set {user_id}'s rank to {rank!s}.")
        return clan

    async def _set_metadata(
        self,
        actor: User,
        clan_id: str,
        icon: str | None | _UnsetSentinel = UNSET,
        description: str | None | _UnsetSentinel = UNSET,
    ) -> Clan | Error:
        clan_id = make_safe_name(clan_id)
        async with self.locks[clan_id]:
            clan = await self._load(clan_id)
            if isinstance(clan, Error):
                return clan

            if error := authorize(actor, Capability.ELEVATED_OR_LEADER, clan):
                return error

            if not isinstance(icon, _UnsetSentinel):
                clan.icon = icon
            if not isinstance(description, _UnsetSentinel):
                clan.description = description

            if error := await self._persist(clan):
                return error

        return clan

    async def set_clan_icon(
        self,
        actor: User,
        clan_id: str,
        url: str | None,
    ) -> Clan | Error:
        """Set (or with `None`, clear) a clan's icon url."""
        url = url.strip() if url is not None else None
        if url is not None and len(url) > ICON_MAX_LENGTH:
            return Error(
                user_feedback=f"Icon urls may be at most {ICON_MAX_LENGTH} characters.",
                error_code=ErrorCode.INVALID_INPUT,
            )

        clan = await self._set_metadata(actor, clan_id, icon=url or None)
        if isinstance(clan, Error):
            return clan

        if clan.icon is not None:
            self.audit.record("SETCLANICON", actor, clan.name)
            await self._notify(clan.id, f"{actor.name} has set a new clan icon.")
        else:
            self.audit.record("REMOVECLANICON", actor, clan.name)
            await self._notify(clan.id, f"{actor.name} has removed the clan icon.")

        return clan

    async def set_clan_description(
        self,
        actor: User,
        clan_id: str,
        description: str | None,
    ) -> Clan | Error:
        """Set (or with `None`, clear) a clan's description."""
        description = description.strip() if description is not None else None
        if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
            return Error(
                user_feedback=(
                    f"Descriptions may be at most {DESCRIPTION_MAX_LENGTH} characters."
                ),
                error_code=ErrorCode.INVALID_INPUT,
            )

        clan = await self._set_metadata(actor, clan_id, description=description or None)
        if isinstance(clan, Error):
            return clan

        if clan.description is not None:
            self.audit.record("SETCLANDESC", actor, clan.name)
            await self._notify(clan.id, f"{actor.name} has set a new clan description.")
        else:
            self.audit.record("REMOVECLANDESC", actor, clan.name)
            await self._notify(clan.id, f"{actor.name} has removed the clan description.")

        return clan

    async def add_member(
        self,
        actor: User,
        clan_id: str,
        user_id: str,
        rank: ClanRank | int = ClanRank.RECRUIT,
    ) -> Clan | Error:
        """Admit a user into a clan at `rank` (below leader)."""
        parsed_rank = validate_rank(rank)
        if isinstance(parsed_rank, Error):
            return parsed_rank

        rank = parsed_rank

        if rank == ClanRank.LEADER:
            return Error(
                user_feedback="New members can't join as leader; promote them after.",
                error_code=ErrorCode.INVALID_RANK,
            )

        user_id = make_safe_name(user_id)
        if error := validate_user_id(user_id):
            return error

        clan_id = make_safe_name(clan_id)
        async with self.locks[clan_id]:
            clan = await self._load(clan_id)
            if isinstance(clan, Error):
                return clan

            if error := authorize(actor, Capability.ELEVATED_OR_LEADER, clan):
                return error

            if user_id in clan:
                return Error(
                    user_feedback=f'{user_id} is already a member of clan "{clan.name}".',
                    error_code=ErrorCode.INVALID_INPUT,
                )

            clan.members[user_id] = ClanMember(
                id=user_id,
                rank=rank,
                joined_at=unix_time(),
            )

            if error := await self._persist(clan):
                return error

        self.audit.record("CLANADDMEMBER", actor, f"{user_id} to {clan.name}")
        await self._notify(clan.id, f"{user_id} has joined the clan as a {rank!s}.")
        return clan

    # delete

    async def remove_member(
        self,
        actor: User,
        clan_id: str,
        user_id: str,
    ) -> Clan | Error:
        """Remove a (non-leader) member from a clan."""
        clan_id = make_safe_name(clan_id)
        user_id = make_safe_name(user_id)
        async with self.locks[clan_id]:
            clan = await self._load(clan_id)
            if isinstance(clan, Error):
                return clan

            if error := authorize(actor, Capability.ELEVATED_OR_LEADER, clan):
                return error

            member = clan.get_member(user_id)
            if member is None:
                return Error(
                    user_feedback=f'{user_id} is not a member of clan "{clan.name}".',
                    error_code=ErrorCode.UNKNOWN_MEMBER,
                )

            if member.rank == ClanRank.LEADER:
                return Error(
                    user_feedback=(
                        "The clan leader can't be removed; "
                        "promote a new leader first, or delete the clan."
                    ),
                    error_code=ErrorCode.INVALID_INPUT,
                )

            del clan.members[user_id]

            if error := await self._persist(clan):
                return error

        self.audit.record("CLANREMOVEMEMBER", actor, f"{user_id} from {clan.name}")
        await self._notify(clan.id, f"{user_id} has been removed from the clan.")
        return clan

    async def delete_clan(self, actor: User, clan_id: str) -> Clan | Error:
        """Delete a clan & tear down its channel."""
        if error := authorize(actor, Capability.ELEVATED):
            return error

        clan_id = make_safe_name(clan_id)
        async with self.locks[clan_id]:
            clan = await self._load(clan_id)
            if isinstance(clan, Error):
                return clan

            if not await self.store.delete(clan.id):
                return Error(
                    user_feedback=f'Failed to delete clan "{clan.name}".',
                    error_code=ErrorCode.PERSISTENCE_FAILURE,
                )

            # members should see why the channel is going away
            await self._notify(
                clan.id,
                f"The clan {clan.name} has been deleted by {actor.name}.",
            )

            try:
                await self.channels.destroy_channel(clan.id)
            except Exception as exc:
                log(f"Failed to destroy channel for {clan!r}: {exc!r}", Ansi.LRED)
                channel_destroyed = False
            else:
                channel_destroyed = True

        self.audit.record("CLANDELETE", actor, clan.name)

        if not channel_destroyed:
            return Error(
                user_feedback=(
                    f'Clan "{clan.name}" was deleted, '
                    "but its channel could not be removed."
                ),
                error_code=ErrorCode.EXTERNAL_COLLABORATOR_FAILURE,
            )

        return clan
