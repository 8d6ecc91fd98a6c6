from __future__ import annotations

import traceback
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from time import perf_counter_ns as clock_ns
from typing import NamedTuple
from typing import TypedDict

import clanhub.logging
import clanhub.settings
from clanhub.constants.privileges import CLAN_RANK_NAMES
from clanhub.constants.privileges import ClanRank
from clanhub.constants.privileges import Privileges
from clanhub.errors import Error
from clanhub.logging import Ansi
from clanhub.logging import log
from clanhub.objects.collections import Users
from clanhub.objects.user import User
from clanhub.usecases.clans import ClanRegistry
from clanhub.usecases.clans import PointsDirection

CLANS_PER_PAGE = 25


@dataclass
class Context:
    player: User
    trigger: str
    args: Sequence[str]

    registry: ClanRegistry
    users: Users


Callback = Callable[[Context], Awaitable[str | None]]


class Command(NamedTuple):
    triggers: list[str]
    callback: Callback
    priv: Privileges
    hidden: bool
    doc: str | None


commands: list[Command] = []


def command(
    priv: Privileges,
    aliases: list[str] = [],
    hidden: bool = False,
) -> Callable[[Callback], Callback]:
    def wrapper(f: Callback) -> Callback:
        commands.append(
            Command(
                callback=f,
                priv=priv,
                hidden=hidden,
                triggers=[f.__name__.strip("_")] + aliases,
                doc=f.__doc__,
            ),
        )

        return f

    return wrapper


class ParsingError(str): ...


def parse_comma_args(
    args: Sequence[str],
    count: int,
    usage: str,
) -> list[str] | ParsingError:
    """Split `args` into exactly `count` non-empty, comma-delimited values.

    The final value keeps any further commas, so free text
    (descriptions, urls) may be passed as the last argument.
    """
    values = [v.strip() for v in " ".join(args).split(",", maxsplit=count - 1)]

    if len(values) != count or not all(values):
        return ParsingError(usage)

    return values


def parse_rank(value: str) -> ClanRank | None:
    """Parse a clan rank from either its number or its name."""
    if value.isdecimal():
        try:
            return ClanRank(int(value))
        except ValueError:
            return None

    for rank, name in CLAN_RANK_NAMES.items():
        if name.lower() == value.lower():
            return rank

    return None


""" User commands
# The commands below are available to any unrestricted user;
# clan-scoped permissions are checked by the clan registry.
"""


@command(Privileges.UNRESTRICTED, aliases=["", "h"], hidden=True)
async def _help(ctx: Context) -> str | None:
    """Show all documented commands the player can access."""
    lines = ["Clan commands", "-----------"]

    for cmd in commands:
        if not cmd.doc or ctx.player.priv & cmd.priv != cmd.priv:
            # no doc, or insufficient permissions.
            continue

        lines.append(f"{cmd.triggers[0]}: {cmd.doc}")

    return "\n".join(lines)


@command(Privileges.UNRESTRICTED, aliases=["ci"])
async def claninfo(ctx: Context) -> str | None:
    """Lookup information of a clan by name."""
    if not ctx.args:
        return "Invalid syntax: !claninfo [clan name]"

    clan = await ctx.registry.get_clan(" ".join(ctx.args))
    if isinstance(clan, Error):
        return clan.user_feedback

    lines = [
        f"{clan.name} | Founded {datetime.fromtimestamp(clan.created_at):%b %d, %Y} "
        f"| Points: {clan.points}",
    ]

    if clan.description is not None:
        lines.append(clan.description)

    if clan.icon is not None:
        lines.append(f"Icon: {clan.icon}")

    for member in clan.members_by_rank():
        lines.append(f"[{member.rank!s}] {member.id}")

    return "\n".join(lines)


@command(Privileges.UNRESTRICTED, aliases=["clanlist"])
async def clans(ctx: Context) -> str | None:
    """List all existing clans' information."""
    if ctx.args:
        if len(ctx.args) != 1 or not ctx.args[0].isdecimal() or ctx.args[0] == "0":
            return "Invalid syntax: !clans (page)"

        page = int(ctx.args[0])
    else:
        page = 1

    result = await ctx.registry.list_clans(page=page, page_size=CLANS_PER_PAGE)
    if isinstance(result, Error):
        return result.user_feedback

    clan_list, total_clans = result
    if not clan_list:
        return "No clans found."

    lines = [f"Clan listing ({total_clans} total)."]

    offset = (page - 1) * CLANS_PER_PAGE
    for idx, clan in enumerate(clan_list, offset):
        lines.append(f"{idx + 1}. {clan.name} ({clan.points} points)")

    return "\n".join(lines)


""" Clan leader commands
# The commands below may be used by clan leaders on their
# own clan, and by administrators on any clan.
"""


@command(Privileges.UNRESTRICTED)
async def setclanicon(ctx: Context) -> str | None:
    """Set a clan's icon. Requires: Clan Leader or Administrator."""
    parsed = parse_comma_args(
        ctx.args,
        count=2,
        usage="Invalid syntax: !setclanicon [clan name],[icon url]",
    )
    if isinstance(parsed, ParsingError):
        return parsed

    clan_name, icon_url = parsed

    clan = await ctx.registry.set_clan_icon(ctx.player, clan_name, icon_url)
    if isinstance(clan, Error):
        return clan.user_feedback

    return f'Successfully set icon for clan "{clan.name}".'


@command(Privileges.UNRESTRICTED)
async def removeclanicon(ctx: Context) -> str | None:
    """Remove a clan's icon. Requires: Clan Leader or Administrator."""
    if not ctx.args:
        return "Invalid syntax: !removeclanicon [clan name]"

    clan = await ctx.registry.set_clan_icon(ctx.player, " ".join(ctx.args), None)
    if isinstance(clan, Error):
        return clan.user_feedback

    return f'Successfully removed icon from clan "{clan.name}".'


@command(Privileges.UNRESTRICTED)
async def setclandesc(ctx: Context) -> str | None:
    """Set a clan's description. Requires: Clan Leader or Administrator."""
    parsed = parse_comma_args(
        ctx.args,
        count=2,
        usage="Invalid syntax: !setclandesc [clan name],[description]",
    )
    if isinstance(parsed, ParsingError):
        return parsed

    clan_name, description = parsed

    clan = await ctx.registry.set_clan_description(ctx.player, clan_name, description)
    if isinstance(clan, Error):
        return clan.user_feedback

    return f'Successfully set description for clan "{clan.name}".'


@command(Privileges.UNRESTRICTED)
async def removeclandesc(ctx: Context) -> str | None:
    """Remove a clan's description. Requires: Clan Leader or Administrator."""
    if not ctx.args:
        return "Invalid syntax: !removeclandesc [clan name]"

    clan = await ctx.registry.set_clan_description(
        ctx.player,
        " ".join(ctx.args),
        None,
    )
    if isinstance(clan, Error):
        return clan.user_feedback

    return f'Successfully removed description from clan "{clan.name}".'


@command(Privileges.UNRESTRICTED)
async def clanrank(ctx: Context) -> str | None:
    """Set a member's clan rank. Requires: Clan Leader or Administrator."""
    parsed = parse_comma_args(
        ctx.args,
        count=3,
        usage="Invalid syntax: !clanrank [clan name],[username],[rank]",
    )
    if isinstance(parsed, ParsingError):
        return parsed

    clan_name, username, rank_str = parsed

    rank = parse_rank(rank_str)
    if rank is None:
        valid_ranks = ", ".join(CLAN_RANK_NAMES.values())
        return f"Invalid rank. Valid ranks: {valid_ranks}."

    clan = await ctx.registry.set_rank(ctx.player, clan_name, username, rank)
    if isinstance(clan, Error):
        return clan.user_feedback

    return f'{username}\'s rank in clan "{clan.name}" is now {rank!s}.'


@command(Privileges.UNRESTRICTED)
async def clanadd(ctx: Context) -> str | None:
    """Add a user to a clan as a recruit. Requires: Clan Leader or Administrator."""
    parsed = parse_comma_args(
        ctx.args,
        count=2,
        usage="Invalid syntax: !clanadd [clan name],[username]",
    )
    if isinstance(parsed, ParsingError):
        return parsed

    clan_name, username = parsed

    target = ctx.users.get(username)
    if target is None:
        return f"User '{username}' not found."

    clan = await ctx.registry.add_member(ctx.player, clan_name, target.id)
    if isinstance(clan, Error):
        return clan.user_feedback

    return f'Added {target.name} to clan "{clan.name}".'


@command(Privileges.UNRESTRICTED)
async def clankick(ctx: Context) -> str | None:
    """Remove a member from a clan. Requires: Clan Leader or Administrator."""
    parsed = parse_comma_args(
        ctx.args,
        count=2,
        usage="Invalid syntax: !clankick [clan name],[username]",
    )
    if isinstance(parsed, ParsingError):
        return parsed

    clan_name, username = parsed

    clan = await ctx.registry.remove_member(ctx.player, clan_name, username)
    if isinstance(clan, Error):
        return clan.user_feedback

    return f'Removed {username} from clan "{clan.name}".'


""" Administrator commands
# The commands below are for managing clans across the
# whole server, and are only granted to administrators.
"""


@command(Privileges.ADMINISTRATOR, hidden=True)
async def createclan(ctx: Context) -> str | None:
    """Create a new clan with a given leader."""
    parsed = parse_comma_args(
        ctx.args,
        count=2,
        usage="Invalid syntax: !createclan [clan name],[leader username]",
    )
    if isinstance(parsed, ParsingError):
        return parsed

    clan_name, leader_name = parsed

    target = ctx.users.get_online(leader_name)
    if target is None:
        return f"User '{leader_name}' not found or not online."

    clan = await ctx.registry.create_clan(ctx.player, clan_name, target.id)
    if isinstance(clan, Error):
        return clan.user_feedback

    return (
        f'Clan "{clan.name}" has been created with {target.name} as the leader. '
        f'The clan channel "{clan.id}" has been created.'
    )


@command(Privileges.ADMINISTRATOR, hidden=True)
async def deleteclan(ctx: Context) -> str | None:
    """Delete a clan and its channel."""
    if not ctx.args:
        return "Invalid syntax: !deleteclan [clan name]"

    clan = await ctx.registry.delete_clan(ctx.player, " ".join(ctx.args))
    if isinstance(clan, Error):
        return clan.user_feedback

    return f"Successfully deleted clan {clan.name} and its channel."


async def _adjust_points(ctx: Context, direction: PointsDirection) -> str | None:
    parsed = parse_comma_args(
        ctx.args,
        count=2,
        usage=(
            f"Invalid syntax: !{ctx.trigger} [clan name],[points]. "
            "Points must be a positive number."
        ),
    )
    if isinstance(parsed, ParsingError):
        return parsed

    clan_name, points_str = parsed
    if not points_str.isdecimal():
        return "Points must be a positive whole number."

    points = int(points_str)

    clan = await ctx.registry.adjust_points(ctx.player, clan_name, points, direction)
    if isinstance(clan, Error):
        return clan.user_feedback

    if direction == PointsDirection.GIVE:
        return (
            f'Successfully gave {points} points to clan "{clan.name}". '
            f"Total points: {clan.points}"
        )
    else:
        return (
            f'Successfully deducted {points} points from clan "{clan.name}". '
            f"Total points: {clan.points}"
        )


@command(Privileges.ADMINISTRATOR, hidden=True)
async def givepoints(ctx: Context) -> str | None:
    """Give points to a clan."""
    return await _adjust_points(ctx, PointsDirection.GIVE)


@command(Privileges.ADMINISTRATOR, hidden=True)
async def takepoints(ctx: Context) -> str | None:
    """Deduct points from a clan."""
    return await _adjust_points(ctx, PointsDirection.TAKE)


class CommandResponse(TypedDict):
    resp: str | None
    hidden: bool


async def process_commands(
    player: User,
    msg: str,
    registry: ClanRegistry,
    users: Users,
    prefix: str = clanhub.settings.COMMAND_PREFIX,
) -> CommandResponse | None:
    # response is either a CommandResponse if we hit a command,
    # or simply None if we don't have any command hits.
    if not msg.startswith(prefix):
        return None

    start_time = clock_ns()

    trigger, *args = msg[len(prefix) :].strip().split(" ")

    # case-insensitive triggers
    trigger = trigger.lower()

    for cmd in commands:
        if trigger in cmd.triggers and player.priv & cmd.priv == cmd.priv:
            # found matching trigger with sufficient privs
            try:
                res = await cmd.callback(
                    Context(
                        player=player,
                        trigger=trigger,
                        args=args,
                        registry=registry,
                        users=users,
                    ),
                )
            except Exception:
                # log exception info to the console,
                # but do not break the player's session.
                log(
                    f"Exception running {prefix}{trigger} for {player}:\n"
                    f"{traceback.format_exc()}",
                    Ansi.LRED,
                )

                res = "An exception occurred when running the command."

            if res is not None:
                # we have a message to return, include elapsed time
                elapsed = clanhub.logging.magnitude_fmt_time(clock_ns() - start_time)
                return {"resp": f"{res} | Elapsed: {elapsed}", "hidden": cmd.hidden}
            else:
                # no message to return
                return {"resp": None, "hidden": False}

    return None
