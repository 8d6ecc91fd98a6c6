from __future__ import annotations

from enum import StrEnum
from functools import cache

from clanhub.constants.privileges import Privileges
from clanhub.errors import Error
from clanhub.errors import ErrorCode
from clanhub.objects.clan import Clan
from clanhub.objects.user import User


class Capability(StrEnum):
    ELEVATED = "elevated"
    ELEVATED_OR_LEADER = "elevated_or_leader"


@cache
def has_elevated_privilege(server_privileges: Privileges | int) -> bool:
    return server_privileges & Privileges.ADMINISTRATOR != 0


def authorize(
    actor: User,
    capability: Capability,
    clan: Clan | None = None,
) -> None | Error:
    """Check whether `actor` holds `capability`, optionally over `clan`."""
    if has_elevated_privilege(actor.priv):
        return None

    if capability is Capability.ELEVATED:
        return Error(
            user_feedback="You don't have permission to do that.",
            error_code=ErrorCode.UNAUTHORIZED,
        )

    # leaders are checked against our own member data,
    # not whatever the command layer believes.
    if clan is not None and clan.is_leader(actor.id):
        return None

    return Error(
        user_feedback="You must be the clan leader to do that.",
        error_code=ErrorCode.UNAUTHORIZED,
    )
