from __future__ import annotations

import pytest

import clanhub.commands
from clanhub.constants.privileges import ClanRank


@pytest.mark.parametrize(
    ("test_input", "expected"),
    [
        (
            # covers whitespace around values
            {"args": ["Foo", ",", "alice"], "count": 2},
            ["Foo", "alice"],
        ),
        (
            # names may contain spaces
            {"args": ["The", "Best,", "500"], "count": 2},
            ["The Best", "500"],
        ),
        (
            # the final value keeps any further commas
            {"args": ["Foo,a,", "b,", "c"], "count": 2},
            ["Foo", "a, b, c"],
        ),
        (
            # missing value
            {"args": ["Foo"], "count": 2},
            clanhub.commands.ParsingError("usage"),
        ),
        (
            # empty value
            {"args": ["Foo,", ""], "count": 2},
            clanhub.commands.ParsingError("usage"),
        ),
        (
            {"args": [], "count": 1},
            clanhub.commands.ParsingError("usage"),
        ),
    ],
)
def test_parse_comma_args(test_input, expected):
    result = clanhub.commands.parse_comma_args(**test_input, usage="usage")
    assert result == expected
    assert isinstance(result, clanhub.commands.ParsingError) == isinstance(
        expected,
        clanhub.commands.ParsingError,
    )


@pytest.mark.parametrize(
    ("test_input", "expected"),
    [
        ("5", ClanRank.LEADER),
        ("1", ClanRank.RECRUIT),
        ("deputy", ClanRank.DEPUTY),
        ("SENIOR", ClanRank.SENIOR),
        ("0", None),
        ("6", None),
        ("captain", None),
    ],
)
def test_parse_rank(test_input, expected):
    assert clanhub.commands.parse_rank(test_input) == expected


def test_command_triggers_are_unique():
    triggers = [t for cmd in clanhub.commands.commands for t in cmd.triggers]
    assert len(triggers) == len(set(triggers))
