"""Tests for the command resolver."""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from ircbot.commands.nodes import branch, leaf
from ircbot.commands.resolver import Outcome, resolve, split_head
from ircbot.commands.table import COMMAND_TABLE


async def _noop(args, principal, ctx):
    return args


TABLE = (
    leaf("ping", _noop, "Usage: .ping"),
    leaf("ghost", None, "placeholder"),
    leaf("ghost", _noop, "Usage: .ghost"),
    branch(
        "repo",
        (
            leaf("show", _noop, "Usage: .repo show <id>"),
            branch("label", (leaf("add", _noop, "Usage: .repo label add <name>"),), "Usage: .repo label <add>"),
        ),
        "Usage: .repo <show|label>",
    ),
)


# ---------------------------------------------------------------------------
# split_head
# ---------------------------------------------------------------------------


class TestSplitHead:
    def test_single_token(self):
        assert split_head("help") == ("help", 4)

    def test_skips_separator_run(self):
        assert split_head("say   hello world") == ("say", 6)

    def test_only_space_separates(self):
        # Arrange / Act
        head, offset = split_head("say\thello")

        # Assert
        assert head == "say\thello"
        assert offset == len("say\thello")

    def test_empty_input(self):
        assert split_head("") == ("", 0)


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------


class TestResolveLeaves:
    def test_leaf_with_args(self):
        # Act
        res = resolve(TABLE, "ping a  b ")

        # Assert
        assert res.outcome is Outcome.OK
        assert res.node.name == "ping"
        assert res.args == "a  b "
        assert res.parent is None

    def test_trailing_spaces_give_empty_args(self):
        res = resolve(TABLE, "ping    ")
        assert res.outcome is Outcome.OK
        assert res.args == ""

    def test_exact_match_only(self):
        assert resolve(TABLE, "pin").outcome is Outcome.UNKNOWN
        assert resolve(TABLE, "pingg").outcome is Outcome.UNKNOWN

    def test_case_sensitive(self):
        assert resolve(TABLE, "PING").outcome is Outcome.UNKNOWN

    def test_placeholder_leaf_is_skipped(self):
        # Arrange: the first "ghost" row has no handler
        res = resolve(TABLE, "ghost boo")

        # Assert: matching falls through to the real row
        assert res.outcome is Outcome.OK
        assert res.node.help == "Usage: .ghost"

    def test_empty_command_is_unknown(self):
        res = resolve(TABLE, "")
        assert res.outcome is Outcome.UNKNOWN
        assert res.node is None

    def test_unknown_root(self):
        res = resolve(TABLE, "nope x y")
        assert res.outcome is Outcome.UNKNOWN


class TestResolveBranches:
    def test_subcommand_found(self):
        # Act
        res = resolve(TABLE, "repo show 42")

        # Assert
        assert res.outcome is Outcome.OK
        assert res.node.name == "show"
        assert res.args == "42"
        assert res.parent.name == "repo"

    def test_deepest_parent_kept(self):
        res = resolve(TABLE, "repo label add bug")
        assert res.outcome is Outcome.OK
        assert res.node.name == "add"
        assert res.args == "bug"
        assert res.parent.name == "label"

    def test_branch_without_subcommand(self):
        # Act
        res = resolve(TABLE, "repo")

        # Assert
        assert res.outcome is Outcome.UNKNOWN_SUBCOMMAND
        assert res.node.name == "repo"
        assert res.args == ""

    def test_unknown_subcommand_restores_position(self):
        # Act
        res = resolve(TABLE, "repo frobnicate 1 2")

        # Assert: args restart right after the branch token
        assert res.outcome is Outcome.UNKNOWN_SUBCOMMAND
        assert res.node.name == "repo"
        assert res.args == "frobnicate 1 2"

    def test_nested_unknown_subcommand_propagates(self):
        res = resolve(TABLE, "repo label remove x")
        assert res.outcome is Outcome.UNKNOWN_SUBCOMMAND
        assert res.node.name == "label"
        assert res.args == "remove x"
        assert res.parent.name == "repo"

    def test_gitlab_without_args(self):
        res = resolve(COMMAND_TABLE, "gitlab")
        assert res.outcome is Outcome.UNKNOWN_SUBCOMMAND
        assert res.node.help == "Usage: .gitlab <issue>"

    def test_table_is_not_mutated(self):
        # Arrange
        before = repr(COMMAND_TABLE)

        # Act
        resolve(COMMAND_TABLE, "gitlab issue 3")
        resolve(COMMAND_TABLE, "gitlab nope")

        # Assert
        assert repr(COMMAND_TABLE) == before


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

_words = st.sampled_from(["ping", "repo", "show", "label", "add", "ghost", "x", "", "42"])
_lines = st.lists(_words, max_size=6).flatmap(
    lambda words: st.lists(st.integers(min_value=1, max_value=3), min_size=len(words), max_size=len(words)).map(
        lambda gaps: "".join(w + " " * g for w, g in zip(words, gaps))
    )
)


class TestResolverProperties:
    @given(st.one_of(_lines, st.text(max_size=40)))
    def test_deterministic(self, line):
        assert resolve(TABLE, line) == resolve(TABLE, line)

    @given(st.one_of(_lines, st.text(max_size=40)))
    def test_residual_is_suffix_after_consumed_prefix(self, line):
        # Act
        res = resolve(TABLE, line)

        # Assert
        if res.outcome is Outcome.OK:
            assert line[res.consumed :] == res.args
            prefix_tokens = [t for t in line[: res.consumed].split(" ") if t]
            assert prefix_tokens[-1] == res.node.name
            assert not res.args.startswith(" ")
