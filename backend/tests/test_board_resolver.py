"""Tests for app ID -> board resolution."""

import pytest

from lifecycle_relay.schemas.board import DEFAULT_BOARD_MAP, BoardTarget
from lifecycle_relay.services.board_resolver import BoardResolver


class TestBoardResolver:
    """Tests for BoardResolver.resolve."""

    def test_resolves_mapped_app(self):
        resolver = BoardResolver(DEFAULT_BOARD_MAP)

        assert resolver.resolve("10142077") == BoardTarget(board_id="7517528529")

    def test_numeric_app_id(self):
        resolver = BoardResolver(DEFAULT_BOARD_MAP)

        assert resolver.resolve(10142077) == BoardTarget(board_id="7517528529")

    def test_group_id_carried(self):
        resolver = BoardResolver({"42": BoardTarget("1001", "new_group")})

        target = resolver.resolve("42")

        assert target is not None
        assert target.group_id == "new_group"

    def test_unmapped_app_returns_none(self):
        resolver = BoardResolver(DEFAULT_BOARD_MAP)

        assert resolver.resolve("99999") is None

    def test_missing_app_id_returns_none(self):
        resolver = BoardResolver(DEFAULT_BOARD_MAP, default_board_id="1")

        assert resolver.resolve(None) is None

    def test_default_board_used_when_opted_in(self):
        resolver = BoardResolver({}, default_board_id="5550001")

        assert resolver.resolve("99999") == BoardTarget(board_id="5550001")

    def test_mapping_wins_over_default(self):
        resolver = BoardResolver(DEFAULT_BOARD_MAP, default_board_id="5550001")

        assert resolver.resolve("10142077") == BoardTarget(board_id="7517528529")


class TestBoardTarget:
    """Tests for BoardTarget.from_config."""

    def test_from_scalar(self):
        assert BoardTarget.from_config(7517528529) == BoardTarget("7517528529")

    def test_from_dict(self):
        assert BoardTarget.from_config(
            {"board_id": 1, "group_id": "topics"}
        ) == BoardTarget("1", "topics")

    def test_from_dict_without_group(self):
        assert BoardTarget.from_config({"board_id": "1"}) == BoardTarget("1")

    def test_rejects_missing_board_id(self):
        with pytest.raises(ValueError, match="board_id"):
            BoardTarget.from_config({"group_id": "topics"})

        with pytest.raises(ValueError, match="board_id"):
            BoardTarget.from_config("")
