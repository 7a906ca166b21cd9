import pytest

from triviaboard.errors import GameError, FORBIDDEN, CONFLICT
from triviaboard.models import Category, Clue
from triviaboard.services.games import board, lifecycle, roster

from conftest import SAMPLE_CATEGORIES


def test_create_round_cascades_templates(lobby_game):
    rounds = board.list_rounds(lobby_game.id)
    assert len(rounds) == 1
    round_ = rounds[0]
    assert round_.type == 'JEOPARDY'
    assert round_.order == 1
    assert [c.title for c in round_.categories] == ['Science', 'History']
    assert [c.order for c in round_.categories] == [1, 2]
    # clues come back sorted by value
    assert [clue.value for clue in round_.categories[0].clues] == [200, 400]
    daily = round_.categories[1].clues[0]
    assert daily.is_daily_double is True
    assert daily.media_url is None


def test_create_round_default_and_explicit_order(lobby_game, users):
    second = board.create_round(users.host, lobby_game.id, SAMPLE_CATEGORIES, type='DOUBLE_JEOPARDY')
    assert second.order == 2
    custom = board.create_round(users.host, lobby_game.id, SAMPLE_CATEGORIES, order=7)
    assert custom.order == 7
    assert [r.order for r in board.list_rounds(lobby_game.id)] == [1, 2, 7]


def test_create_round_validation(lobby_game, users):
    with pytest.raises(GameError, match='At least one category'):
        board.create_round(users.host, lobby_game.id, [])
    with pytest.raises(GameError, match='Unknown round type'):
        board.create_round(users.host, lobby_game.id, SAMPLE_CATEGORIES, type='LIGHTNING')
    with pytest.raises(GameError, match='Only the host') as exc:
        board.create_round(users.other_host, lobby_game.id, SAMPLE_CATEGORIES)
    assert exc.value.kind == FORBIDDEN


def test_create_round_is_all_or_nothing(lobby_game, users):
    categories = [
        {'title': 'Fine', 'clues': [{'question': 'q', 'answer': 'a', 'value': 100}]},
        {'title': 'Broken', 'clues': [{'question': 'q', 'value': 100}]},
    ]
    before = (Category.query.count(), Clue.query.count())
    with pytest.raises(GameError, match='missing answer'):
        board.create_round(users.host, lobby_game.id, categories)
    assert (Category.query.count(), Clue.query.count()) == before
    assert len(board.list_rounds(lobby_game.id)) == 1


def test_rounds_locked_after_start(lobby_game, users):
    roster.create_team(lobby_game.id, 'Team A', users.alice)
    lifecycle.start_game(lobby_game.id, users.host)

    with pytest.raises(GameError, match='lobby') as exc:
        board.create_round(users.host, lobby_game.id, SAMPLE_CATEGORIES)
    assert exc.value.kind == CONFLICT
    with pytest.raises(GameError, match='once the game has started'):
        board.delete_round(lobby_game.round_id, users.host)
    with pytest.raises(GameError, match='once the game has started'):
        board.update_round_order(lobby_game.round_id, 3, users.host)


def test_delete_round_resequences(lobby_game, users):
    second = board.create_round(users.host, lobby_game.id, SAMPLE_CATEGORIES).id
    third = board.create_round(users.host, lobby_game.id, SAMPLE_CATEGORIES).id

    board.delete_round(lobby_game.round_id, users.host)

    remaining = board.list_rounds(lobby_game.id)
    assert [(r.id, r.order) for r in remaining] == [(second, 1), (third, 2)]


def test_delete_round_host_only(lobby_game, users):
    with pytest.raises(GameError, match='Only the host'):
        board.delete_round(lobby_game.round_id, users.alice)


def test_update_round_order_sets_value_directly(lobby_game, users):
    board.create_round(users.host, lobby_game.id, SAMPLE_CATEGORIES)
    moved = board.update_round_order(lobby_game.round_id, 2, users.host)
    assert moved.order == 2
    # no collision handling: both rounds now claim position 2
    assert [r.order for r in board.list_rounds(lobby_game.id)] == [2, 2]
