import threading
import time

import pytest

import protocol
from coordinator import GameCoordinator, MoveResult

class FakeSession:
    def __init__(self, number):
        self.number = number
        self.suspended = number == 0
        self.messages = []
        self.closed = False

    def move_accepted(self, outcome):
        self.messages.append(('accepted', outcome))

    def opponent_moved(self, location, outcome):
        self.messages.append(('opponent', location, outcome))

    def close(self):
        self.closed = True

@pytest.fixture
def game():
    coordinator = GameCoordinator()
    players = [FakeSession(0), FakeSession(1)]
    for player in players:
        coordinator.add_player(player)
    coordinator.register_second_player()
    return coordinator, players

def run_in_thread(target, *args):
    result = {}
    def run():
        result['value'] = target(*args)
    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return thread, result

def test_register_second_player_releases_x():
    coordinator = GameCoordinator()
    x, o = FakeSession(0), FakeSession(1)
    coordinator.add_player(x)
    coordinator.add_player(o)
    thread, result = run_in_thread(coordinator.wait_for_opponent, 0)
    time.sleep(0.1)
    assert thread.is_alive()
    coordinator.register_second_player()
    thread.join(2)
    assert not thread.is_alive()
    assert result['value'] is True
    assert x.suspended is False

def test_moves_alternate(game):
    coordinator, (x, o) = game
    assert coordinator.attempt_move(0, 0) is MoveResult.APPLIED
    assert coordinator.current_player == 1
    assert coordinator.turn == 'O'
    assert coordinator.attempt_move(3, 1) is MoveResult.APPLIED
    assert coordinator.current_player == 0
    assert coordinator.board.cells[0] == 'X'
    assert coordinator.board.cells[3] == 'O'

def test_applied_move_notifies_both_players(game):
    coordinator, (x, o) = game
    coordinator.attempt_move(4, 0)
    assert x.messages == [('accepted', None)]
    assert o.messages == [('opponent', 4, None)]

def test_occupied_cell_is_rejected_without_changes(game):
    coordinator, (x, o) = game
    coordinator.attempt_move(0, 0)
    coordinator.attempt_move(3, 1)
    before = coordinator.board.snapshot()
    assert coordinator.attempt_move(3, 0) is MoveResult.REJECTED
    assert coordinator.board.snapshot() == before
    assert coordinator.current_player == 0
    # X keeps the turn and may try again
    assert coordinator.attempt_move(1, 0) is MoveResult.APPLIED

@pytest.mark.parametrize("location", [-1, 9, 100])
def test_out_of_range_cell_is_rejected(game, location):
    coordinator, _ = game
    assert coordinator.attempt_move(location, 0) is MoveResult.REJECTED
    assert coordinator.current_player == 0

def test_out_of_turn_move_waits_for_opponent(game):
    coordinator, (x, o) = game
    thread, result = run_in_thread(coordinator.attempt_move, 4, 1)
    time.sleep(0.1)
    assert thread.is_alive()
    assert coordinator.board.cells[4] == ' '
    assert coordinator.attempt_move(0, 0) is MoveResult.APPLIED
    thread.join(2)
    assert result['value'] is MoveResult.APPLIED
    assert coordinator.board.cells[4] == 'O'
    assert coordinator.current_player == 0

def test_victory_and_defeat_are_reported(game):
    coordinator, (x, o) = game
    for location, number in [(0, 0), (3, 1), (1, 0), (4, 1), (2, 0)]:
        assert coordinator.attempt_move(location, number) is MoveResult.APPLIED
    assert coordinator.is_game_over()
    assert coordinator.board.winner() == 'X'
    assert x.messages[-1] == ('accepted', protocol.VICTORY)
    assert o.messages[-1] == ('opponent', 2, protocol.DEFEAT)

def test_draw_is_reported_to_both(game):
    coordinator, (x, o) = game
    moves = [(0, 0), (1, 1), (2, 0), (4, 1), (7, 0), (6, 1), (3, 0), (5, 1), (8, 0)]
    for location, number in moves:
        assert coordinator.attempt_move(location, number) is MoveResult.APPLIED
    assert coordinator.board.is_full()
    assert not coordinator.board.has_winner()
    assert x.messages[-1] == ('accepted', protocol.DRAW)
    assert o.messages[-1] == ('opponent', 8, protocol.DRAW)

def test_waiting_move_is_rejected_once_game_is_over(game):
    coordinator, (x, o) = game
    for location, number in [(0, 0), (3, 1), (1, 0), (4, 1)]:
        coordinator.attempt_move(location, number)
    # O waits for its turn while X plays the winning move
    thread, result = run_in_thread(coordinator.attempt_move, 6, 1)
    assert coordinator.attempt_move(2, 0) is MoveResult.APPLIED
    thread.join(2)
    assert result['value'] is MoveResult.REJECTED
    assert coordinator.board.cells[6] == ' '

def test_move_after_game_over_is_rejected(game):
    coordinator, _ = game
    for location, number in [(0, 0), (3, 1), (1, 0), (4, 1), (2, 0)]:
        coordinator.attempt_move(location, number)
    assert coordinator.attempt_move(5, 1) is MoveResult.REJECTED
    assert coordinator.board.cells[5] == ' '

def test_alternation_under_concurrent_players(game):
    coordinator, _ = game
    applied = []
    lock = threading.Lock()

    def play(number, cells):
        for cell in cells:
            if coordinator.attempt_move(cell, number) is MoveResult.APPLIED:
                with lock:
                    applied.append(number)

    threads = [
        threading.Thread(target=play, args=(0, [0, 2, 7, 3, 8]), daemon=True),
        threading.Thread(target=play, args=(1, [1, 4, 6, 5]), daemon=True),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(5)
    assert applied == [0, 1, 0, 1, 0, 1, 0, 1, 0]
    assert coordinator.is_game_over()

def test_player_left_releases_waiting_player(game):
    coordinator, (x, o) = game
    thread, result = run_in_thread(coordinator.attempt_move, 4, 1)
    time.sleep(0.1)
    coordinator.player_left(0)
    thread.join(2)
    assert result['value'] is MoveResult.REJECTED
    assert coordinator.is_finished()
    assert o.closed

def test_player_left_releases_x_waiting_for_opponent():
    coordinator = GameCoordinator()
    x = FakeSession(0)
    coordinator.add_player(x)
    thread, result = run_in_thread(coordinator.wait_for_opponent, 0)
    time.sleep(0.1)
    coordinator.player_left(1)
    thread.join(2)
    assert result['value'] is False

def test_player_left_after_game_over_changes_nothing(game):
    coordinator, (x, o) = game
    for location, number in [(0, 0), (3, 1), (1, 0), (4, 1), (2, 0)]:
        coordinator.attempt_move(location, number)
    coordinator.player_left(1)
    assert not coordinator.abandoned
    assert not x.closed

def test_winning_move_closes_loser_only(game):
    coordinator, (x, o) = game
    for location, number in [(0, 0), (3, 1), (1, 0), (4, 1)]:
        coordinator.attempt_move(location, number)
    assert not o.closed
    coordinator.attempt_move(2, 0)
    assert o.closed
    assert not x.closed
    # The defeat notice was queued before the close
    assert o.messages[-1] == ('opponent', 2, protocol.DEFEAT)

def test_drawing_move_closes_other_player(game):
    coordinator, (x, o) = game
    moves = [(0, 0), (1, 1), (2, 0), (4, 1), (7, 0), (6, 1), (3, 0), (5, 1)]
    for location, number in moves:
        coordinator.attempt_move(location, number)
    assert not o.closed
    coordinator.attempt_move(8, 0)
    assert o.closed

def test_snapshot(game):
    coordinator, _ = game
    coordinator.attempt_move(4, 0)
    state = coordinator.snapshot()
    assert state['board'][4] == 'X'
    assert state['turn'] == 'O'
    assert state['game_over'] is False
    assert state['winner'] is None
    assert state['players'] == [True, True]
