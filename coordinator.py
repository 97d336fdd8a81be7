import logging
import threading
from enum import Enum

import protocol
from board import Board, SYMBOLS

class MoveResult(Enum):
    APPLIED = "applied"
    REJECTED = "rejected"

class GameCoordinator:
    # Owns the shared board and decides whose move is applied. Board, current player and both
    # sessions are guarded by one lock, shared by the opponent-connected and turn-changed conditions.
    def __init__(self, board=None):
        self.board = board if board is not None else Board()
        self.players = [None, None]
        self.current_player = 0
        self.abandoned = False
        self.lock = threading.Lock()
        self.other_player_connected = threading.Condition(self.lock)
        self.other_player_turn = threading.Condition(self.lock)

    @property
    def turn(self):
        # Symbol of the side allowed to move, derived from the index
        return SYMBOLS[self.current_player]

    def add_player(self, session):
        self.lock.acquire()
        try:
            self.players[session.number] = session
        finally:
            self.lock.release()

    def register_second_player(self):
        # Player X can play now
        self.lock.acquire()
        try:
            self.players[0].suspended = False
            self.other_player_connected.notify_all()
        finally:
            self.lock.release()

    def wait_for_opponent(self, number):
        # Blocks player X until player O is registered. False if the game was abandoned meanwhile.
        self.lock.acquire()
        try:
            while self.players[number].suspended and not self.abandoned:
                self.other_player_connected.wait()
            return not self.abandoned
        finally:
            self.lock.release()

    def attempt_move(self, location, number):
        self.lock.acquire()
        try:
            # Any wake up may be meant for the other player, so ownership is checked again every time
            while number != self.current_player and not self._finished():
                self.other_player_turn.wait()

            if self._finished():
                return MoveResult.REJECTED
            if not self.board.is_valid_location(location) or self.board.is_occupied(location):
                return MoveResult.REJECTED

            self.board.place(location, SYMBOLS[number])
            self.current_player = 1 - number
            logging.info(f"{SYMBOLS[number]} took cell {location}, {self.turn} to move")

            winner = self.board.has_winner()
            full = self.board.is_full()
            self.players[number].move_accepted(protocol.VICTORY if winner else protocol.DRAW if full else None)
            self.players[self.current_player].opponent_moved(location, protocol.DEFEAT if winner else protocol.DRAW if full else None)
            if winner or full:
                # Ends the loser's read once its last lines are written
                self.players[self.current_player].close()

            self.other_player_turn.notify_all()
            return MoveResult.APPLIED
        finally:
            self.lock.release()

    def is_game_over(self):
        self.lock.acquire()
        try:
            return self.board.is_terminal()
        finally:
            self.lock.release()

    def is_finished(self):
        # Game over or a player left
        self.lock.acquire()
        try:
            return self._finished()
        finally:
            self.lock.release()

    def player_left(self, number):
        # A player left before the end of the game, release whoever is still waiting
        self.lock.acquire()
        try:
            if self.board.is_terminal() or self.abandoned:
                return
            logging.info(f"Player {SYMBOLS[number]} left before the game was over")
            self.abandoned = True
            self.other_player_connected.notify_all()
            self.other_player_turn.notify_all()
            # Also ends a read the other player is blocked in, messages already queued still go out
            other = self.players[1 - number]
            if other is not None:
                other.close()
        finally:
            self.lock.release()

    def snapshot(self):
        # Copy of the game state for the status page
        self.lock.acquire()
        try:
            return {
                'board': self.board.snapshot(),
                'board_display': self.board.render(),
                'turn': self.turn,
                'game_over': self.board.is_terminal(),
                'winner': self.board.winner(),
                'abandoned': self.abandoned,
                'players': [player is not None for player in self.players],
            }
        finally:
            self.lock.release()

    def _finished(self):
        return self.abandoned or self.board.is_terminal()
