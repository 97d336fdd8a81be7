import logging
import queue
import socket
import threading

import protocol
from board import SYMBOLS
from coordinator import MoveResult

OUTBOX_LIMIT = 64 # Replies a player may have waiting before its own thread stops reading

class PlayerSession:
    # One connected player, served by its own thread. Writes go through an outbox drained by a writer thread.
    def __init__(self, connection, number, coordinator, status):
        self.connection = connection
        self.number = number
        self.symbol = SYMBOLS[number]
        self.coordinator = coordinator
        self.status = status
        # Player X waits until player O is registered
        self.suspended = number == 0
        self.reader = protocol.TokenReader(connection)
        # Items are (data, counted), None ends the writer
        self.outbox = queue.Queue()
        self.backlog = threading.Semaphore(OUTBOX_LIMIT)
        self.writer = threading.Thread(target=self.write_messages, name=f"writer-{self.symbol}", daemon=True)
        self.state_lock = threading.Lock()
        self.closed = False
        self.broken = False

    def run(self):
        # Main function that handles client connection
        self.writer.start()
        try:
            self.status.log(f"Player {self.symbol} connected")
            self.send(protocol.side_assignment(self.symbol))

            if self.number == 0:
                self.send(protocol.waiting_for_opponent(self.symbol))
                if not self.coordinator.wait_for_opponent(self.number):
                    return
                self.send(protocol.opponent_connected())
            else:
                self.send(protocol.please_wait(self.symbol))

            self.play_game()
        except OSError as e:
            if self.is_closed():
                logging.debug(f"Read of player {self.symbol} ended by close: {e}")
            else:
                logging.error(f"{e} error occurred. Connection with player {self.symbol} lost.")
        finally:
            self.coordinator.player_left(self.number)
            self.close()
            self.status.log(f"Player {self.symbol} disconnected")

    def play_game(self):
        while not self.coordinator.is_finished():
            token = self.reader.next_token()
            if token is None:
                if not self.coordinator.is_finished():
                    self.status.log(f"Player {self.symbol} closed the connection")
                break

            location = protocol.decode_move(token)
            if location is None:
                # Nothing is played for a token that is not a cell number
                self.status.log(f"Player {self.symbol} sent {token[:protocol.MAX_TOKEN_LENGTH]!r}, not a move")
                self.send(protocol.move_rejected())
                continue

            self.status.log(f"Player {self.symbol} wants cell {location}")
            if self.coordinator.attempt_move(location, self.number) is MoveResult.APPLIED:
                self.status.log(f"Player {self.symbol} took cell {location}")
            elif not self.coordinator.is_finished():
                self.send(protocol.move_rejected())

        if self.coordinator.is_game_over():
            self.status.log(f"Game over for player {self.symbol}")

    def send(self, data):
        # Replies from this player's own thread, it waits while too many are pending
        if self.is_closed():
            return
        self.backlog.acquire()
        self.outbox.put((data, True))

    def push(self, data):
        # Messages from the coordinator, never blocks
        self.outbox.put((data, False))

    def move_accepted(self, outcome):
        # Called by the coordinator for this player's own move
        self.push(protocol.move_accepted(outcome))

    def opponent_moved(self, location, outcome):
        # Called by the coordinator from the opponent's thread
        self.push(protocol.opponent_moved(location, outcome))

    def write_messages(self):
        # Writer thread. After a write error the rest is dropped, so a broken connection only ends this player's session.
        while True:
            item = self.outbox.get()
            if item is None:
                break
            data, counted = item
            if not self.broken:
                try:
                    self.connection.sendall(data)
                except OSError as e:
                    logging.error(f"{e} error occurred. Could not reach player {self.symbol}.")
                    self.broken = True
                    # Wakes the session thread out of its read
                    self.shutdown()
            if counted:
                self.backlog.release()
        self.shutdown()
        try:
            self.connection.close()
        except OSError as e:
            logging.error(f"{e} error occurred while closing connection of player {self.symbol}.")

    def is_closed(self):
        self.state_lock.acquire()
        try:
            return self.closed
        finally:
            self.state_lock.release()

    def close(self):
        # Pending messages are written first, then the connection is shut down. Any thread may call it.
        self.state_lock.acquire()
        try:
            if self.closed:
                return
            self.closed = True
        finally:
            self.state_lock.release()
        self.outbox.put(None)

    def shutdown(self):
        try:
            # Shutdown wakes a read blocked in the session thread
            self.connection.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            # Peer already gone
            logging.debug(f"Shutdown of player {self.symbol} connection: {e}")
