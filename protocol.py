# Line-oriented wire messages. Every server message is one or more newline-terminated lines,
# clients send a single integer token, the cell they want to take.
import re

from config import FORMAT

VALID_MOVE = "Valid move."
INVALID_MOVE = "Invalid move, try again"
OPPONENT_MOVED = "Opponent moved"
VICTORY = "VICTORY"
DEFEAT = "DEFEAT"
DRAW = "DRAW"

BUFFER_SIZE = 1024
MAX_TOKEN_LENGTH = 64 # Longer tokens are cut and never decode to a move
NON_SPACE = re.compile(r'\S*')

def encode(*lines):
    return "".join(f"{line}\n" for line in lines).encode(FORMAT)

def side_assignment(symbol):
    return encode(symbol)

def waiting_for_opponent(symbol):
    return encode(f"Player {symbol} connected", "Waiting for another player")

def opponent_connected():
    return encode("Other player connected. Your move.")

def please_wait(symbol):
    return encode(f"Player {symbol} connected, please wait")

def move_accepted(outcome=None):
    # outcome is VICTORY, DRAW or None while the game goes on
    if outcome is None:
        return encode(VALID_MOVE)
    return encode(VALID_MOVE, outcome)

def move_rejected():
    return encode(INVALID_MOVE)

def opponent_moved(location, outcome=None):
    # outcome is DEFEAT, DRAW or None while the game goes on
    if outcome is None:
        return encode(OPPONENT_MOVED, location)
    return encode(OPPONENT_MOVED, location, outcome)

def decode_move(token):
    # Cell index from a client token, None when the token is not a non-negative integer
    if token is None:
        return None
    token = token.strip()
    if len(token) > MAX_TOKEN_LENGTH or not token.isdigit() or not token.isascii():
        return None
    return int(token)

class TokenReader:
    # Splits the byte stream of a socket into whitespace-delimited tokens
    def __init__(self, sock):
        self.sock = sock
        self.buffer = ""
        self.skipping = False

    def next_token(self):
        # Next token, or None when the peer closed the connection.
        # A token longer than MAX_TOKEN_LENGTH comes back cut to MAX_TOKEN_LENGTH + 1 characters, the rest of it is dropped.
        while True:
            if self.skipping:
                self.buffer = self.buffer[NON_SPACE.match(self.buffer).end():]
                # Whitespace reached, the long token is over
                self.skipping = not self.buffer
            parts = [] if self.skipping else self.buffer.split(None, 1)
            # A token is complete once whitespace follows it
            if len(parts) == 2 or (parts and self.buffer[-1].isspace()):
                self.buffer = parts[1] if len(parts) == 2 else ""
                return parts[0]
            if parts and len(parts[0]) > MAX_TOKEN_LENGTH:
                self.buffer = ""
                self.skipping = True
                return parts[0][:MAX_TOKEN_LENGTH + 1]
            data = self.sock.recv(BUFFER_SIZE)
            if not data:
                self.buffer = ""
                self.skipping = False
                return parts[0] if parts else None
            self.buffer += data.decode(FORMAT, errors='replace')
