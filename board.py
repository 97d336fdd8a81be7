EMPTY = ' ' # Empty cell
SYMBOLS = ('X', 'O') # Side symbols, indexed by player number
CELLS = 9 # Number of cells on the board

WINNING_COMBINATIONS = [
    [0, 1, 2], [3, 4, 5], [6, 7, 8],  # Rows
    [0, 3, 6], [1, 4, 7], [2, 5, 8],  # Columns
    [0, 4, 8], [2, 4, 6]              # Diagonals
]

class Board:
    def __init__(self, cells=None):
        # Board is a row-major list of 9 cells
        if cells is None:
            cells = [EMPTY for _ in range(CELLS)]
        if len(cells) != CELLS:
            raise ValueError(f"Board needs {CELLS} cells, got {len(cells)}")
        self.cells = list(cells)

    def is_valid_location(self, location):
        return 0 <= location < CELLS

    def is_occupied(self, location):
        # Out of range location is a caller error
        if not self.is_valid_location(location):
            raise IndexError(f"Cell {location} is outside the board")
        return self.cells[location] != EMPTY

    def place(self, location, symbol):
        # Cells are written once
        if symbol not in SYMBOLS:
            raise ValueError(f"Unknown symbol {symbol!r}")
        if self.is_occupied(location):
            raise ValueError(f"Cell {location} is already taken")
        self.cells[location] = symbol

    def winner(self):
        # Symbol owning a full line, or None
        for combo in WINNING_COMBINATIONS:
            if self.cells[combo[0]] == self.cells[combo[1]] == self.cells[combo[2]] != EMPTY:
                return self.cells[combo[0]]
        return None

    def has_winner(self):
        return self.winner() is not None

    def is_full(self):
        return EMPTY not in self.cells

    def is_terminal(self):
        return self.has_winner() or self.is_full()

    def snapshot(self):
        return list(self.cells)

    def render(self):
        # Text grid, same layout the clients print
        board_display = ""
        for i in range(3):
            row = " | ".join(self.cells[i * 3: (i + 1) * 3])
            board_display += f"{row}\n"
            if i < 2:
                board_display += "--+---+--\n"
        return board_display
