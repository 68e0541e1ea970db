"""
Board implementation for N-in-a-row games.
"""
import json

import numpy as np


class GameBoard:
    """
    Represents an immutable square board of side length ``dimension``.

    Board state representation:
    - 0: empty cell
    - any other value: a player's mark (1, 2, ...)

    Cells can be addressed by ``(row, col)`` or by a flattened index where
    ``index = row * dimension + col``. Every update returns a new board built
    from a full copy of the grid; the receiver never changes.
    """

    def __init__(self, dimension):
        """
        Initialize an empty board.

        Args:
            dimension (int): Side length of the board (0 or more)

        Raises:
            ValueError: If dimension is negative
        """
        if dimension < 0:
            raise ValueError(f"Board dimension must be non-negative, got {dimension}")
        cells = np.zeros((dimension, dimension), dtype=np.uint32)
        cells.flags.writeable = False
        self._dimension = int(dimension)
        self._cells = cells

    @classmethod
    def _from_cells(cls, cells):
        board = cls.__new__(cls)
        cells.flags.writeable = False
        board._dimension = cells.shape[0]
        board._cells = cells
        return board

    @property
    def dimension(self):
        """int: Side length of the board."""
        return self._dimension

    @property
    def cells(self):
        """np.ndarray: Read-only ``(dimension, dimension)`` grid of marks."""
        return self._cells

    def _check_coordinates(self, row, col):
        if not (0 <= row < self._dimension and 0 <= col < self._dimension):
            raise IndexError(
                f"Cell ({row}, {col}) is outside a {self._dimension}x{self._dimension} board"
            )

    def _to_coordinates(self, index):
        if not 0 <= index < self._dimension * self._dimension:
            raise IndexError(
                f"Index {index} is outside a {self._dimension}x{self._dimension} board"
            )
        return divmod(index, self._dimension)

    def get(self, row, col):
        """
        Get the mark at the given coordinates.

        Args:
            row (int): Row position (0 to dimension - 1)
            col (int): Column position (0 to dimension - 1)

        Returns:
            int: The mark, 0 if the cell is empty

        Raises:
            IndexError: If the coordinates are outside the board
        """
        self._check_coordinates(row, col)
        return int(self._cells[row, col])

    def get_with_index(self, index):
        """Get the mark at a flattened index (0 to dimension**2 - 1)."""
        row, col = self._to_coordinates(index)
        return int(self._cells[row, col])

    def is_empty_at(self, row, col):
        """Check whether the cell at (row, col) is empty. Raises IndexError if outside the board."""
        return self.get(row, col) == 0

    def is_empty_at_index(self, index):
        """Check whether the cell at a flattened index is empty. Raises IndexError if outside the board."""
        return self.get_with_index(index) == 0

    def with_value_at(self, row, col, value):
        """
        Return a copy of this board with one cell set.

        The value is not validated and the target cell may already be
        occupied; move legality is left to the caller.

        Args:
            row (int): Row position (0 to dimension - 1)
            col (int): Column position (0 to dimension - 1)
            value (int): Mark to place, 0 clears the cell

        Returns:
            GameBoard: A new, independent board

        Raises:
            IndexError: If the coordinates are outside the board
        """
        self._check_coordinates(row, col)
        cells = self._cells.copy()
        cells[row, col] = value
        return GameBoard._from_cells(cells)

    def with_value_at_index(self, index, value):
        """Return a copy of this board with the cell at a flattened index set."""
        row, col = self._to_coordinates(index)
        return self.with_value_at(row, col, value)

    def is_full(self):
        """
        Check whether every cell holds a mark.

        Returns:
            bool: True if no cell is empty (always True for a 0x0 board)
        """
        return bool(np.all(self._cells != 0))

    def is_empty(self):
        """Check whether no cell holds a mark."""
        return bool(np.all(self._cells == 0))

    def has_moves_available(self):
        """Check whether at least one cell is still empty."""
        return not self.is_full()

    def is_valid_move(self, index):
        """
        Check whether a mark may be placed at a flattened index.

        Unlike the accessors, an index outside the board is not an error.

        Args:
            index (int): Flattened cell index

        Returns:
            bool: True if the index is on the board and the cell is empty
        """
        if not 0 <= index < self._dimension * self._dimension:
            return False
        return self.is_empty_at_index(index)

    def available_moves(self):
        """
        Get all empty positions on the board.

        Returns:
            list: Flattened indices of empty cells in ascending order
        """
        return [int(index) for index in np.flatnonzero(self._cells == 0)]

    def _lines(self):
        for row in range(self._dimension):
            yield self._cells[row, :]
        for col in range(self._dimension):
            yield self._cells[:, col]
        yield np.diagonal(self._cells)
        yield np.diagonal(np.fliplr(self._cells))

    def has_chain(self, mark):
        """
        Check whether ``mark`` fills a whole line of the board.

        Scans every row left to right, every column top to bottom, the main
        diagonal and the anti-diagonal, counting consecutive cells equal to
        ``mark``. The counter restarts for each line and resets on any other
        value. A line wins once the counter reaches ``dimension``.

        Args:
            mark (int): Mark to look for

        Returns:
            bool: True if a chain exists (always False for a 0x0 board)
        """
        if self._dimension == 0:
            return False
        for line in self._lines():
            chain = 0
            for value in line:
                if value == mark:
                    chain += 1
                else:
                    chain = 0
                if chain >= self._dimension:
                    return True
        return False

    def as_json(self):
        """
        Serialize the board as ``{"dimension": N, "content": [...]}``.

        ``content`` holds the N*N marks in row-major order.
        """
        return json.dumps({
            'dimension': self._dimension,
            'content': [int(value) for value in self._cells.ravel()],
        })

    def __eq__(self, other):
        if not isinstance(other, GameBoard):
            return NotImplemented
        return (self._dimension == other._dimension
                and np.array_equal(self._cells, other._cells))

    def __hash__(self):
        return hash((self._dimension, self._cells.tobytes()))

    def __repr__(self):
        return f"GameBoard(dimension={self._dimension}, cells={self._cells.tolist()})"

    def __str__(self):
        rows = []
        for row in self._cells:
            rows.append(" ".join(str(int(value)) if value else "." for value in row))
        return "\n".join(rows)
