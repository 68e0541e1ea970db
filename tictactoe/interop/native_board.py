"""
GameBoard wrapper that owns a handle of a TicTacToeLibrary.
"""
import logging
import weakref

from tictactoe.interop.errors import InvalidHandleError

logger = logging.getLogger(__name__)


def _release(library, handle):
    logger.debug("Cleaning up game board handle %d", handle)
    library.free_game_board(handle)


class NativeGameBoard:
    """
    Board backed by a library handle.

    The wrapper owns its handle exclusively. The handle is released exactly
    once: by ``close()``, by leaving a ``with`` block, or when the wrapper is
    garbage-collected, whichever comes first. Callers must not pass
    ``handle`` to ``free_game_board`` themselves; the wrapper's own release
    would then raise ``InvalidHandleError``.
    """

    def __init__(self, library, handle):
        self._library = library
        self._handle = handle
        self._finalizer = weakref.finalize(self, _release, library, handle)

    @property
    def handle(self):
        """int: The owned handle, for read-only library calls. Do not release it directly."""
        return self._handle

    @property
    def closed(self):
        """bool: True once the handle has been released."""
        return not self._finalizer.alive

    def close(self):
        """Release the handle now. Later calls do nothing."""
        self._finalizer()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _live_handle(self):
        if self.closed:
            raise InvalidHandleError(f"Game board handle {self._handle} has been released")
        return self._handle

    @property
    def dimension(self):
        """int: Side length of the board."""
        return self._library.get_game_board_dimension(self._live_handle())

    def get_with_index(self, index):
        """Get the mark at a flattened index. Raises IndexError if outside the board."""
        return self._library.get_game_board_value_at_index(self._live_handle(), index)

    def is_empty_at_index(self, index):
        """Check whether the cell at a flattened index is empty."""
        return self.get_with_index(index) == 0

    def is_valid_move(self, index):
        """Check whether the index is on the board and its cell is empty."""
        return self._library.get_game_board_is_valid_move(self._live_handle(), index)

    def with_value_at_index(self, index, value):
        """
        Return a new board with the cell at ``index`` set to ``value``.

        The new board owns a separate handle; this board is unchanged.
        """
        handle = self._library.get_game_board_with_value_at_index(
            self._live_handle(), index, value)
        return NativeGameBoard(self._library, handle)

    def is_full(self):
        """Check whether every cell holds a mark."""
        return self._library.get_game_board_is_full(self._live_handle())

    def is_empty(self):
        return self._library.get_game_board_is_empty(self._live_handle())

    def has_moves_available(self):
        return self._library.get_game_board_has_moves_available(self._live_handle())

    def available_moves(self):
        """
        Get all empty positions on the board.

        Returns:
            list: Flattened indices of empty cells in ascending order
        """
        return self._library.get_game_board_available_moves(self._live_handle())

    def has_chain(self, mark):
        """Check whether ``mark`` fills a row, a column or one of the two main diagonals."""
        return self._library.get_game_board_has_chain(self._live_handle(), mark)

    def as_json(self):
        """Serialize the board as ``{"dimension": N, "content": [...]}``."""
        return self._library.get_game_board_as_json(self._live_handle())

    def __str__(self):
        return self._library.get_game_board_string(self._live_handle())

    def __repr__(self):
        state = "closed" if self.closed else "open"
        return f"NativeGameBoard(handle={self._handle}, {state})"
