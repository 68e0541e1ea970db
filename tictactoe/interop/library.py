"""
Handle-based boundary around GameBoard for hosts that cannot hold Python objects.

Boards cross the boundary as opaque integer handles. Each handle has a single
owner that must release it exactly once with ``free_game_board``; updates
always register a new board under a new handle.
"""
import ctypes
import itertools
import logging
import threading

from tictactoe.core.board import GameBoard
from tictactoe.interop.errors import InvalidHandleError
from tictactoe.interop.native_board import NativeGameBoard

logger = logging.getLogger(__name__)

LIBRARY_NAME = "xxdc_oss_tictactoe"
LIBRARY_VERSION = "0.1.0"

# void callback(const char *version, int length)
VersionCallback = ctypes.CFUNCTYPE(None, ctypes.c_char_p, ctypes.c_int)


class TicTacToeLibrary:
    """
    Registry of live GameBoard handles plus the library version entry points.

    All entry points are safe to call from several threads.
    """

    def __init__(self):
        self._boards = {}
        self._handles = itertools.count(1)
        # Re-entered when a NativeGameBoard finalizer runs while the lock is held
        self._lock = threading.RLock()
        self._log_version()

    @property
    def live_handles(self):
        """int: Number of handles that have not been released yet."""
        with self._lock:
            return len(self._boards)

    def _register(self, board):
        with self._lock:
            handle = next(self._handles)
            self._boards[handle] = board
        logger.debug("Registered game board handle %d (dimension %d)", handle, board.dimension)
        return handle

    def _lookup(self, handle):
        with self._lock:
            board = self._boards.get(handle)
        if board is None:
            raise InvalidHandleError(f"Unknown or released game board handle: {handle!r}")
        return board

    def new_game_board(self, dimension):
        """
        Create an empty board and return its handle.

        Args:
            dimension (int): Side length of the board

        Returns:
            int: A new handle, owned by the caller
        """
        return self._register(GameBoard(dimension))

    def free_game_board(self, handle):
        """
        Release a handle.

        Raises:
            InvalidHandleError: If the handle was never issued or is already released
        """
        with self._lock:
            board = self._boards.pop(handle, None)
        if board is None:
            raise InvalidHandleError(f"Unknown or released game board handle: {handle!r}")
        logger.debug("Released game board handle %d", handle)

    def get_game_board_dimension(self, handle):
        return self._lookup(handle).dimension

    def get_game_board_value_at_index(self, handle, index):
        return self._lookup(handle).get_with_index(index)

    def get_game_board_with_value_at_index(self, handle, index, value):
        """
        Register a copy of a board with one cell set.

        The source handle stays valid and its board unchanged.

        Returns:
            int: A new handle for the updated board, owned by the caller
        """
        return self._register(self._lookup(handle).with_value_at_index(index, value))

    def get_game_board_is_full(self, handle):
        return self._lookup(handle).is_full()

    def get_game_board_has_chain(self, handle, mark):
        return self._lookup(handle).has_chain(mark)

    def get_game_board_has_moves_available(self, handle):
        return self._lookup(handle).has_moves_available()

    def get_game_board_is_empty(self, handle):
        return self._lookup(handle).is_empty()

    def get_game_board_is_valid_move(self, handle, index):
        """Check whether the index is on the board and empty; never raises IndexError."""
        return self._lookup(handle).is_valid_move(index)

    def get_game_board_available_moves(self, handle):
        return self._lookup(handle).available_moves()

    def get_game_board_as_json(self, handle):
        """Serialize the board behind a handle as ``{"dimension": N, "content": [...]}``."""
        return self._lookup(handle).as_json()

    def get_game_board_string(self, handle):
        """Render the board behind a handle as a text grid, ``.`` for empty cells."""
        return str(self._lookup(handle))

    def new_native_board(self, dimension):
        """Create an empty board wrapped in a NativeGameBoard that owns its handle."""
        return NativeGameBoard(self, self.new_game_board(dimension))

    def version(self, buffer, length):
        """
        Write the library version as a NUL-terminated string.

        Two-phase protocol: call with ``buffer=None`` to learn the required
        size, allocate (e.g. ``ctypes.create_string_buffer(size)``) and call
        again.

        Args:
            buffer: Writable ctypes buffer, or None to query the size
            length (int): Size of the buffer in bytes

        Returns:
            int: Required size if buffer is None, -1 if the buffer is too
            small, otherwise the number of bytes written (terminator included)
        """
        encoded = LIBRARY_VERSION.encode('utf-8')
        required = len(encoded) + 1
        if buffer is None:
            return required
        if length < required:
            return -1
        ctypes.memmove(buffer, encoded + b'\0', required)
        return required

    def version_string(self, callback):
        """
        Call ``callback(version, length)`` once with the library version.

        ``version`` is the NUL-terminated version string and ``length`` its
        size including the terminator. Plain Python callables are wrapped in
        ``VersionCallback``, so they receive ``version`` as bytes.
        """
        if not isinstance(callback, VersionCallback):
            callback = VersionCallback(callback)
        encoded = LIBRARY_VERSION.encode('utf-8')
        callback(encoded, len(encoded) + 1)

    def _log_version(self):
        required = self.version(None, 0)
        buffer = ctypes.create_string_buffer(required)
        written = self.version(buffer, required)
        if written != required:
            raise RuntimeError(f"Unexpected number of bytes written: {written} != {required}")
        logger.debug("Loaded %s version %s", LIBRARY_NAME, buffer.value.decode('utf-8'))

        def log_version_string(version, length):
            logger.debug("Version = %s (%d bytes)", version.decode('utf-8'), length)

        self.version_string(log_version_string)
