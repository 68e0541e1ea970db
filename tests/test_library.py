"""
Tests for the TicTacToeLibrary handle boundary.
"""
import ctypes
import gc
import json
import logging
import threading

import pytest
from tictactoe.interop.errors import InvalidHandleError
from tictactoe.interop.library import LIBRARY_VERSION, TicTacToeLibrary, VersionCallback


@pytest.fixture
def library():
    return TicTacToeLibrary()


def test_game_board_lifecycle(library):
    """Test that a handle can be created and released."""
    handle = library.new_game_board(3)

    assert handle != 0
    assert library.live_handles == 1

    library.free_game_board(handle)
    assert library.live_handles == 0


def test_handles_are_unique(library):
    """Test that every board gets its own handle, even after releases."""
    first = library.new_game_board(3)
    library.free_game_board(first)
    second = library.new_game_board(3)

    assert second != first


def test_double_release_rejected(library):
    """Test that releasing a handle twice raises."""
    handle = library.new_game_board(3)
    library.free_game_board(handle)

    with pytest.raises(InvalidHandleError):
        library.free_game_board(handle)


@pytest.mark.parametrize("handle", [0, None, 12345])
def test_unknown_handle_rejected(library, handle):
    """Test that null and never-issued handles raise."""
    with pytest.raises(InvalidHandleError):
        library.get_game_board_dimension(handle)
    with pytest.raises(InvalidHandleError):
        library.free_game_board(handle)


def test_use_after_release_rejected(library):
    """Test that every read on a released handle raises."""
    handle = library.new_game_board(3)
    library.free_game_board(handle)

    with pytest.raises(InvalidHandleError):
        library.get_game_board_value_at_index(handle, 0)
    with pytest.raises(InvalidHandleError):
        library.get_game_board_with_value_at_index(handle, 0, 1)
    with pytest.raises(InvalidHandleError):
        library.get_game_board_is_full(handle)
    with pytest.raises(InvalidHandleError):
        library.get_game_board_has_chain(handle, 1)


def test_invalid_handle_is_value_error():
    assert issubclass(InvalidHandleError, ValueError)


def test_get_dimension_and_value(library):
    """Test read entry points on a new board."""
    handle = library.new_game_board(4)

    assert library.get_game_board_dimension(handle) == 4
    assert library.get_game_board_value_at_index(handle, 0) == 0
    assert library.get_game_board_value_at_index(handle, 15) == 0
    with pytest.raises(IndexError):
        library.get_game_board_value_at_index(handle, 16)

    library.free_game_board(handle)


def test_update_is_immutable(library):
    """Test that an update returns a new handle and leaves the source unchanged."""
    handle = library.new_game_board(3)
    updated = library.get_game_board_with_value_at_index(handle, 4, 2)

    assert updated != handle
    assert library.get_game_board_value_at_index(handle, 4) == 0
    assert library.get_game_board_value_at_index(updated, 4) == 2

    library.free_game_board(handle)
    assert library.get_game_board_value_at_index(updated, 4) == 2
    library.free_game_board(updated)
    assert library.live_handles == 0


def test_empty_board_has_available_moves(library):
    handle = library.new_game_board(3)

    assert library.get_game_board_is_full(handle) == False

    library.free_game_board(handle)


def test_full_board_has_no_available_moves(library):
    """Test fullness through the boundary, releasing each intermediate board."""
    handle = library.new_game_board(3)
    for index in range(9):
        updated = library.get_game_board_with_value_at_index(handle, index, index % 2 + 1)
        library.free_game_board(handle)
        handle = updated

    assert library.get_game_board_is_full(handle) == True
    assert library.live_handles == 1

    library.free_game_board(handle)


def test_winning_chain(library):
    """Test chain detection through the boundary."""
    handle = library.new_game_board(3)
    for index in range(3):
        updated = library.get_game_board_with_value_at_index(handle, index, 1)
        library.free_game_board(handle)
        handle = updated

    assert library.get_game_board_has_chain(handle, 1) == True
    assert library.get_game_board_has_chain(handle, 2) == False

    library.free_game_board(handle)


def test_concurrent_handle_creation(library):
    """Test that threads creating and releasing boards do not collide."""
    issued = []
    lock = threading.Lock()

    def worker():
        for _ in range(100):
            handle = library.new_game_board(3)
            with lock:
                issued.append(handle)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(set(issued)) == 400
    assert library.live_handles == 400
    for handle in issued:
        library.free_game_board(handle)
    assert library.live_handles == 0


def test_version_size_query(library):
    """Test that a null buffer returns the size including the terminator."""
    assert library.version(None, 0) == len(LIBRARY_VERSION) + 1


def test_version_buffer_too_small(library):
    """Test that a short buffer is rejected with -1 and left untouched."""
    required = library.version(None, 0)
    buffer = ctypes.create_string_buffer(required)

    assert library.version(buffer, required - 1) == -1
    assert buffer.raw == b'\0' * required
    assert library.version(buffer, 0) == -1


def test_version_written(library):
    """Test the second phase of the size-query protocol."""
    required = library.version(None, 0)
    buffer = ctypes.create_string_buffer(required)

    written = library.version(buffer, required)

    assert written == required
    assert buffer.value.decode('utf-8') == LIBRARY_VERSION
    assert buffer.raw[-1:] == b'\0'


def test_version_larger_buffer(library):
    """Test that a larger buffer still reports the bytes written."""
    buffer = ctypes.create_string_buffer(64)

    assert library.version(buffer, 64) == len(LIBRARY_VERSION) + 1
    assert buffer.value == LIBRARY_VERSION.encode('utf-8')


def test_version_string_callback(library):
    """Test that the callback is invoked once with the version and its length."""
    received = []

    library.version_string(lambda version, length: received.append((version, length)))

    assert received == [(LIBRARY_VERSION.encode('utf-8'), len(LIBRARY_VERSION) + 1)]


def test_version_string_prebuilt_callback(library):
    """Test that a ctypes callback object is used as given."""
    received = []
    callback = VersionCallback(lambda version, length: received.append(length))

    library.version_string(callback)

    assert received == [len(LIBRARY_VERSION) + 1]


def test_version_logged_on_load(caplog):
    """Test that the library logs its version when created."""
    with caplog.at_level(logging.DEBUG, logger="tictactoe.interop.library"):
        TicTacToeLibrary()

    assert LIBRARY_VERSION in caplog.text


def test_release_while_lock_held(library):
    """Test that a handle can be released by code running under the registry lock."""
    handle = library.new_game_board(3)

    with library._lock:
        library.free_game_board(handle)

    assert library.live_handles == 0


def test_finalizer_runs_under_lock(library):
    """Test that a native board collected while the lock is held releases its handle."""
    board = library.new_native_board(3)
    kept = library.new_game_board(3)

    with library._lock:
        del board
        gc.collect()
        assert library.get_game_board_dimension(kept) == 3

    assert library.live_handles == 1
    library.free_game_board(kept)


def test_board_queries_through_handle(library):
    """Test validity, emptiness, available moves and serialization by handle."""
    handle = library.new_game_board(2)
    assert library.get_game_board_is_empty(handle) == True

    updated = library.get_game_board_with_value_at_index(handle, 1, 1)
    library.free_game_board(handle)

    assert library.get_game_board_is_empty(updated) == False
    assert library.get_game_board_is_valid_move(updated, 0) == True
    assert library.get_game_board_is_valid_move(updated, 1) == False
    assert library.get_game_board_is_valid_move(updated, 4) == False
    assert library.get_game_board_has_moves_available(updated) == True
    assert library.get_game_board_available_moves(updated) == [0, 2, 3]
    assert json.loads(library.get_game_board_as_json(updated)) == {
        "dimension": 2, "content": [0, 1, 0, 0]}
    assert library.get_game_board_string(updated) == ". 1\n. ."

    library.free_game_board(updated)
