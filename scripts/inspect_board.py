#!/usr/bin/env python3
"""
CLI for building a board through the handle boundary and reporting its status.

Example:
    python scripts/inspect_board.py --dimension 3 --move 0=1 --move 4=1 --move 8=1
"""
import argparse
import ctypes
import os
import sys

# Add the parent directory to Python path so we can import tictactoe
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from tictactoe.interop.library import TicTacToeLibrary


def parse_move(move_input):
    """
    Parse a move given as ``INDEX=MARK``.

    Args:
        move_input (str): User input like "4=1"

    Returns:
        tuple: (index, mark)

    Raises:
        argparse.ArgumentTypeError: If the input is malformed
    """
    parts = move_input.split('=')
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"Expected INDEX=MARK, got '{move_input}'")
    try:
        index = int(parts[0].strip())
        mark = int(parts[1].strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected integers in '{move_input}'")
    if index < 0 or mark < 0:
        raise argparse.ArgumentTypeError(f"Index and mark must be non-negative in '{move_input}'")
    return (index, mark)


def read_version(library):
    """Read the library version through the two-phase buffer protocol."""
    required = library.version(None, 0)
    buffer = ctypes.create_string_buffer(required)
    if library.version(buffer, required) < 0:
        raise RuntimeError("Buffer too small for library version")
    return buffer.value.decode('utf-8')


def display_board(library, handle):
    """Display the board behind a handle in ASCII format with column headers."""
    dimension = library.get_game_board_dimension(handle)
    print("\n   " + " ".join(f"{col:2d}" for col in range(dimension)))
    print("   " + "---" * dimension)
    for row, line in enumerate(library.get_game_board_string(handle).splitlines()):
        cells = " ".join(f"{cell:>2}" for cell in line.split())
        print(f"{row:2d}| {cells}")
    print()


def main():
    parser = argparse.ArgumentParser(description='Inspect an N-in-a-row game board')
    parser.add_argument('--dimension', type=int, default=3,
                        help='Board side length (default: 3)')
    parser.add_argument('--move', type=parse_move, action='append', default=[],
                        metavar='INDEX=MARK',
                        help='Place MARK at flattened INDEX (repeatable)')
    parser.add_argument('--marks', type=int, nargs='+', default=[1, 2],
                        help='Marks to check for chains (default: 1 2)')
    parser.add_argument('--json', action='store_true',
                        help='Print the board as JSON instead of a grid')
    args = parser.parse_args()

    if args.dimension < 0:
        parser.error("--dimension must be non-negative")

    library = TicTacToeLibrary()
    print(f"tictactoe library version {read_version(library)}")

    handle = library.new_game_board(args.dimension)
    try:
        for index, mark in args.move:
            if not 0 <= index < args.dimension * args.dimension:
                parser.error(f"Move index {index} is outside a "
                             f"{args.dimension}x{args.dimension} board")
            updated = library.get_game_board_with_value_at_index(handle, index, mark)
            library.free_game_board(handle)
            handle = updated

        if args.json:
            print(library.get_game_board_as_json(handle))
        else:
            display_board(library, handle)

        print(f"Full: {library.get_game_board_is_full(handle)}")
        for mark in args.marks:
            print(f"Chain for mark {mark}: {library.get_game_board_has_chain(handle, mark)}")
    finally:
        library.free_game_board(handle)


if __name__ == "__main__":
    main()
