# board_engine.py
# Stateless rule engine for the 2048 sliding-tile puzzle.
# Every function takes a board and returns a new one; nothing is mutated in place.

import logging
import random
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

BOARD_SIZE = 4
SPAWN_FOUR_PROBABILITY = 0.1
INITIAL_TILES = 2

Board = List[List[int]]


class Direction(str, Enum):
    """Represents the possible move directions."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class MoveResult(NamedTuple):
    """Outcome of sliding the board in one direction (no tile spawned)."""
    grid: Board
    score_gained: int
    changed: bool


class TurnResult(NamedTuple):
    """Caller-side game state after one full turn."""
    grid: Board
    score: int
    game_over: bool
    changed: bool


# --- Board Helper Functions ---

def validate_grid(grid: Sequence[Sequence[int]]) -> Board:
    """
    Checks that a board is a well-formed BOARD_SIZE x BOARD_SIZE grid.
    Args:
        grid (Sequence[Sequence[int]]): The board to check.
    Returns:
        Board: A list-of-lists copy of the board.
    Raises:
        ValueError: If the board is not square, has the wrong size, or holds a
                    value that is neither 0 nor a power of two >= 2.
    """
    if len(grid) != BOARD_SIZE or not all(len(row) == BOARD_SIZE for row in grid):
        raise ValueError(f"Board must be a {BOARD_SIZE}x{BOARD_SIZE} square matrix.")
    for row in grid:
        for value in row:
            if value != 0 and (value < 2 or value & (value - 1)):
                raise ValueError(f"Invalid tile value {value}: tiles must be 0 or a power of two >= 2.")
    return [list(row) for row in grid]


def _check_grid(grid: Sequence[Sequence[int]]) -> None:
    assert len(grid) == BOARD_SIZE and all(len(row) == BOARD_SIZE for row in grid), \
        f"expected a {BOARD_SIZE}x{BOARD_SIZE} board"


def empty_grid() -> Board:
    """Returns a BOARD_SIZE x BOARD_SIZE board of zeros."""
    return [[0] * BOARD_SIZE for _ in range(BOARD_SIZE)]


def get_empty_cells(grid: Board) -> List[Tuple[int, int]]:
    """
    Get coordinates of empty (0-value) cells in the given board, in row-major order.
    Args:
        grid (Board): The board to check.
    Returns:
        List[Tuple[int, int]]: List of (row, col) tuples for empty cells.
    """
    _check_grid(grid)
    return [
        (row, col)
        for row in range(BOARD_SIZE)
        for col in range(BOARD_SIZE)
        if grid[row][col] == 0
    ]


def random_empty_cell(grid: Board, rng: Optional[random.Random] = None) -> Optional[Tuple[int, int]]:
    """
    Picks one empty cell uniformly at random.
    Args:
        grid (Board): The board to pick from.
        rng (Optional[random.Random]): Random source; the module-level one if omitted.
    Returns:
        Optional[Tuple[int, int]]: The (row, col) of the chosen cell, or None if the board is full.
    """
    empty_cells = get_empty_cells(grid)
    if not empty_cells:
        return None
    return (rng or random).choice(empty_cells)


# --- Tile Spawning ---

def spawn_tile(grid: Board, rng: Optional[random.Random] = None) -> Board:
    """
    Adds a new tile (90% chance of 2, 10% chance of 4) to an empty cell on a copy of the board.
    Args:
        grid (Board): The current game board.
        rng (Optional[random.Random]): Random source; the module-level one if omitted.
    Returns:
        Board: A new board with the added tile. If there is no empty cell the
               copy is identical to the input.
    """
    new_grid = [list(row) for row in grid]
    cell = random_empty_cell(new_grid, rng)
    if cell is None:
        return new_grid

    row, col = cell
    new_grid[row][col] = 4 if (rng or random).random() < SPAWN_FOUR_PROBABILITY else 2
    logger.debug("Spawned %d at (%d, %d)", new_grid[row][col], row, col)
    return new_grid


# --- Line Reduction ---

def reduce_line(cells: Sequence[int], size: int = BOARD_SIZE) -> Tuple[List[int], int]:
    """
    Slides a single line toward index 0 and merges equal neighbours.

    Zeros are dropped first, then the compacted tiles are scanned left to right.
    A pair of equal tiles becomes one tile of double value and the scan skips
    past both, so a tile produced by a merge never merges again in the same
    move: [2, 2, 2] gives [4, 2, 0, 0], not [4, 4, 0, 0].

    Args:
        cells (Sequence[int]): The line to reduce.
        size (int): Length of the returned line.
    Returns:
        Tuple[List[int], int]: The reduced line padded with zeros to `size`, and
                               the sum of the merged tile values.
    """
    tiles = [value for value in cells if value != 0]
    reduced: List[int] = []
    score_gained = 0

    idx = 0
    while idx < len(tiles):
        if idx + 1 < len(tiles) and tiles[idx] == tiles[idx + 1]:
            merged_value = tiles[idx] * 2
            reduced.append(merged_value)
            score_gained += merged_value
            idx += 2
        else:
            reduced.append(tiles[idx])
            idx += 1

    reduced += [0] * (size - len(reduced))
    return reduced, score_gained


# --- Board Transformations ---

def _identity(grid: Board) -> Board:
    return [list(row) for row in grid]


def reverse_rows(grid: Board) -> Board:
    """Returns a new board with every row reversed."""
    return [row[::-1] for row in grid]


def rotate_clockwise(grid: Board) -> Board:
    """Returns a new board rotated 90 degrees clockwise."""
    return [list(column) for column in zip(*grid[::-1])]


def rotate_counter_clockwise(grid: Board) -> Board:
    """Returns a new board rotated 90 degrees counter-clockwise."""
    return [list(column) for column in zip(*grid)][::-1]


# Each direction is reduced as if it were LEFT: (prepare, finish) brings the
# requested direction to the row head and back again.
_TRANSFORMATIONS: Dict[Direction, Tuple[Callable[[Board], Board], Callable[[Board], Board]]] = {
    Direction.LEFT: (_identity, _identity),
    Direction.RIGHT: (reverse_rows, reverse_rows),
    Direction.UP: (rotate_counter_clockwise, rotate_clockwise),
    Direction.DOWN: (rotate_clockwise, rotate_counter_clockwise),
}


# --- Core Game Move Processing ---

def apply_move(grid: Board, direction: Direction) -> MoveResult:
    """
    Slides and merges the board in the given direction, without spawning a tile.
    Args:
        grid (Board): The current game board. It is left untouched.
        direction (Direction): The direction to move.
    Returns:
        MoveResult: The new board, the score gained by this move, and whether
                    any cell differs from the input board.
    """
    _check_grid(grid)
    prepare, finish = _TRANSFORMATIONS[Direction(direction)]

    reduced_rows = []
    score_gained = 0
    for row in prepare(grid):
        reduced_row, row_score = reduce_line(row, BOARD_SIZE)
        reduced_rows.append(reduced_row)
        score_gained += row_score

    new_grid = finish(reduced_rows)
    changed = new_grid != [list(row) for row in grid]
    return MoveResult(new_grid, score_gained, changed)


# --- Game State Checks ---

def is_game_over(grid: Board) -> bool:
    """
    Checks whether no move is left.
    Args:
        grid (Board): The game board.
    Returns:
        bool: True only if the board is full and no direction changes it.
    """
    if get_empty_cells(grid):
        return False
    game_over = not any(apply_move(grid, direction).changed for direction in Direction)
    if game_over:
        logger.debug("No moves left on a full board")
    return game_over


# --- Session Helpers ---

def new_game(rng: Optional[random.Random] = None) -> Tuple[Board, int]:
    """Starts a game: an empty board with INITIAL_TILES spawned tiles, and a score of 0."""
    grid = empty_grid()
    for _ in range(INITIAL_TILES):
        grid = spawn_tile(grid, rng)
    return grid, 0


def take_turn(grid: Board, score: int, direction: Direction,
              rng: Optional[random.Random] = None) -> TurnResult:
    """
    Plays one turn the way a presentation layer drives the engine.

    If the move changes the board, its score is added, a new tile is spawned
    and game over is evaluated on the board after the spawn. An ineffective
    move leaves board and score as they were and spawns nothing.

    Args:
        grid (Board): The board before the move.
        score (int): The running score before the move.
        direction (Direction): The direction to move.
        rng (Optional[random.Random]): Random source for the spawned tile.
    Returns:
        TurnResult: The board, score and game-over flag after the turn, and
                    whether the move changed the board.
    """
    moved = apply_move(grid, direction)
    if not moved.changed:
        return TurnResult([list(row) for row in grid], score, is_game_over(grid), False)

    new_grid = spawn_tile(moved.grid, rng)
    new_score = score + moved.score_gained
    logger.debug("Moved %s: +%d points", Direction(direction).value, moved.score_gained)
    return TurnResult(new_grid, new_score, is_game_over(new_grid), True)
