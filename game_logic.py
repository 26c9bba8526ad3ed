"""
Board rules for 2048: sliding, merging, spawning and terminal checks.

Every function here takes a board and returns new data; only
spawn_random_tile writes into the board it is given.
"""
import random
from collections import namedtuple

BOARD_SIZE = 4
WIN_VALUE = 2048
FOUR_PROBABILITY = 0.1

DIRECTIONS = ('up', 'down', 'left', 'right')

Cell = namedtuple('Cell', 'row col')
Move = namedtuple('Move', 'src dst value')
Merge = namedtuple('Merge', 'src1 src2 dst value')
Spawn = namedtuple('Spawn', 'cell value')
MoveResult = namedtuple('MoveResult', 'board moved score_delta moves merges')
# sources holds one Cell for a slide, two for a merge
Placement = namedtuple('Placement', 'value sources')


def create_empty():
    return [[0] * BOARD_SIZE for _ in range(BOARD_SIZE)]


def clone_board(board):
    return [row[:] for row in board]


def parse_direction(token):
    """Map an input token to a direction, or None if it is not a move command."""
    if not isinstance(token, str):
        return None
    token = token.strip().lower()
    return token if token in DIRECTIONS else None


def extract_line(board, direction, index):
    """
    Cells of one row or column, ordered so that position 0 is the slot
    the tiles travel toward.
    """
    span = range(BOARD_SIZE)
    if direction == 'left':
        cells = [Cell(index, c) for c in span]
    elif direction == 'right':
        cells = [Cell(index, c) for c in reversed(span)]
    elif direction == 'up':
        cells = [Cell(r, index) for r in span]
    elif direction == 'down':
        cells = [Cell(r, index) for r in reversed(span)]
    else:
        raise ValueError(f"Invalid direction: {direction!r}")
    return [(cell, board[cell.row][cell.col]) for cell in cells]


def collapse(line):
    """
    Collapse one extracted line toward position 0.

    Greedy single pass: a tile merges with the next one when equal and
    the merged result is never merged again in the same move, so
    [2, 2, 2, 0] becomes [4, 2, 0, 0].
    Returns: (placements, score_delta)
    """
    non_zero = [(cell, val) for cell, val in line if val != 0]
    placed = []
    score_delta = 0

    i = 0
    while i < len(non_zero):
        cell, val = non_zero[i]
        if i + 1 < len(non_zero) and non_zero[i + 1][1] == val:
            merged_val = val * 2
            placed.append(Placement(merged_val, (cell, non_zero[i + 1][0])))
            score_delta += merged_val
            i += 2
        else:
            placed.append(Placement(val, (cell,)))
            i += 1

    return placed, score_delta


def resolve(board, direction):
    """
    Compute the board after sliding in direction, without touching board.

    Lines are processed in index order and each line destination-first;
    moves and merges are reported in that order.
    """
    next_board = create_empty()
    moves = []
    merges = []
    score_delta = 0
    moved = False

    for index in range(BOARD_SIZE):
        line = extract_line(board, direction, index)
        placed, line_score = collapse(line)
        score_delta += line_score

        for slot, (dst, old_val) in enumerate(line):
            placement = placed[slot] if slot < len(placed) else None
            val = placement.value if placement else 0
            next_board[dst.row][dst.col] = val
            if val != old_val:
                moved = True

            if placement is None:
                continue
            if len(placement.sources) == 1:
                src = placement.sources[0]
                if src != dst:
                    moves.append(Move(src, dst, val))
            else:
                src1, src2 = placement.sources
                merges.append(Merge(src1, src2, dst, val))

    return MoveResult(next_board, moved, score_delta, moves, merges)


def empty_cells(board):
    return [Cell(r, c) for r in range(BOARD_SIZE) for c in range(BOARD_SIZE) if board[r][c] == 0]


def spawn_random_tile(board, rng=random):
    """
    Put a 2 (90%) or a 4 (10%) on a random empty cell of board, in place.
    Returns the Spawn, or None when the board is full.
    """
    empty = empty_cells(board)
    if not empty:
        return None
    cell = rng.choice(empty)
    val = 4 if rng.random() < FOUR_PROBABILITY else 2
    board[cell.row][cell.col] = val
    return Spawn(cell, val)


def can_move(board):
    for r in range(BOARD_SIZE):
        for c in range(BOARD_SIZE):
            if board[r][c] == 0:
                return True
            if c + 1 < BOARD_SIZE and board[r][c] == board[r][c + 1]:
                return True
            if r + 1 < BOARD_SIZE and board[r][c] == board[r + 1][c]:
                return True
    return False


def has_value(board, target):
    return any(val == target for row in board for val in row)


def tile_count(board):
    return sum(1 for row in board for val in row if val != 0)
