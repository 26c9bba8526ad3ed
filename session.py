"""
Game session: the state machine around the board rules, with one-level
undo, best score and player preferences kept in a key-value store.
"""
import logging
import random
from collections import namedtuple

from game_logic import (
    WIN_VALUE,
    can_move,
    clone_board,
    create_empty,
    has_value,
    parse_direction,
    resolve,
    spawn_random_tile,
)

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    'best': 'game2048_best_score',
    'theme': 'game2048_theme',
    'sound': 'game2048_sound_enabled',
}
THEMES = ('neumorph', 'contrast')

READY = 'ready'
WON = 'won'
LOST = 'lost'

Snapshot = namedtuple('Snapshot', 'board score won game_over')


class MemoryStore:
    """Key-value store kept in a dict; values are plain strings."""

    def __init__(self, data=None):
        self.data = dict(data or {})

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = str(value)


def load_best_score(store):
    raw = store.get(STORAGE_KEYS['best'])
    if raw is None:
        return 0
    try:
        best = int(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed best score %r", raw)
        return 0
    if best < 0:
        logger.warning("Ignoring negative best score %r", raw)
        return 0
    return best


class Preferences:
    def __init__(self, store):
        self.store = store
        self.theme = THEMES[0]
        self.sound_enabled = False
        self.load()

    def load(self):
        theme = self.store.get(STORAGE_KEYS['theme'])
        if theme in THEMES:
            self.theme = theme
        elif theme is not None:
            logger.warning("Ignoring unknown theme %r", theme)
        self.sound_enabled = self.store.get(STORAGE_KEYS['sound']) == '1'

    def toggle_theme(self):
        self.theme = THEMES[1] if self.theme == THEMES[0] else THEMES[0]
        self.store.set(STORAGE_KEYS['theme'], self.theme)
        return self.theme

    def toggle_sound(self):
        self.sound_enabled = not self.sound_enabled
        self.store.set(STORAGE_KEYS['sound'], '1' if self.sound_enabled else '0')
        return self.sound_enabled


class GameSession:
    """
    Owns the committed board. A move goes through two phases:
    resolve() computes the slide for presentation and marks the move in
    flight, commit() spawns a tile and runs the win/loss checks. Hosts
    without animation can call apply_direction() to do both at once.
    """

    def __init__(self, store=None, rng=None):
        self.store = store if store is not None else MemoryStore()
        self.rng = rng if rng is not None else random.Random()
        self.best_score = load_best_score(self.store)
        self.prefs = Preferences(self.store)
        self.new_game()

    @property
    def state(self):
        if self.game_over:
            return LOST
        if self.won:
            return WON
        return READY

    @property
    def in_flight(self):
        return self.pending is not None

    @property
    def can_undo(self):
        return self.snapshot is not None and not self.in_flight

    def new_game(self):
        self.board = create_empty()
        self.score = 0
        self.won = False
        self.game_over = False
        self.overlay = None
        self.snapshot = None
        self.pending = None
        self.last_spawn = None
        self.last_merged = set()
        spawn_random_tile(self.board, self.rng)
        spawn_random_tile(self.board, self.rng)
        logger.debug("New game started")

    def resolve(self, direction):
        """
        Resolve a move against the committed board.
        Returns the MoveResult, or None if the command is ignored.
        """
        direction = parse_direction(direction)
        if direction is None or self.game_over or self.in_flight:
            return None
        result = resolve(self.board, direction)
        if result.moved:
            self.pending = result
        return result

    def commit(self):
        """Install the pending move. Returns the Spawn, or None."""
        result = self.pending
        if result is None:
            return None

        self.snapshot = Snapshot(clone_board(self.board), self.score, self.won, self.game_over)

        self.score += result.score_delta
        if self.score > self.best_score:
            self.best_score = self.score
            self.store.set(STORAGE_KEYS['best'], self.best_score)

        board = clone_board(result.board)
        spawn = spawn_random_tile(board, self.rng)
        self.board = board
        self.last_spawn = spawn
        self.last_merged = {merge.dst for merge in result.merges}
        self.pending = None
        logger.debug("Committed move: +%d, spawn %s", result.score_delta, spawn)

        if not self.won and has_value(self.board, WIN_VALUE):
            self.won = True
            self.overlay = 'win'
            logger.info("Reached %d with score %d", WIN_VALUE, self.score)

        if not can_move(self.board):
            self.game_over = True
            self.overlay = 'lose'
            logger.info("Game over with score %d", self.score)

        return spawn

    def apply_direction(self, direction):
        """Resolve and commit in one step. Returns (MoveResult, Spawn) or None."""
        result = self.resolve(direction)
        if result is None or not result.moved:
            return None
        return result, self.commit()

    def undo(self):
        if not self.can_undo:
            return False
        snap = self.snapshot
        self.board = clone_board(snap.board)
        self.score = snap.score
        self.won = snap.won
        self.game_over = snap.game_over
        self.overlay = None
        self.snapshot = None
        self.last_spawn = None
        self.last_merged = set()
        logger.debug("Undid last move")
        return True

    def keep_going(self):
        if self.overlay == 'win':
            self.overlay = None
