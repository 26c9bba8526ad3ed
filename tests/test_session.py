import logging

from game_logic import Cell, Spawn, tile_count
from session import LOST, READY, STORAGE_KEYS, WON, GameSession, MemoryStore, Preferences


def almost_locked():
    # sliding left leaves a single empty cell at (3, 3); a 2 there locks the board
    return [
        [2, 4, 2, 4],
        [4, 2, 4, 2],
        [2, 4, 2, 8],
        [0, 16, 32, 64],
    ]


def test_new_game_spawns_two_tiles(session):
    assert tile_count(session.board) == 2
    assert session.score == 0
    assert session.state == READY
    assert session.snapshot is None
    assert not session.can_undo


def test_apply_direction_commits_move_and_spawn(fixed_session):
    s = fixed_session
    s.board = [[0, 0, 2, 2], [0] * 4, [0] * 4, [0] * 4]
    result, spawn = s.apply_direction('left')
    assert result.board[0] == [4, 0, 0, 0]
    assert spawn == Spawn(Cell(0, 1), 2)
    assert s.board[0] == [4, 2, 0, 0]
    assert s.score == 4
    assert s.best_score == 4
    assert s.last_spawn == spawn
    assert s.last_merged == {Cell(0, 0)}
    assert s.can_undo


def test_noop_move_changes_nothing(session):
    session.board = [[2, 4, 8, 16], [0] * 4, [0] * 4, [0] * 4]
    assert session.apply_direction('left') is None
    result = session.resolve('left')
    assert not result.moved
    assert not session.in_flight
    assert session.snapshot is None
    assert session.board[0] == [2, 4, 8, 16]


def test_unknown_direction_is_ignored(session):
    before = [row[:] for row in session.board]
    assert session.resolve('sideways') is None
    assert session.apply_direction(None) is None
    assert session.board == before


def test_resolve_does_not_touch_committed_state(fixed_session):
    s = fixed_session
    s.board = [[2, 2, 0, 0], [0] * 4, [0] * 4, [0] * 4]
    result = s.resolve('right')
    assert result.moved
    assert s.in_flight
    assert s.board[0] == [2, 2, 0, 0]
    assert s.score == 0

    spawn = s.commit()
    assert not s.in_flight
    assert s.board[0] == [2, 0, 0, 4]
    assert spawn == Spawn(Cell(0, 0), 2)


def test_commands_rejected_while_in_flight(fixed_session):
    s = fixed_session
    s.board = [[2, 2, 0, 0], [0] * 4, [0] * 4, [0] * 4]
    s.apply_direction('down')
    s.resolve('up')
    assert s.resolve('left') is None
    assert not s.undo()
    s.commit()
    assert s.undo()


def test_commit_without_pending_is_noop(session):
    before = [row[:] for row in session.board]
    assert session.commit() is None
    assert session.board == before
    assert session.snapshot is None


def test_undo_restores_pre_move_state(session):
    session.board = [[2, 2, 4, 0], [0, 0, 0, 4], [0] * 4, [0] * 4]
    session.score = 12
    before = [row[:] for row in session.board]
    session.apply_direction('left')
    assert session.score == 16

    assert session.undo()
    assert session.board == before
    assert session.score == 12
    assert not session.won
    assert not session.game_over
    assert session.last_spawn is None
    assert not session.undo()
    assert session.board == before


def test_undo_keeps_best_score(session, store):
    session.board = [[2, 2, 0, 0], [0] * 4, [0] * 4, [0] * 4]
    session.apply_direction('left')
    session.undo()
    assert session.score == 0
    assert session.best_score == 4
    assert store.get(STORAGE_KEYS['best']) == '4'


def test_win_is_flagged_once(fixed_session):
    s = fixed_session
    s.board = [[1024, 1024, 0, 0], [0] * 4, [0] * 4, [0] * 4]
    s.apply_direction('left')
    assert s.won
    assert s.state == WON
    assert s.overlay == 'win'

    s.keep_going()
    assert s.overlay is None
    s.apply_direction('right')
    assert s.won
    assert s.overlay is None


def test_moves_accepted_after_win(fixed_session):
    s = fixed_session
    s.board = [[1024, 1024, 0, 0], [0] * 4, [0] * 4, [0] * 4]
    s.apply_direction('left')
    assert s.apply_direction('down') is not None


def test_undo_after_win_clears_it(fixed_session):
    s = fixed_session
    s.board = [[1024, 1024, 0, 0], [0] * 4, [0] * 4, [0] * 4]
    s.apply_direction('left')
    s.undo()
    assert not s.won
    assert s.state == READY


def test_game_over_is_sticky(fixed_session):
    s = fixed_session
    s.board = almost_locked()
    result, spawn = s.apply_direction('left')
    assert spawn == Spawn(Cell(3, 3), 2)
    assert s.game_over
    assert s.state == LOST
    assert s.overlay == 'lose'

    locked = [row[:] for row in s.board]
    for direction in ('up', 'down', 'left', 'right'):
        assert s.resolve(direction) is None
    assert s.board == locked


def test_undo_out_of_game_over(fixed_session):
    s = fixed_session
    s.board = almost_locked()
    s.apply_direction('left')
    assert s.undo()
    assert not s.game_over
    assert s.board == almost_locked()


def test_new_game_resets_everything(fixed_session):
    s = fixed_session
    s.board = almost_locked()
    s.apply_direction('left')
    s.new_game()
    assert s.state == READY
    assert s.score == 0
    assert s.snapshot is None
    assert s.overlay is None
    assert tile_count(s.board) == 2


def test_new_game_discards_pending_move(fixed_session):
    s = fixed_session
    s.board = [[2, 2, 0, 0], [0] * 4, [0] * 4, [0] * 4]
    s.resolve('left')
    s.new_game()
    assert not s.in_flight
    assert s.commit() is None


def test_score_is_monotonic(session):
    last = session.score
    for step in range(300):
        if session.game_over:
            break
        session.apply_direction(('left', 'up', 'right', 'down')[step % 4])
        assert session.score >= last
        last = session.score
    assert session.best_score >= session.score


def test_best_score_loaded_from_store():
    s = GameSession(MemoryStore({STORAGE_KEYS['best']: '512'}))
    assert s.best_score == 512


def test_malformed_best_score_is_ignored(caplog):
    with caplog.at_level(logging.WARNING, logger='session'):
        s = GameSession(MemoryStore({STORAGE_KEYS['best']: 'lots'}))
    assert s.best_score == 0
    assert "malformed best score" in caplog.text
    assert GameSession(MemoryStore({STORAGE_KEYS['best']: '-3'})).best_score == 0


def test_best_score_not_written_without_improvement(fixed_session, store):
    s = fixed_session
    s.best_score = 100
    s.board = [[2, 2, 0, 0], [0] * 4, [0] * 4, [0] * 4]
    s.apply_direction('left')
    assert s.best_score == 100
    assert store.get(STORAGE_KEYS['best']) is None


def test_preferences_defaults(store):
    prefs = Preferences(store)
    assert prefs.theme == 'neumorph'
    assert not prefs.sound_enabled


def test_preferences_load_and_toggle():
    store = MemoryStore({STORAGE_KEYS['theme']: 'contrast', STORAGE_KEYS['sound']: '1'})
    prefs = Preferences(store)
    assert prefs.theme == 'contrast'
    assert prefs.sound_enabled

    assert prefs.toggle_theme() == 'neumorph'
    assert store.get(STORAGE_KEYS['theme']) == 'neumorph'
    assert prefs.toggle_sound() is False
    assert store.get(STORAGE_KEYS['sound']) == '0'


def test_preferences_ignore_unknown_theme():
    prefs = Preferences(MemoryStore({STORAGE_KEYS['theme']: 'neon', STORAGE_KEYS['sound']: 'yes'}))
    assert prefs.theme == 'neumorph'
    assert not prefs.sound_enabled
