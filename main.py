import logging
import sys

from PyQt6.QtWidgets import QApplication, QMainWindow, QWidget
from PyQt6.QtCore import Qt, QTimer, QRectF, QSettings
from PyQt6.QtGui import QPainter, QColor, QBrush, QFont

from game_logic import BOARD_SIZE, WIN_VALUE, Cell
from session import GameSession

logger = logging.getLogger(__name__)

ORGANIZATION = "tilemerge"
APPLICATION = "2048"

ANIM_MS = 180
FRAME_MS = 16  # ~60 FPS
SWIPE_THRESHOLD = 28

KEY_DIRECTIONS = {
    Qt.Key.Key_Left: 'left',
    Qt.Key.Key_Right: 'right',
    Qt.Key.Key_Up: 'up',
    Qt.Key.Key_Down: 'down',
}

PALETTES = {
    'neumorph': {
        'background': "#faf8ef", 'board': "#bbada0", 'text': "#776e65", 'light_text': "#f9f6f2",
        'tiles': {
            0: (205, 193, 180), 2: (238, 228, 218), 4: (237, 224, 200),
            8: (242, 177, 121), 16: (245, 149, 99), 32: (246, 124, 95),
            64: (246, 94, 59), 128: (237, 207, 114), 256: (237, 204, 97),
            512: (237, 200, 80), 1024: (237, 197, 63), 2048: (237, 194, 46),
        },
        'super': (60, 58, 50),
    },
    'contrast': {
        'background': "#101010", 'board': "#303030", 'text': "#f0f0f0", 'light_text': "#101010",
        'tiles': {
            0: (64, 64, 64), 2: (255, 255, 255), 4: (255, 236, 153),
            8: (255, 196, 0), 16: (255, 140, 0), 32: (255, 82, 82),
            64: (230, 0, 0), 128: (0, 200, 255), 256: (0, 150, 255),
            512: (80, 100, 255), 1024: (170, 80, 255), 2048: (0, 230, 118),
        },
        'super': (255, 255, 0),
    },
}


class SettingsStore:
    """Key-value store on top of QSettings."""

    def __init__(self, settings=None):
        self.settings = settings if settings is not None else QSettings(ORGANIZATION, APPLICATION)

    def get(self, key):
        value = self.settings.value(key)
        return None if value is None else str(value)

    def set(self, key, value):
        self.settings.setValue(key, str(value))


class GameWidget(QWidget):
    def __init__(self, parent=None, session=None):
        super().__init__(parent)
        self.session = session if session is not None else GameSession(SettingsStore())
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.status = "Use arrow keys or swipe to play."

        # Animation state
        self.anim_timer = QTimer(self)
        self.anim_timer.setInterval(FRAME_MS)
        self.anim_timer.timeout.connect(self.animate)
        self.anim_progress = 1.0  # 0.0 to 1.0
        self.current_result = None
        self.anim_tiles = []  # (src, dst, value)

        # Mouse Gesture state
        self.mouse_start_pos = None

    @property
    def palette_colors(self):
        return PALETTES[self.session.prefs.theme]

    def keyPressEvent(self, event):
        key = event.key()
        if key in KEY_DIRECTIONS:
            self.handle_move(KEY_DIRECTIONS[key])
        elif key == Qt.Key.Key_N:
            self.new_game()
        elif key in (Qt.Key.Key_U, Qt.Key.Key_Backspace):
            self.undo()
        elif key == Qt.Key.Key_T:
            self.toggle_theme()
        elif key == Qt.Key.Key_M:
            self.toggle_sound()
        elif key in (Qt.Key.Key_Return, Qt.Key.Key_Space):
            self.keep_going()
        else:
            super().keyPressEvent(event)

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self.mouse_start_pos = event.position()

    def mouseReleaseEvent(self, event):
        if self.mouse_start_pos is not None:
            diff = event.position() - self.mouse_start_pos
            dx, dy = diff.x(), diff.y()
            if max(abs(dx), abs(dy)) >= SWIPE_THRESHOLD:
                if abs(dx) > abs(dy):
                    self.handle_move('right' if dx > 0 else 'left')
                else:
                    self.handle_move('down' if dy > 0 else 'up')
        self.mouse_start_pos = None

    def handle_move(self, direction):
        if self.session.overlay == 'win':
            return
        result = self.session.resolve(direction)
        if result is None:
            return
        if not result.moved:
            self.set_status("No tiles moved.")
            return

        self.current_result = result
        self.anim_tiles = [(m.src, m.dst, m.value) for m in result.moves]
        for merge in result.merges:
            half = merge.value // 2
            self.anim_tiles.append((merge.src1, merge.dst, half))
            self.anim_tiles.append((merge.src2, merge.dst, half))
        if result.merges and self.session.prefs.sound_enabled:
            QApplication.beep()
        self.anim_progress = 0.0
        self.anim_timer.start()
        self.update()

    def animate(self):
        self.anim_progress += FRAME_MS / ANIM_MS
        if self.anim_progress >= 1.0:
            self.anim_progress = 1.0
            self.anim_timer.stop()
            self.finish_move()
        self.update()

    def finish_move(self):
        self.session.commit()
        self.current_result = None
        self.anim_tiles = []
        if self.session.overlay == 'win':
            self.set_status(f"You reached {WIN_VALUE}.")
        elif self.session.overlay == 'lose':
            self.set_status("No more valid moves.")
        else:
            self.set_status("Move complete.")

    def new_game(self):
        self.anim_timer.stop()
        self.anim_progress = 1.0
        self.current_result = None
        self.anim_tiles = []
        self.session.new_game()
        self.set_status("Use arrow keys or swipe to play.")

    def undo(self):
        if self.session.undo():
            self.set_status("Undid last move.")

    def keep_going(self):
        if self.session.overlay == 'win':
            self.session.keep_going()
            self.set_status("Keep going.")

    def toggle_theme(self):
        theme = self.session.prefs.toggle_theme()
        logger.debug("Theme set to %s", theme)
        self.window().setStyleSheet(f"background-color: {PALETTES[theme]['background']};")
        self.update()

    def toggle_sound(self):
        enabled = self.session.prefs.toggle_sound()
        logger.debug("Sound enabled: %s", enabled)
        self.set_status("Sound: On" if enabled else "Sound: Off")

    def set_status(self, message):
        self.status = message
        self.update()

    def paintEvent(self, event):
        colors = self.palette_colors
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        # 1. Score & status
        painter.setPen(QColor(colors['text']))
        painter.setFont(QFont("Verdana", 20, QFont.Weight.Bold))
        painter.drawText(20, 40, f"Score: {self.session.score}")
        painter.drawText(self.width() - 220, 40, f"Best: {self.session.best_score}")
        painter.setFont(QFont("Verdana", 12))
        painter.drawText(20, 70, self.status)

        grid_size = 400
        start_x = (self.width() - grid_size) // 2
        start_y = (self.height() - grid_size) // 2 + 30

        painter.setBrush(QBrush(QColor(colors['board'])))
        painter.setPen(Qt.PenStyle.NoPen)
        painter.drawRoundedRect(start_x, start_y, grid_size, grid_size, 10, 10)

        cell_margin = 10
        cell_size = (grid_size - ((BOARD_SIZE + 1) * cell_margin)) // BOARD_SIZE

        def get_rect(cell):
            x = start_x + cell_margin + cell.col * (cell_size + cell_margin)
            y = start_y + cell_margin + cell.row * (cell_size + cell_margin)
            return QRectF(x, y, cell_size, cell_size)

        # 2. Empty cells
        painter.setBrush(QBrush(QColor(*colors['tiles'][0])))
        for r in range(BOARD_SIZE):
            for c in range(BOARD_SIZE):
                painter.drawRoundedRect(get_rect(Cell(r, c)), 5, 5)

        # 3. Tiles
        board = self.session.board
        if self.current_result is not None:
            moving = {src for src, _, _ in self.anim_tiles}
            for r in range(BOARD_SIZE):
                for c in range(BOARD_SIZE):
                    if board[r][c] != 0 and Cell(r, c) not in moving:
                        self.draw_tile(painter, get_rect(Cell(r, c)), board[r][c])
            for src, dst, val in self.anim_tiles:
                rect_from = get_rect(src)
                rect_to = get_rect(dst)
                curr_x = rect_from.x() + (rect_to.x() - rect_from.x()) * self.anim_progress
                curr_y = rect_from.y() + (rect_to.y() - rect_from.y()) * self.anim_progress
                self.draw_tile(painter, QRectF(curr_x, curr_y, cell_size, cell_size), val)
        else:
            spawn_cell = self.session.last_spawn.cell if self.session.last_spawn else None
            for r in range(BOARD_SIZE):
                for c in range(BOARD_SIZE):
                    if board[r][c] == 0:
                        continue
                    cell = Cell(r, c)
                    rect = get_rect(cell)
                    if cell in self.session.last_merged:
                        rect = rect.adjusted(-3, -3, 3, 3)
                    elif cell == spawn_cell:
                        rect = rect.adjusted(4, 4, -4, -4)
                    self.draw_tile(painter, rect, board[r][c])

        # 4. Overlay
        if self.session.overlay:
            painter.setBrush(QBrush(QColor(255, 255, 255, 180)))
            painter.setPen(Qt.PenStyle.NoPen)
            painter.drawRoundedRect(start_x, start_y, grid_size, grid_size, 10, 10)
            painter.setPen(QColor("#e91e63"))
            painter.setFont(QFont("Verdana", 36, QFont.Weight.ExtraBold))
            if self.session.overlay == 'win':
                title = f"You made {WIN_VALUE}!\nEnter to keep going"
            else:
                title = "Game over\nN for a new game"
            painter.drawText(QRectF(start_x, start_y, grid_size, grid_size), Qt.AlignmentFlag.AlignCenter, title)
        painter.end()

    def draw_tile(self, painter, rect, val):
        colors = self.palette_colors
        color = colors['tiles'].get(val, colors['super'])
        painter.setBrush(QBrush(QColor(*color)))
        painter.setPen(Qt.PenStyle.NoPen)
        painter.drawRoundedRect(rect, 5, 5)

        if val != 0:
            font_size = 36 if val < 100 else (28 if val < 1000 else 22)
            painter.setPen(QColor(colors['text'] if val in (2, 4) else colors['light_text']))
            painter.setFont(QFont("Verdana", font_size, QFont.Weight.Bold))
            painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, str(val))




class MainWindow(QMainWindow):
    def __init__(self, session=None):
        super().__init__()
        self.setWindowTitle("2048")
        self.setGeometry(100, 100, 500, 600)
        self.game_widget = GameWidget(self, session)
        self.setCentralWidget(self.game_widget)
        theme = self.game_widget.session.prefs.theme
        self.setStyleSheet(f"background-color: {PALETTES[theme]['background']};")

    def keyPressEvent(self, event):
        if event.key() == Qt.Key.Key_Escape: self.close()
        else: self.game_widget.keyPressEvent(event)


def run():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")
    app = QApplication(sys.argv)
    window = MainWindow()
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(run())
