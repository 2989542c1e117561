import logging
import random

import pygame

from accounts import login, register
from classes import EventType, Game, GameOverReason, SessionState
from database import get_database
from levels import LevelCatalog
from scoreboard import ScoreBoard, format_time, summarize
from settings import configure_logging, load_settings, toggle_setting
from sounds import SoundPlayer
from timers import Scheduler

logger = logging.getLogger(__name__)

pygame.display.init()
pygame.font.init()

# Colors
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
GRAY = (200, 200, 200)
DARK_GRAY = (100, 100, 100)
BLUE = (0, 100, 255)
GREEN = (0, 200, 0)
RED = (200, 0, 0)
CARD_BACK_COLOR = (50, 50, 200)
CARD_FRONT_COLOR = (220, 220, 255)
CARD_MATCHED_COLOR = (200, 255, 200)

# Fonts
FONT_SMALL = pygame.font.SysFont('Arial', 20)
FONT_MEDIUM = pygame.font.SysFont('Arial', 30)
FONT_LARGE = pygame.font.SysFont('Arial', 40)
FONT_CARD = pygame.font.SysFont('Segoe UI Emoji,Noto Color Emoji,Apple Color Emoji,Arial', 40)

# Game settings
FPS = 60
CARD_MARGIN = 10

GAME_OVER_TEXT = {
    GameOverReason.MOVES_EXCEEDED: "Out of moves!",
    GameOverReason.TIME_UP: "Time's up!",
}


class GameGUI:
    """Graphical user interface for the memory card game."""

    def __init__(self, settings):
        """Initialize the game GUI."""
        self.settings = settings
        self.clock = pygame.time.Clock()
        self.screen = None
        self.width = 800
        self.height = 600
        self.board_margin_top = 120
        self.db = get_database(settings["db_file"])
        self.sound_player = SoundPlayer(settings["sound_dir"], settings["sound_enabled"])
        self.catalog = LevelCatalog(random.Random())
        self.scheduler = Scheduler()
        self.user_id = None
        self.username = ""
        self.game = None
        self.board_state = None
        self.text_cache = {}

    def setup_window(self):
        """Set up the game window."""
        self.screen = pygame.display.set_mode((self.width, self.height))
        pygame.display.set_caption("Memory Match")

    def close(self):
        """Release timers, audio and the database connection."""
        if self.game:
            self.game.close()
        self.scheduler.cancel_all()
        self.sound_player.release()
        self.db.close()

    # Drawing helpers

    def render_text(self, font, text, color):
        key = (id(font), text, color)
        if key not in self.text_cache:
            if len(self.text_cache) > 200:
                self.text_cache.clear()
            self.text_cache[key] = font.render(text, True, color)
        return self.text_cache[key]

    def draw_centered(self, font, text, color, y):
        surface = self.render_text(font, text, color)
        self.screen.blit(surface, (self.width // 2 - surface.get_width() // 2, y))

    def draw_button(self, rect, text, mouse_pos):
        color = BLUE if rect.collidepoint(mouse_pos) else DARK_GRAY
        pygame.draw.rect(self.screen, color, rect, border_radius=8)
        label = self.render_text(FONT_SMALL, text, WHITE)
        self.screen.blit(label, label.get_rect(center=rect.center))

    def button_column(self, labels, top, width=260, height=50, gap=15):
        x = self.width // 2 - width // 2
        return [pygame.Rect(x, top + i * (height + gap), width, height) for i in range(len(labels))]

    def handle_quit(self, event):
        if event.type == pygame.QUIT:
            raise SystemExit

    # Screens

    def get_credentials(self):
        """Login / registration form. Returns once a user is signed in."""
        fields = {"username": "", "password": "", "confirm": ""}
        active = "username"
        register_mode = False
        error = None

        while True:
            mouse_pos = pygame.mouse.get_pos()
            names = ["username", "password"] + (["confirm"] if register_mode else [])
            field_rects = {name: pygame.Rect(self.width // 2 - 150, 160 + i * 70, 300, 45)
                           for i, name in enumerate(names)}
            submit_rect = pygame.Rect(self.width // 2 - 150, 390, 140, 45)
            toggle_rect = pygame.Rect(self.width // 2 + 10, 390, 140, 45)

            for event in pygame.event.get():
                self.handle_quit(event)
                if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    for name, rect in field_rects.items():
                        if rect.collidepoint(event.pos):
                            active = name
                    if toggle_rect.collidepoint(event.pos):
                        register_mode = not register_mode
                        error = None
                        active = "username"
                    elif submit_rect.collidepoint(event.pos):
                        result = self.submit_credentials(fields, register_mode)
                        if result.ok:
                            return
                        error = result.error
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_TAB:
                        active = names[(names.index(active) + 1) % len(names)] if active in names else names[0]
                    elif event.key == pygame.K_RETURN:
                        result = self.submit_credentials(fields, register_mode)
                        if result.ok:
                            return
                        error = result.error
                    elif event.key == pygame.K_BACKSPACE:
                        fields[active] = fields[active][:-1]
                    elif event.unicode and event.unicode.isprintable() and len(fields[active]) < 20:
                        fields[active] += event.unicode
                        error = None

            self.screen.fill(WHITE)
            self.draw_centered(FONT_LARGE, "Memory Match", BLUE, 40)
            self.draw_centered(FONT_SMALL, "Create account" if register_mode else "Log in", BLACK, 100)
            for name, rect in field_rects.items():
                pygame.draw.rect(self.screen, BLUE if name == active else GRAY, rect, 2, border_radius=6)
                shown = "*" * len(fields[name]) if name != "username" else fields[name]
                if not shown:
                    label = self.render_text(FONT_SMALL, name.capitalize(), GRAY)
                else:
                    label = self.render_text(FONT_SMALL, shown, BLACK)
                self.screen.blit(label, (rect.x + 10, rect.y + 10))
            self.draw_button(submit_rect, "Register" if register_mode else "Log in", mouse_pos)
            self.draw_button(toggle_rect, "Back to login" if register_mode else "New account", mouse_pos)
            if error:
                self.draw_centered(FONT_SMALL, error, RED, 460)
            pygame.display.flip()
            self.clock.tick(FPS)

    def submit_credentials(self, fields, register_mode):
        if register_mode:
            result = register(self.db, fields["username"], fields["password"], fields["confirm"])
        else:
            result = login(self.db, fields["username"], fields["password"])
        if result.ok:
            self.user_id = result.user_id
            self.username = result.username
        return result

    def show_start_screen(self):
        """
        Main menu.

        Returns:
            "normal", "relax", "stats", "sound" or "logout"
        """
        sound_label = "Sound: on" if self.settings["sound_enabled"] else "Sound: off"
        labels = ["Normal mode", "Relax mode", "Statistics", sound_label, "Log out"]
        choices = ["normal", "relax", "stats", "sound", "logout"]
        rects = self.button_column(labels, 160)

        while True:
            mouse_pos = pygame.mouse.get_pos()
            for event in pygame.event.get():
                self.handle_quit(event)
                if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    for rect, choice in zip(rects, choices):
                        if rect.collidepoint(event.pos):
                            return choice

            self.screen.fill(WHITE)
            self.draw_centered(FONT_LARGE, f"Welcome, {self.username}!", BLUE, 60)
            for rect, label in zip(rects, labels):
                self.draw_button(rect, label, mouse_pos)
            pygame.display.flip()
            self.clock.tick(FPS)

    def toggle_sound(self):
        """Switch sound effects on or off and remember the choice in settings.json."""
        enabled = toggle_setting(self.settings, "sound_enabled")
        self.sound_player.release()
        self.sound_player = SoundPlayer(self.settings["sound_dir"], enabled)
        logger.info(f"Sound {'enabled' if enabled else 'disabled'}")

    def show_level_select(self, relax_mode):
        """Returns the chosen level index, or None to go back."""
        labels = [f"Level {i + 1}" for i in range(len(self.catalog))] + ["Back"]
        rects = self.button_column(labels, 110, height=45, gap=12)

        while True:
            mouse_pos = pygame.mouse.get_pos()
            for event in pygame.event.get():
                self.handle_quit(event)
                if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    return None
                if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    for index, rect in enumerate(rects):
                        if rect.collidepoint(event.pos):
                            return index if index < len(self.catalog) else None

            self.screen.fill(WHITE)
            self.draw_centered(FONT_MEDIUM, "Relax mode" if relax_mode else "Normal mode", BLUE, 50)
            for rect, label in zip(rects, labels):
                self.draw_button(rect, label, mouse_pos)
            pygame.display.flip()
            self.clock.tick(FPS)

    def get_card_rect(self, index):
        level = self.game.level
        available_height = self.height - self.board_margin_top - 20
        size = min(
            (self.width - 40) // level.columns - CARD_MARGIN,
            available_height // level.rows - CARD_MARGIN,
            120,
        )
        board_width = level.columns * (size + CARD_MARGIN) - CARD_MARGIN
        left = self.width // 2 - board_width // 2
        row, col = divmod(index, level.columns)
        return pygame.Rect(left + col * (size + CARD_MARGIN),
                           self.board_margin_top + row * (size + CARD_MARGIN), size, size)

    def get_card_at_pos(self, pos):
        if not self.board_state:
            return None
        for index, card in enumerate(self.board_state.cards):
            if self.get_card_rect(index).collidepoint(pos):
                return card.card_id
        return None

    def on_game_event(self, event):
        self.sound_player.handle_event(event)
        if event.type is EventType.STATE_CHANGED:
            self.board_state = event.payload["state"]

    def draw_board(self):
        for index, card in enumerate(self.board_state.cards):
            rect = self.get_card_rect(index)
            if card.is_matched:
                color = CARD_MATCHED_COLOR
            elif card.is_revealed:
                color = CARD_FRONT_COLOR
            else:
                color = CARD_BACK_COLOR
            pygame.draw.rect(self.screen, color, rect, border_radius=8)
            pygame.draw.rect(self.screen, BLACK, rect, 2, border_radius=8)
            if not card.is_hidden:
                face = self.render_text(FONT_CARD, card.symbol, BLACK)
                self.screen.blit(face, face.get_rect(center=rect.center))

    def draw_ui(self, state: SessionState):
        level = self.game.level
        self.draw_centered(FONT_MEDIUM, f"Level {self.game.level_index + 1:02d}", BLUE, 15)

        if self.game.relax_mode:
            moves_text = f"Moves: {state.move_count}"
            time_text = f"Time: {format_time(state.elapsed_seconds)}"
        else:
            moves_text = f"Moves: {state.move_count} / {level.max_moves}"
            time_text = f"Time left: {format_time(state.remaining_seconds)}"
        self.screen.blit(self.render_text(FONT_SMALL, moves_text, BLACK), (20, 60))
        time_surface = self.render_text(FONT_SMALL, time_text, BLACK)
        self.screen.blit(time_surface, (self.width - time_surface.get_width() - 20, 60))
        self.draw_centered(FONT_SMALL, "R: restart   1-5: level   Esc: back", DARK_GRAY, 90)

        session = self.game.session
        if self.game.game_won:
            self.draw_overlay("You won!", "R to play the last level again, Esc for the menu", GREEN)
        elif session.level_complete:
            self.draw_overlay("Level cleared!", "Next level coming up...", GREEN)
        elif session.game_over:
            self.draw_overlay(GAME_OVER_TEXT[session.game_over_reason], "R to retry, Esc for the menu", RED)

    def draw_overlay(self, title, subtitle, color):
        overlay = pygame.Surface((self.width, 120), pygame.SRCALPHA)
        overlay.fill((255, 255, 255, 220))
        self.screen.blit(overlay, (0, self.height // 2 - 60))
        self.draw_centered(FONT_LARGE, title, color, self.height // 2 - 45)
        self.draw_centered(FONT_SMALL, subtitle, BLACK, self.height // 2 + 10)

    def run_game(self, relax_mode, start_level):
        """Run the board until the player goes back to the menu."""
        self.game = Game(
            self.catalog, relax_mode=relax_mode, start_level=start_level,
            scheduler=self.scheduler, scoreboard=ScoreBoard(self.db, self.user_id),
            listener=self.on_game_event,
        )
        self.game.start()
        self.clock.tick(FPS)

        while self.game.active:
            for event in pygame.event.get():
                self.handle_quit(event)
                if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    card_id = self.get_card_at_pos(event.pos)
                    if card_id is not None:
                        self.game.flip(card_id)
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        self.game.navigate_back()
                    elif event.key == pygame.K_r:
                        self.game.restart()
                    elif pygame.K_1 <= event.key <= pygame.K_5:
                        self.game.select_level(event.key - pygame.K_1)

            if not self.game.active:
                break

            # Feed real elapsed time into the engine's timers
            self.scheduler.advance(self.clock.tick(FPS))

            self.screen.fill(WHITE)
            self.draw_ui(self.board_state)
            self.draw_board()
            pygame.display.flip()

        self.game = None
        self.board_state = None

    def show_stats_screen(self):
        """
        Lifetime stats, per-level records and recent games of the current user.

        C clears the game history, any other key or a click goes back.
        """
        summary = summarize(self.db, self.user_id)
        stats = summary["stats"]

        while True:
            for event in pygame.event.get():
                self.handle_quit(event)
                if event.type == pygame.KEYDOWN and event.key == pygame.K_c:
                    ScoreBoard(self.db, self.user_id).clear_history()
                    summary = summarize(self.db, self.user_id)
                elif event.type in (pygame.KEYDOWN, pygame.MOUSEBUTTONDOWN):
                    return

            self.screen.fill(WHITE)
            self.draw_centered(FONT_MEDIUM, "Statistics", BLUE, 20)
            y = 70
            if stats:
                lines = [
                    f"Games played: {stats['total_games_played']}",
                    f"Games won: {stats['total_games_won']} ({summary['win_rate']}%)",
                    f"Time played: {format_time(stats['total_time_played'])}",
                    f"Total moves: {stats['total_moves']}",
                    f"Current streak: {stats['current_streak']}   Best streak: {stats['best_streak']}",
                ]
            else:
                lines = ["No games played yet."]
            for line in lines:
                self.screen.blit(self.render_text(FONT_SMALL, line, BLACK), (40, y))
                y += 26

            y += 10
            self.screen.blit(self.render_text(FONT_SMALL, "Records", BLUE), (40, y))
            y += 26
            if not summary["records"]:
                self.screen.blit(self.render_text(FONT_SMALL, "No records yet. Clear a level in normal mode!", GRAY), (40, y))
                y += 26
            for record in summary["records"]:
                line = (f"Level {record['level']}: {format_time(record['best_time'])}, "
                        f"{record['best_moves']} moves, cleared {record['times_completed']}x")
                self.screen.blit(self.render_text(FONT_SMALL, line, BLACK), (40, y))
                y += 24

            y += 10
            recent_title = f"Recent games ({summary['history_count']} in history, C to clear)"
            self.screen.blit(self.render_text(FONT_SMALL, recent_title, BLUE), (40, y))
            y += 26
            for entry in summary["recent_history"]:
                if y > self.height - 30:
                    break
                result = "Won" if entry["completed"] else "Lost"
                mode = " (relax)" if entry["relax_mode"] else ""
                line = f"Level {entry['level']}{mode}: {result}, {entry['moves']} moves, {format_time(entry['time_spent'])}"
                self.screen.blit(self.render_text(FONT_SMALL, line, BLACK), (40, y))
                y += 22

            pygame.display.flip()
            self.clock.tick(FPS)


def main():
    """Main function to run the game."""
    settings = load_settings()
    configure_logging(settings)
    pygame.init()

    gui = GameGUI(settings)
    try:
        gui.setup_window()
        while True:
            gui.get_credentials()
            while gui.user_id is not None:
                choice = gui.show_start_screen()
                if choice == "logout":
                    gui.user_id = None
                elif choice == "stats":
                    gui.show_stats_screen()
                elif choice == "sound":
                    gui.toggle_sound()
                else:
                    relax_mode = choice == "relax"
                    level_index = gui.show_level_select(relax_mode)
                    if level_index is not None:
                        gui.run_game(relax_mode, level_index)
    except SystemExit:
        logger.info("Window closed")
    finally:
        gui.close()
        pygame.quit()


if __name__ == "__main__":
    main()
