# astarviz/app/viewer.py
#!/usr/bin/env python3
"""
A* Visualizer Viewer: grid editing + animated search + moving obstacles

- Mouse:
    1st click    -> place start
    2nd click    -> place end
    click / drag -> toggle / paint obstacles
- Keyboard:
    [SPACE]      -> start search
    [C]          -> clear path
    [X]          -> clear all
    [O]          -> random obstacles
    [M]          -> spawn moving obstacles
    [A]          -> toggle animation
    [D]          -> toggle dynamic obstacles
    [+]/[-]      -> steps/sec
    [Q]/[ESC]    -> quit
"""

import logging
import sys
import time
from typing import Dict, List, Optional, Tuple

import pygame

from astarviz.app.particles import ParticleSystem
from astarviz.core.session import Session
from astarviz.core.types import Cell, StepResult, VisualizerError, DONE, NO_PATH

logger = logging.getLogger(__name__)

# ---------- Config ----------
PANEL_W = 320            # right band: metrics + buttons
GRID_MARGIN = 16
FONT_NAME = None  # default pygame font

# Colors
WHITE       = (255,255,255)
GRID_LINE   = ( 34, 34, 34)
CELL_BG     = ( 18, 20, 26)
OBSTACLE    = ( 51, 51, 51)
START_GREEN = (  0,255,  0)
END_RED     = (255,  0,  0)
PATH_YELLOW = (255,255,  0)
EXPLORED_A  = (  0,200,200, 80)
FRONTIER_A  = (255,  0,255, 80)
MOVER_ORANGE= (255,140,  0)

CARD_BG     = (24,28,36,220)
CARD_HI     = (255,255,255,18)
TEXT_LIGHT  = (230,235,240)
TEXT_ERROR  = (255,120,120)
ACCENT_GOLD = (255,210,0)

# particle colors (match the cell overlays)
P_START    = (  0,255,  0)
P_END      = (255,  0,  0)
P_EXPLORED = (  0,255,255)
P_FRONTIER = (255,  0,255)
P_PATH     = (255,255,  0)


# ---------- Simple UI Button ----------
class UIButton:
    def __init__(self, label: str, rect: pygame.Rect, callback, *, togglable: bool = False):
        self.label = label
        self.rect = rect
        self.callback = callback
        self.hover = False
        self.togglable = togglable
        self.active = False  # highlight state

    def set_active(self, value: bool):
        self.active = bool(value)

    def draw(self, screen: pygame.Surface, font: pygame.font.Font):
        base = pygame.Surface(self.rect.size, pygame.SRCALPHA)
        if self.active and self.togglable:
            bg = (58, 86, 160, 235)
        elif self.hover:
            bg = (46, 50, 60, 230)
        else:
            bg = (36, 40, 48, 220)
        pygame.draw.rect(base, bg, base.get_rect(), border_radius=10)
        screen.blit(base, self.rect.topleft)

        if self.active and self.togglable:
            pygame.draw.rect(screen, (120, 170, 255, 255), self.rect, width=2, border_radius=10)

        text = font.render(self.label, True, (235,238,242))
        screen.blit(text, text.get_rect(center=self.rect.center))

    def handle_mouse(self, event: pygame.event.Event) -> bool:
        if event.type == pygame.MOUSEMOTION:
            self.hover = self.rect.collidepoint(event.pos)
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.rect.collidepoint(event.pos):
                self.callback()
                return True
        return False


# ---------- Viewer ----------
class Viewer:
    def __init__(self, session: Session, cell_size: int = 20, steps_per_sec: int = 20):
        pygame.init()

        self.session = session
        self.cell_size = cell_size
        self.font_small = pygame.font.Font(FONT_NAME, 14)
        self.font = pygame.font.Font(FONT_NAME, 18)
        self.font_big = pygame.font.Font(FONT_NAME, 22)

        grid = session.grid
        win_w = GRID_MARGIN*2 + grid.cols * cell_size + PANEL_W
        win_h = max(GRID_MARGIN*2 + grid.rows * cell_size, 520)
        self.screen = pygame.display.set_mode((win_w, win_h))
        pygame.display.set_caption("A* Pathfinding Visualizer")

        self._buttons: List[UIButton] = []
        self._grid_origin = (GRID_MARGIN, GRID_MARGIN)
        self._right_band = pygame.Rect(win_w - PANEL_W, 0, PANEL_W, win_h)
        self._build_buttons()

        self.particles = ParticleSystem()
        self._path_bursts: List[Cell] = []   # one burst per frame, start -> end
        self._drawing_obstacles = False

        self.clock = pygame.time.Clock()
        self.steps_per_sec = steps_per_sec
        self._last_step_t = 0.0
        self.message = "Click to place the start"
        self.message_is_error = False
        self._last_metrics: Dict[str, object] = {}

    # ---------- geometry ----------
    def cell_at(self, pos: Tuple[int, int]) -> Optional[Cell]:
        """Pixel position -> grid cell, or None outside the grid."""
        ox, oy = self._grid_origin
        px, py = pos
        if px < ox or py < oy:
            return None
        c = ((px - ox) // self.cell_size, (py - oy) // self.cell_size)
        return c if self.session.grid.in_bounds(c) else None

    def cell_center(self, c: Cell) -> Tuple[int, int]:
        ox, oy = self._grid_origin
        cs = self.cell_size
        return (ox + c[0]*cs + cs//2, oy + c[1]*cs + cs//2)

    # ---------- main loop ----------
    def run(self):
        while True:
            self._handle_events()
            self._tick()
            self._draw()
            self.clock.tick(60)

    def _tick(self):
        t0 = time.time()
        step_interval = 1.0 / max(1, self.steps_per_sec)
        expand = t0 - self._last_step_t >= step_interval
        if expand:
            self._last_step_t = t0
        was_running = self.session.running
        res = self.session.tick(expand=expand)
        if res is not None:
            self._consume(res)
        elif was_running and not self.session.running:
            self._set_message("Search cancelled")
        if self._path_bursts:
            c = self._path_bursts.pop(0)
            self.particles.burst(*self.cell_center(c), P_PATH, 5)
        self.particles.update()

    def _consume(self, res: StepResult):
        """Turn one search result into particles + status text."""
        for c in res.closed:
            self.particles.burst(*self.cell_center(c), P_EXPLORED, 3)
        for c in res.opened:
            self.particles.burst(*self.cell_center(c), P_FRONTIER, 2)
        if res.metrics:
            self._last_metrics = res.metrics
        if res.status == DONE:
            grid = self.session.grid
            self._path_bursts = [c for c in res.path if c not in (grid.start, grid.end)]
            self._set_message(f"Path found: {res.metrics.get('path_len', 0)} steps")
        elif res.status == NO_PATH:
            self._set_message("No path found!", error=True)

    def _set_message(self, text: str, error: bool = False):
        self.message = text
        self.message_is_error = error

    # ---------- actions ----------
    def _guarded(self, action, *args):
        """Run a session action; surface VisualizerError in the status line."""
        try:
            return action(*args)
        except VisualizerError as ex:
            logger.info("Rejected: %s", ex)
            self._set_message(str(ex), error=True)
            return None

    def start_search(self):
        res = self._guarded(self.session.start_search)
        if res is not None:
            self.particles.clear()
            self._path_bursts = []
            self._set_message("Searching…")
            self._consume(res)

    def clear_path(self):
        self.session.reset_path()
        self._path_bursts = []
        self._last_metrics = {}
        self._set_message("Cancelling…" if self.session.cancel_pending else "Path cleared")

    def clear_all(self):
        self.session.reset_all()
        self.particles.clear()
        self._path_bursts = []
        self._last_metrics = {}
        self._set_message("Cancelling…" if self.session.cancel_pending else "Click to place the start")

    def random_obstacles(self):
        if self._guarded(self.session.randomize_obstacles) is not None:
            self._last_metrics = {}
            self._set_message("Random obstacles added")

    def spawn_movers(self):
        batch = self.session.spawn_moving_obstacles()
        self._set_message(f"Spawned {len(batch)} moving obstacles")

    def toggle_animation(self):
        on = self.session.toggle_animation()
        self._set_message(f"Animation {'on' if on else 'off'}")
        self._refresh_active_states()

    def toggle_dynamic(self):
        on = self.session.toggle_dynamic()
        self._set_message(f"Dynamic obstacles {'on' if on else 'off'}")
        self._refresh_active_states()

    def _bump_speed(self, dv: int):
        self.steps_per_sec = int(max(1, min(60, self.steps_per_sec + dv)))

    def handle_key(self, key: int) -> bool:
        """Dispatch one key press. Returns False when the viewer should quit."""
        if key in (pygame.K_ESCAPE, pygame.K_q):
            return False
        handlers = {
            pygame.K_SPACE: self.start_search,
            pygame.K_c: self.clear_path,
            pygame.K_x: self.clear_all,
            pygame.K_o: self.random_obstacles,
            pygame.K_m: self.spawn_movers,
            pygame.K_a: self.toggle_animation,
            pygame.K_d: self.toggle_dynamic,
            pygame.K_PLUS: lambda: self._bump_speed(+1),
            pygame.K_EQUALS: lambda: self._bump_speed(+1),
            pygame.K_MINUS: lambda: self._bump_speed(-1),
            pygame.K_UNDERSCORE: lambda: self._bump_speed(-1),
        }
        fn = handlers.get(key)
        if fn is not None:
            fn()
        return True

    def handle_click(self, pos: Tuple[int, int]):
        c = self.cell_at(pos)
        if c is None or self.session.running:
            return
        what = self._guarded(self.session.edit_cell, c)
        if what == "start":
            self.particles.burst(*self.cell_center(c), P_START)
            self._set_message("Click to place the end")
        elif what == "end":
            self.particles.burst(*self.cell_center(c), P_END)
            self._set_message("Draw obstacles, then press SPACE")
        elif what == "obstacle":
            self._drawing_obstacles = True

    def handle_drag(self, pos: Tuple[int, int]):
        if not self._drawing_obstacles or self.session.running:
            return
        c = self.cell_at(pos)
        if c is not None:
            self.session.paint_obstacle(c)

    def _quit(self):
        pygame.quit(); sys.exit(0)

    def _handle_events(self):
        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                self._quit()
            elif e.type == pygame.KEYDOWN:
                if not self.handle_key(e.key):
                    self._quit()
            elif e.type in (pygame.MOUSEMOTION, pygame.MOUSEBUTTONDOWN):
                if any(b.handle_mouse(e) for b in self._buttons):
                    continue
                if e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
                    self.handle_click(e.pos)
                elif e.type == pygame.MOUSEMOTION:
                    self.handle_drag(e.pos)
            elif e.type == pygame.MOUSEBUTTONUP:
                self._drawing_obstacles = False

    # ---------- drawing ----------
    def _draw(self):
        self.screen.fill(CELL_BG)
        self._draw_grid()
        self._draw_movers()
        self.particles.draw(self.screen)
        self._draw_metrics_and_buttons()
        pygame.display.flip()

    def _draw_grid(self):
        cs = self.cell_size
        ox, oy = self._grid_origin
        grid = self.session.grid
        overlay_explored = pygame.Surface((cs, cs), pygame.SRCALPHA); overlay_explored.fill(EXPLORED_A)
        overlay_frontier = pygame.Surface((cs, cs), pygame.SRCALPHA); overlay_frontier.fill(FRONTIER_A)

        for n in grid:
            rect = pygame.Rect(ox + n.x*cs, oy + n.y*cs, cs, cs)
            if n.is_obstacle:
                pygame.draw.rect(self.screen, OBSTACLE, rect)
            elif n.is_start:
                pygame.draw.rect(self.screen, START_GREEN, rect)
            elif n.is_end:
                pygame.draw.rect(self.screen, END_RED, rect)
            elif n.is_path:
                pygame.draw.rect(self.screen, PATH_YELLOW, rect)
            elif n.is_explored:
                self.screen.blit(overlay_explored, rect.topleft)
            elif n.is_frontier:
                self.screen.blit(overlay_frontier, rect.topleft)
            pygame.draw.rect(self.screen, GRID_LINE, rect, 1)

    def _draw_movers(self):
        cs = self.cell_size
        ox, oy = self._grid_origin
        for o in self.session.simulator.obstacles:
            cx = int(ox + o.x*cs + cs/2)
            cy = int(oy + o.y*cs + cs/2)
            color = MOVER_ORANGE if self.session.dynamic else (120, 90, 60)
            pygame.draw.circle(self.screen, color, (cx, cy), max(4, cs//2 - 2))

    # ---------- buttons + metrics ----------
    def _build_buttons(self):
        self._buttons.clear()
        rb = self._right_band
        x = rb.x + 16
        y = rb.y + 250  # leaves space for metrics card above
        w = max(160, rb.width - 32)
        h = 32
        gap = 8

        def add(label, cb, *, togglable=False, store_as: str | None = None):
            nonlocal y
            btn = UIButton(label, pygame.Rect(x, y, w, h), cb, togglable=togglable)
            self._buttons.append(btn)
            if store_as:
                setattr(self, store_as, btn)
            y += h + gap

        add("Find Path", self.start_search)
        add("Clear Path", self.clear_path)
        add("Clear All", self.clear_all)
        add("Random Obstacles", self.random_obstacles)
        add("Spawn Moving Obstacles", self.spawn_movers)
        add("Animation", self.toggle_animation, togglable=True, store_as="btn_anim")
        add("Dynamic Obstacles", self.toggle_dynamic, togglable=True, store_as="btn_dyn")

        minus_rect = pygame.Rect(x, y, (w-8)//2, h)
        plus_rect  = pygame.Rect(x + (w-8)//2 + 8, y, (w-8)//2, h)
        self._buttons.append(UIButton("Speed −", minus_rect, lambda: self._bump_speed(-1)))
        self._buttons.append(UIButton("Speed +", plus_rect,  lambda: self._bump_speed(+1)))

        self._refresh_active_states()

    def _refresh_active_states(self):
        if hasattr(self, "btn_anim"):
            self.btn_anim.set_active(self.session.animate)
        if hasattr(self, "btn_dyn"):
            self.btn_dyn.set_active(self.session.dynamic)

    def _draw_metrics_and_buttons(self):
        rb = self._right_band

        card_h = 230
        card = pygame.Surface((rb.width - 20, card_h), pygame.SRCALPHA)
        pygame.draw.rect(card, CARD_BG, card.get_rect(), border_radius=14)
        hi = pygame.Surface((card.get_width(), 24), pygame.SRCALPHA)
        pygame.draw.rect(hi, CARD_HI, hi.get_rect(), border_radius=14)
        card.blit(hi, (0,0))
        self.screen.blit(card, (rb.x + 10, rb.y + 10))

        x0 = rb.x + 24
        y0 = rb.y + 18

        def line(text, big=False, color=TEXT_LIGHT):
            nonlocal y0
            f = self.font_big if big else self.font
            surf = f.render(text, True, color)
            self.screen.blit(surf, (x0, y0))
            y0 += surf.get_height() + 6

        line("A* Search", big=True, color=ACCENT_GOLD)
        m = self._last_metrics
        line(f"Status: {self.session.status}")
        line(f"Explored: {m.get('closed_count', 0)}")
        line(f"Frontier: {m.get('open_size', 0)}")
        line(f"Path Len: {m.get('path_len', 0)}")
        line(f"Speed: {self.steps_per_sec} steps/s")
        line(f"Movers: {len(self.session.simulator)}")
        line(self.message, color=TEXT_ERROR if self.message_is_error else TEXT_LIGHT)

        for b in self._buttons:
            b.draw(self.screen, self.font_small)
