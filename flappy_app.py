import argparse
import logging
import sys

import pygame

from flappy_clock import GameRunner
from flappy_game import GameSession, Phase, SCREEN_WIDTH, SCREEN_HEIGHT

logger = logging.getLogger(__name__)

# ----------------------- Display Configuration -----------------------
FPS = 60
MAX_FRAME_TIME = 0.25  # seconds of simulation caught up after a stall

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
SKY_TOP = (120, 210, 235)
SKY_BOTTOM = (170, 200, 245)
CLOUD = (245, 250, 255)
PIPE_GREEN = (40, 170, 70)
PIPE_BORDER = (30, 120, 50)
BIRD_YELLOW = (250, 210, 40)
BIRD_ORANGE = (245, 140, 30)
PANEL = (20, 20, 20)
BUTTON_GREEN = (50, 180, 80)

RETRY_BUTTON = pygame.Rect(SCREEN_WIDTH // 2 - 130, SCREEN_HEIGHT // 2 + 90, 260, 80)

JUMP_KEYS = (pygame.K_SPACE, pygame.K_UP)
QUIT_KEYS = (pygame.K_ESCAPE, pygame.K_q)


def bird_rotation(velocity):
    """Tilt of the bird sprite in degrees: nose up while rising, down while falling."""
    return min(max(velocity * 3, -45), 90)


# ------------------ Drawing ------------------
def draw_background(surface):
    """Vertical sky gradient with a few fixed clouds."""
    width, height = surface.get_size()
    for y in range(height):
        u = y / max(1, height - 1)
        color = tuple(int(a * (1 - u) + b * u) for a, b in zip(SKY_TOP, SKY_BOTTOM))
        pygame.draw.line(surface, color, (0, y), (width, y))
    for i in range(5):
        cx, cy = i * 200 - 100 + width // 2, i * 100 + 50
        for dx, r in ((-40, 30), (0, 40), (40, 30)):
            pygame.draw.circle(surface, CLOUD, (cx + dx, cy), r)


def pipe_rects(pipe, screen_height):
    """pygame rects of the top and bottom segments of a PipeState."""
    gap_top = pipe.gap_center_y - pipe.gap_height / 2
    gap_bottom = pipe.gap_center_y + pipe.gap_height / 2
    top = pygame.Rect(int(pipe.x), 0, int(pipe.width), int(gap_top))
    bottom = pygame.Rect(int(pipe.x), int(gap_bottom), int(pipe.width), int(screen_height - gap_bottom))
    return top, bottom


def draw_pipe(surface, pipe, screen_height):
    for rect in pipe_rects(pipe, screen_height):
        pygame.draw.rect(surface, PIPE_GREEN, rect)
        pygame.draw.rect(surface, PIPE_BORDER, rect, 3)


def draw_bird(surface, bird):
    """Round body with an eye and a beak, rotated by its velocity."""
    size = int(bird.size)
    radius = size // 2
    # body centered in the sprite, beak sticks out on the right
    sprite = pygame.Surface((size + 32, size), pygame.SRCALPHA)
    cx, cy = radius + 16, radius
    pygame.draw.circle(sprite, BIRD_ORANGE, (cx, cy), radius)
    pygame.draw.circle(sprite, BIRD_YELLOW, (cx, cy), max(1, radius - 5))
    pygame.draw.circle(sprite, WHITE, (cx + 8, cy - 5), 6)
    pygame.draw.circle(sprite, BLACK, (cx + 9, cy - 5), 3)
    pygame.draw.polygon(sprite, BIRD_ORANGE, [
        (cx + radius - 2, cy),
        (cx + radius + 14, cy - 5),
        (cx + radius + 14, cy + 5),
    ])
    # pygame rotates counter-clockwise, screen y points down
    rotated = pygame.transform.rotate(sprite, -bird_rotation(bird.velocity))
    center = (int(bird.x + bird.size / 2), int(bird.y + bird.size / 2))
    surface.blit(rotated, rotated.get_rect(center=center))


def draw_centered(surface, font, text, y, color=WHITE):
    text_surf = font.render(text, True, color)
    surface.blit(text_surf, (surface.get_width() // 2 - text_surf.get_width() // 2, y))


def draw_overlay(surface, snapshot, fonts):
    """Score, start prompt and game-over panel. Skipped when no fonts are given."""
    if fonts is None:
        return
    big, small = fonts
    draw_centered(surface, big, str(snapshot.score), 60)
    height = surface.get_height()

    if snapshot.phase is Phase.NOT_STARTED:
        draw_centered(surface, big, "Flappy Bird", height // 2 - 120)
        draw_centered(surface, small, "Tap or press SPACE to start", height // 2 - 30)
    elif snapshot.phase is Phase.OVER:
        panel = pygame.Rect(0, 0, 460, 420)
        panel.center = (surface.get_width() // 2, height // 2 + 20)
        shade = pygame.Surface(panel.size, pygame.SRCALPHA)
        shade.fill((*PANEL, 180))
        surface.blit(shade, panel)
        draw_centered(surface, big, "Game Over", panel.top + 40)
        draw_centered(surface, small, f"Score: {snapshot.score}", panel.top + 140)
        pygame.draw.rect(surface, BUTTON_GREEN, RETRY_BUTTON, border_radius=20)
        label = small.render("Retry", True, WHITE)
        surface.blit(label, label.get_rect(center=RETRY_BUTTON.center))


def draw_frame(surface, snapshot, fonts=None):
    """Render a GameSnapshot onto any surface."""
    draw_background(surface)
    for pipe in snapshot.pipes:
        draw_pipe(surface, pipe, snapshot.screen_height)
    draw_bird(surface, snapshot.bird)
    draw_overlay(surface, snapshot, fonts)


# ------------------ Input ------------------
def handle_event(runner, event):
    """
    Translate one pygame event into a game command.
    Returns False when the player asked to quit.
    """
    if event.type == pygame.QUIT:
        return False
    if event.type == pygame.KEYDOWN:
        if event.key in QUIT_KEYS:
            return False
        if event.key in JUMP_KEYS:
            runner.jump()
        elif event.key == pygame.K_r and runner.session.phase is Phase.OVER:
            runner.reset()
    elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
        if runner.session.phase is Phase.OVER:
            if RETRY_BUTTON.collidepoint(event.pos):
                runner.reset()
        else:
            runner.jump()
    return True


# ------------------ App ------------------
class FlappyApp:
    """
    Window, input and real-time pacing around a GameRunner.
    All game state lives in the runner's session; this class only reads snapshots.
    """

    def __init__(self, runner=None, caption="Flappy Bird"):
        pygame.init()
        pygame.font.init()

        self.runner = runner or GameRunner()
        cfg = self.runner.session.config
        self.screen = pygame.display.set_mode((int(cfg.screen_width), int(cfg.screen_height)))
        pygame.display.set_caption(caption)

        self.clock = pygame.time.Clock()
        self.fonts = (
            pygame.font.SysFont(None, 96, bold=True),
            pygame.font.SysFont(None, 48),
        )

    def step(self, dt):
        """Advance the simulation by dt wall-clock seconds and redraw."""
        self.runner.advance(min(dt, MAX_FRAME_TIME))
        draw_frame(self.screen, self.runner.snapshot(), self.fonts)
        pygame.display.flip()

    def run(self):
        """Main loop."""
        running = True
        while running:
            dt = self.clock.tick(FPS) / 1000.0
            for event in pygame.event.get():
                if not handle_event(self.runner, event):
                    running = False
                    break
            else:
                self.step(dt)
        pygame.quit()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Play Flappy Bird.")
    parser.add_argument("--seed", type=int, default=None,
                        help="seed for pipe placement (random when omitted)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    runner = GameRunner(GameSession(seed=args.seed))
    logger.info("Starting with seed %s", args.seed)
    FlappyApp(runner).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
