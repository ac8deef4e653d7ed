import enum
import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

# ----------------------- Global Configuration -----------------------
SCREEN_WIDTH, SCREEN_HEIGHT = 820, 1180

BIRD_SIZE = 40
BIRD_START_X = 200
BIRD_START_Y = SCREEN_HEIGHT / 2
GRAVITY = 0.8
JUMP_VELOCITY = -15

PIPE_WIDTH = 80
PIPE_GAP = 200
PIPE_VELOCITY = 4
PIPE_MARGIN = 300
PIPE_OFFSCREEN_X = -100

TICK_INTERVAL = 0.016  # seconds, ~60 updates per second
SPAWN_INTERVAL = 2.5   # seconds between pipes

__all__ = [
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "BIRD_SIZE",
    "BIRD_START_X",
    "BIRD_START_Y",
    "GRAVITY",
    "JUMP_VELOCITY",
    "PIPE_WIDTH",
    "PIPE_GAP",
    "PIPE_VELOCITY",
    "PIPE_MARGIN",
    "PIPE_OFFSCREEN_X",
    "TICK_INTERVAL",
    "SPAWN_INTERVAL",
    "ConfigError",
    "GameConfig",
    "Phase",
    "Bird",
    "Pipe",
    "BirdState",
    "PipeState",
    "GameSnapshot",
    "rects_intersect",
    "check_collision",
    "create_pipe",
    "GameSession",
]


class ConfigError(ValueError):
    """Raised when a GameConfig cannot produce a playable world."""


@dataclass(frozen=True)
class GameConfig:
    """
    All tunable constants of one game world.
    Defaults mirror the module-level configuration above.
    """
    screen_width: float = SCREEN_WIDTH
    screen_height: float = SCREEN_HEIGHT
    bird_size: float = BIRD_SIZE
    bird_start_x: float = BIRD_START_X
    bird_start_y: float = BIRD_START_Y
    gravity: float = GRAVITY
    jump_velocity: float = JUMP_VELOCITY
    pipe_width: float = PIPE_WIDTH
    pipe_gap: float = PIPE_GAP
    pipe_velocity: float = PIPE_VELOCITY
    pipe_margin: float = PIPE_MARGIN
    pipe_offscreen_x: float = PIPE_OFFSCREEN_X
    tick_interval: float = TICK_INTERVAL
    spawn_interval: float = SPAWN_INTERVAL

    @property
    def max_bird_y(self):
        return self.screen_height - self.bird_size

    def validate(self):
        """
        Check the constants once, before any tick runs.
        Raises ConfigError describing the first problem found.
        """
        positive = (
            "screen_width",
            "screen_height",
            "bird_size",
            "pipe_width",
            "pipe_gap",
            "pipe_velocity",
            "tick_interval",
            "spawn_interval",
        )
        for name in positive:
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}")
        if self.gravity < 0:
            raise ConfigError(f"gravity must not be negative, got {self.gravity}")
        if self.jump_velocity >= 0:
            raise ConfigError(f"jump_velocity must be negative (upwards), got {self.jump_velocity}")
        if self.pipe_margin < self.pipe_gap / 2:
            raise ConfigError(
                f"pipe_margin {self.pipe_margin} is smaller than half the gap "
                f"({self.pipe_gap / 2}); a pipe segment would have negative height"
            )
        if self.pipe_margin > self.screen_height - self.pipe_margin:
            raise ConfigError(
                f"pipe_margin {self.pipe_margin} leaves no room for a gap center "
                f"on a screen {self.screen_height} high"
            )
        if not 0 <= self.bird_start_y <= self.max_bird_y:
            raise ConfigError(
                f"bird_start_y {self.bird_start_y} is outside [0, {self.max_bird_y}]"
            )
        if self.pipe_offscreen_x >= 0:
            raise ConfigError(f"pipe_offscreen_x must be off screen (< 0), got {self.pipe_offscreen_x}")
        return self


class Phase(enum.Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    OVER = "over"


# ------------------ Collision Helpers ------------------
def rects_intersect(a, b):
    """
    Axis-aligned overlap test on (x, y, width, height) tuples.
    Intervals are open: boxes that only share an edge do not intersect,
    and a zero-height box never intersects anything.
    """
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    if aw <= 0 or ah <= 0 or bw <= 0 or bh <= 0:
        return False
    return ax < bx + bw and bx < ax + aw and ay < by + bh and by < ay + ah


# ------------------ Bird Class ------------------
class Bird:
    """The falling entity. Position is the top-left corner of its square."""

    def __init__(self, x=BIRD_START_X, y=BIRD_START_Y, size=BIRD_SIZE):
        self.x = x
        self.y = y
        self.velocity = 0.0
        self.size = size

    def integrate(self, gravity=GRAVITY):
        """Advance one tick: gravity feeds velocity, velocity feeds position."""
        self.velocity += gravity
        self.y += self.velocity

    def apply_impulse(self, jump_velocity=JUMP_VELOCITY):
        """Override the current velocity with the upward jump velocity."""
        self.velocity = jump_velocity

    def rect(self):
        return (self.x, self.y, self.size, self.size)

    def in_bounds(self, screen_height=SCREEN_HEIGHT):
        return 0 <= self.y <= screen_height - self.size


# ------------------ Pipe Class ------------------
class Pipe:
    """
    A single pair of pipes (top and bottom) sharing one gap.
    The top segment spans [0, gap top], the bottom one [gap bottom, screen height].
    """

    def __init__(self, x, gap_center_y, gap_height=PIPE_GAP, width=PIPE_WIDTH):
        self.x = x
        self.gap_center_y = gap_center_y
        self.gap_height = gap_height
        self.width = width
        self.passed = False

    def update(self, speed=PIPE_VELOCITY):
        """Move the pipe to the left."""
        self.x -= speed

    @property
    def trailing_edge(self):
        return self.x + self.width

    def mark_passed(self, bird_x):
        """
        Flag the pipe once its trailing edge is strictly left of bird_x.
        Returns True only on the call that flips the flag.
        """
        if self.passed or not self.trailing_edge < bird_x:
            return False
        self.passed = True
        return True

    def top_rect(self):
        return (self.x, 0, self.width, self.gap_center_y - self.gap_height / 2)

    def bottom_rect(self, screen_height=SCREEN_HEIGHT):
        gap_bottom = self.gap_center_y + self.gap_height / 2
        return (self.x, gap_bottom, self.width, screen_height - gap_bottom)


def check_collision(bird, pipe, screen_height=SCREEN_HEIGHT):
    """True when the bird box overlaps the top or bottom segment of the pipe."""
    bird_rect = bird.rect()
    return (rects_intersect(bird_rect, pipe.top_rect()) or
            rects_intersect(bird_rect, pipe.bottom_rect(screen_height)))


def create_pipe(rng, config=None):
    """Create a new pipe at the right edge with a random gap center."""
    config = config or GameConfig()
    low = config.pipe_margin
    high = config.screen_height - config.pipe_margin
    gap_center_y = float(rng.uniform(low, high))
    # numpy's uniform can round up to `high` for float edge cases
    gap_center_y = min(max(gap_center_y, low), high)
    return Pipe(config.screen_width, gap_center_y, config.pipe_gap, config.pipe_width)


# ------------------ Snapshots ------------------
@dataclass(frozen=True)
class BirdState:
    x: float
    y: float
    velocity: float
    size: float


@dataclass(frozen=True)
class PipeState:
    x: float
    gap_center_y: float
    gap_height: float
    width: float
    passed: bool


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only picture of a session, taken after a command or tick."""
    bird: BirdState
    pipes: tuple
    score: int
    phase: Phase
    screen_width: float
    screen_height: float


# ------------------ Game Session ------------------
class GameSession:
    """
    Owns the bird, the ordered pipe list, the score and the phase.

    Every mutation goes through jump(), start(), reset(), tick() or
    spawn_pipe(). Observers registered with subscribe() receive a
    GameSnapshot after each of them that changed something.
    """

    def __init__(self, config=None, rng=None, seed=None):
        """
        Pass either `rng` (any object with uniform(low, high)) or `seed` for the
        default numpy generator, not both.
        """
        if rng is not None and seed is not None:
            raise ConfigError("pass either rng or seed, not both")
        self.config = (config or GameConfig()).validate()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self._observers = []
        self._bird = self._new_bird()
        self._pipes = []
        self.score = 0
        self.phase = Phase.NOT_STARTED

    def _new_bird(self):
        return Bird(self.config.bird_start_x, self.config.bird_start_y, self.config.bird_size)

    # ------------------- Accessors -------------------
    @property
    def bird(self):
        b = self._bird
        return BirdState(b.x, b.y, b.velocity, b.size)

    @property
    def pipes(self):
        return tuple(
            PipeState(p.x, p.gap_center_y, p.gap_height, p.width, p.passed)
            for p in self._pipes
        )

    def snapshot(self):
        return GameSnapshot(
            bird=self.bird,
            pipes=self.pipes,
            score=self.score,
            phase=self.phase,
            screen_width=self.config.screen_width,
            screen_height=self.config.screen_height,
        )

    def subscribe(self, callback):
        """Register callback(snapshot); returns a function that unregisters it."""
        self._observers.append(callback)

        def unsubscribe():
            if callback in self._observers:
                self._observers.remove(callback)
        return unsubscribe

    def _publish(self):
        if not self._observers:
            return
        snap = self.snapshot()
        for callback in list(self._observers):
            callback(snap)

    # ------------------- Commands -------------------
    def start(self):
        """Begin a fresh run from NOT_STARTED. Does nothing in other phases."""
        if self.phase is not Phase.NOT_STARTED:
            return False
        self._begin()
        self._publish()
        return True

    def jump(self):
        """
        Start the game if it has not started (with one impulse applied right away),
        flap while running, ignore while over.
        """
        if self.phase is Phase.OVER:
            return
        if self.phase is Phase.NOT_STARTED:
            self._begin()
        self._bird.apply_impulse(self.config.jump_velocity)
        self._publish()

    def reset(self):
        """Back to NOT_STARTED with score, bird and pipes at their initial values."""
        self._bird = self._new_bird()
        self._pipes = []
        self.score = 0
        self.phase = Phase.NOT_STARTED
        logger.info("Game reset")
        self._publish()

    def spawn_pipe(self):
        """Append a new pipe at the right edge. Returns it, or None if not running."""
        if self.phase is not Phase.RUNNING:
            return None
        pipe = create_pipe(self.rng, self.config)
        self._pipes.append(pipe)
        logger.debug("Spawned pipe with gap center %.1f", pipe.gap_center_y)
        self._publish()
        return pipe

    def tick(self):
        """
        One world update. Returns the phase after the update.

        Order: integrate bird, bounds check, move pipes and score,
        collision check, drop pipes that left the screen.
        """
        if self.phase is not Phase.RUNNING:
            return self.phase

        cfg = self.config
        bird = self._bird
        bird.integrate(cfg.gravity)

        if not bird.in_bounds(cfg.screen_height):
            self._end_game("out of bounds")
            return self.phase

        for pipe in self._pipes:
            pipe.update(cfg.pipe_velocity)
            if pipe.mark_passed(bird.x):
                self.score += 1
                logger.debug("Passed pipe, score %d", self.score)

        for pipe in self._pipes:
            if check_collision(bird, pipe, cfg.screen_height):
                self._end_game("hit a pipe")
                return self.phase

        self._pipes = [pipe for pipe in self._pipes if pipe.x >= cfg.pipe_offscreen_x]
        self._publish()
        return self.phase

    def _begin(self):
        self._bird = self._new_bird()
        self._pipes = []
        self.score = 0
        self.phase = Phase.RUNNING
        logger.info("Game started")

    def _end_game(self, reason):
        self.phase = Phase.OVER
        logger.info("Game over (%s), score %d", reason, self.score)
        self._publish()
