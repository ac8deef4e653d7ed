import pygame
import pytest

import flappy_app
from flappy_app import (
    BIRD_YELLOW,
    PIPE_GREEN,
    RETRY_BUTTON,
    FlappyApp,
    bird_rotation,
    draw_frame,
    handle_event,
    parse_args,
    pipe_rects,
)
from flappy_clock import GameRunner
from flappy_game import (
    JUMP_VELOCITY,
    SCREEN_HEIGHT,
    SCREEN_WIDTH,
    BirdState,
    GameSession,
    GameSnapshot,
    Phase,
    PipeState,
)


def make_snapshot(pipes=(), velocity=0.0, phase=Phase.RUNNING):
    return GameSnapshot(
        bird=BirdState(200, 590, velocity, 40),
        pipes=tuple(pipes),
        score=3,
        phase=phase,
        screen_width=SCREEN_WIDTH,
        screen_height=SCREEN_HEIGHT,
    )


def key(k):
    return pygame.event.Event(pygame.KEYDOWN, key=k)


def click(pos):
    return pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=pos)


def over_runner():
    runner = GameRunner(GameSession(seed=2))
    runner.start()
    runner.advance(2.0)
    assert runner.session.phase is Phase.OVER
    return runner


@pytest.mark.parametrize("velocity, angle", [
    (0, 0),
    (-5, -15),
    (-20, -45),
    (10, 30),
    (40, 90),
])
def test_bird_rotation_is_clamped(velocity, angle):
    assert bird_rotation(velocity) == angle


def test_pipe_rects_leave_the_gap_open():
    top, bottom = pipe_rects(PipeState(400, 590, 200, 80, False), SCREEN_HEIGHT)
    assert top == pygame.Rect(400, 0, 80, 490)
    assert bottom == pygame.Rect(400, 690, 80, SCREEN_HEIGHT - 690)


def test_draw_frame_paints_pipes_and_bird():
    surface = pygame.Surface((SCREEN_WIDTH, SCREEN_HEIGHT))
    snapshot = make_snapshot(pipes=[PipeState(400, 590, 200, 80, False)])

    draw_frame(surface, snapshot)

    assert tuple(surface.get_at((440, 100)))[:3] == PIPE_GREEN
    assert tuple(surface.get_at((440, 1000)))[:3] == PIPE_GREEN
    assert tuple(surface.get_at((440, 590)))[:3] != PIPE_GREEN
    assert tuple(surface.get_at((220, 610)))[:3] == BIRD_YELLOW


def test_draw_frame_handles_every_phase():
    surface = pygame.Surface((SCREEN_WIDTH, SCREEN_HEIGHT))
    for phase in Phase:
        draw_frame(surface, make_snapshot(velocity=12.0, phase=phase))


def test_space_jumps():
    runner = GameRunner(GameSession(seed=2))
    assert handle_event(runner, key(pygame.K_SPACE))
    assert runner.session.phase is Phase.RUNNING
    assert runner.snapshot().bird.velocity == JUMP_VELOCITY


def test_click_jumps_while_playing():
    runner = GameRunner(GameSession(seed=2))
    assert handle_event(runner, click((10, 10)))
    assert runner.session.phase is Phase.RUNNING


def test_quit_events_stop_the_loop():
    runner = GameRunner(GameSession(seed=2))
    assert not handle_event(runner, pygame.event.Event(pygame.QUIT))
    assert not handle_event(runner, key(pygame.K_ESCAPE))


def test_r_resets_only_after_game_over():
    runner = GameRunner(GameSession(seed=2))
    runner.jump()
    handle_event(runner, key(pygame.K_r))
    assert runner.session.phase is Phase.RUNNING

    runner = over_runner()
    handle_event(runner, key(pygame.K_r))
    assert runner.session.phase is Phase.NOT_STARTED


def test_retry_button_resets_after_game_over():
    runner = over_runner()
    handle_event(runner, click((0, 0)))
    assert runner.session.phase is Phase.OVER

    handle_event(runner, click(RETRY_BUTTON.center))
    assert runner.session.phase is Phase.NOT_STARTED


def test_parse_args():
    args = parse_args(["--seed", "42", "--log-level", "DEBUG"])
    assert args.seed == 42
    assert args.log_level == "DEBUG"
    assert parse_args([]).seed is None


def test_app_step_advances_and_draws():
    runner = GameRunner(GameSession(seed=2))
    app = FlappyApp(runner)
    try:
        runner.jump()
        app.step(0.1)
        assert runner.tick_task.runs == 6
        # a long stall is capped
        app.step(5.0)
        assert runner.clock.now == pytest.approx(0.1 + flappy_app.MAX_FRAME_TIME)
    finally:
        pygame.quit()
