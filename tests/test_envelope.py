import numpy as np
import pytest

from instruments.envelopes.adsr import (ADSRParams, ADSRState, EnvelopeController,
                                        InvalidEnvelopeConfiguration)

SR = 44000
TICK = 44


def ticks(env, n):
    for _ in range(n):
        env.tick()
    return env.amplitude


def ticks_until_silent(env, limit=10_000):
    for i in range(1, limit + 1):
        env.tick()
        if env.finished():
            return i
    raise AssertionError("envelope never went silent")


def test_starts_silent_in_attack():
    env = EnvelopeController(ADSRParams(), SR)
    assert env.amplitude == 0.0
    assert env.state is ADSRState.ATTACK
    assert env.tick_samples == TICK


def test_attack_reaches_full_after_attack_time():
    env = EnvelopeController(ADSRParams(10, 10, 1.0, 10), SR)
    assert ticks(env, 10) == pytest.approx(1.0)
    # sustain=1.0: decay is flat
    assert ticks(env, 10) == pytest.approx(1.0)
    assert ticks(env, 50) == pytest.approx(1.0)
    assert env.state is ADSRState.SUSTAIN


def test_release_frees_within_release_time():
    env = EnvelopeController(ADSRParams(10, 10, 1.0, 10), SR)
    ticks(env, 30)
    env.request_release()
    n = ticks_until_silent(env)
    assert 10 <= n <= 11
    assert env.amplitude == 0.0
    assert env.state is ADSRState.SILENT


def test_decay_lands_on_sustain_and_holds():
    env = EnvelopeController(ADSRParams(10, 20, 0.5, 10), SR)
    ticks(env, 10)
    assert ticks(env, 10) == pytest.approx(0.75)
    assert ticks(env, 10) == pytest.approx(0.5)
    assert ticks(env, 100) == pytest.approx(0.5)
    assert env.state is ADSRState.SUSTAIN


def test_release_step_follows_sustain_level():
    env = EnvelopeController(ADSRParams(10, 10, 0.5, 10), SR)
    ticks(env, 40)
    env.request_release()
    env.tick()                      # marks the release start only
    assert env.amplitude == pytest.approx(0.5)
    assert env.state is ADSRState.RELEASE
    assert ticks(env, 1) == pytest.approx(0.45)


def test_release_mid_attack_uses_sustain_step_and_floors_at_zero():
    env = EnvelopeController(ADSRParams(100, 10, 1.0, 10), SR)
    assert ticks(env, 5) == pytest.approx(0.05)
    env.request_release()
    env.tick()
    assert ticks(env, 1) == 0.0     # full sustain-sized step overshoots
    assert not env.finished()
    assert ticks_until_silent(env) == 9


def test_release_from_current_level():
    env = EnvelopeController(ADSRParams(100, 10, 1.0, 10), SR, release_from_current=True)
    ticks(env, 5)
    env.request_release()
    env.tick()
    assert ticks(env, 1) == pytest.approx(0.045)


def test_zero_durations_are_clamped_not_fatal():
    env = EnvelopeController(ADSRParams(0, 0, 0.5, 0), SR)
    assert ticks(env, 1) == pytest.approx(1.0)
    assert ticks(env, 1) == pytest.approx(0.5)
    env.request_release()
    assert ticks_until_silent(env) == 2


@pytest.mark.parametrize("kwargs", [
    dict(attack=-1), dict(decay=-5), dict(release=-0.1),
    dict(sustain=1.5), dict(sustain=-0.1),
])
def test_invalid_parameters_rejected(kwargs):
    with pytest.raises(InvalidEnvelopeConfiguration):
        ADSRParams(**kwargs)


def test_render_holds_value_between_ticks():
    env = EnvelopeController(ADSRParams(10, 10, 1.0, 10), SR)
    out = env.render(TICK * 10)
    assert out.shape == (TICK * 10,)
    assert np.allclose(out[:TICK], 0.1)
    assert np.allclose(out[TICK:2 * TICK], 0.2)
    assert out[-1] == pytest.approx(1.0)


def test_render_in_odd_blocks_matches_one_block():
    a = EnvelopeController(ADSRParams(7, 13, 0.3, 9), SR)
    b = EnvelopeController(ADSRParams(7, 13, 0.3, 9), SR)
    whole = a.render(3000)
    parts = np.concatenate([b.render(n) for n in (1, 100, 255, 644, 2000)])
    assert np.allclose(whole, parts)


def test_render_after_silence_is_zero():
    env = EnvelopeController(ADSRParams(10, 10, 1.0, 10), SR)
    env.render(TICK * 20)
    env.request_release()
    env.render(TICK * 20)
    assert env.finished()
    assert not np.any(env.render(128))


def test_stop_is_immediate():
    env = EnvelopeController(ADSRParams(), SR)
    ticks(env, 3)
    env.stop()
    assert env.finished() and env.amplitude == 0.0


def test_plot():
    env = EnvelopeController(ADSRParams(10, 20, 0.6, 30), SR)
    fig, ax = env.plot(100.0, t_release_ms=50.0)
    assert "release @50.0ms" in ax.get_title()
