import numpy as np
import pytest

from instruments.glide import FrequencySmoother


def test_moves_one_unit_per_tick():
    s = FrequencySmoother(440.0)
    assert s.tick(443.0) == 441.0
    assert s.tick(443.0) == 442.0
    assert s.tick(443.0) == 443.0
    assert s.tick(443.0) == 443.0
    assert s.tick(440.0) == 442.0


def test_snaps_to_target_when_closer_than_a_step():
    s = FrequencySmoother(261.6)
    s.tick(263.1)
    assert s.tick(263.1) == 263.1


def test_render_matches_ticking_every_sample():
    a = FrequencySmoother(440.0)
    b = FrequencySmoother(440.0)
    freqs = a.render(430.0, 16)
    expected = [b.tick(430.0) for _ in range(16)]
    assert np.allclose(freqs, expected)
    assert a.current == 430.0


def test_render_with_coarser_tick_rate():
    s = FrequencySmoother(100.0, tick_samples=4)
    freqs = s.render(110.0, 10)
    assert list(freqs) == [101, 101, 101, 101, 102, 102, 102, 102, 103, 103]
    # tick grid continues across blocks
    assert list(s.render(110.0, 3)) == [103, 103, 104]


def test_render_steady_when_on_target():
    s = FrequencySmoother(440.0)
    assert np.all(s.render(440.0, 32) == 440.0)
