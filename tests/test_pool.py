import pytest

from instruments.pool import VoicePool, VoiceAllocationExhausted, MAX_POLYPHONY

TICK = 44


def fill(pool, make_voice):
    voices = []
    for i in range(pool.capacity):
        slot = pool.allocate()
        v = make_voice(slot=slot, note=i)
        pool.start(slot, v)
        voices.append(v)
    return voices


def test_default_capacity():
    assert VoicePool().capacity == MAX_POLYPHONY == 16


def test_allocates_idle_slots_first(make_voice):
    pool = VoicePool(4)
    assert pool.allocate() == 0
    pool.start(0, make_voice(slot=0))
    assert pool.allocate() == 1
    assert pool.active_count() == 1


def test_exhausted_pool(make_voice):
    pool = VoicePool(16)
    fill(pool, make_voice)
    assert pool.active_count() == 16
    assert pool.allocate() is None
    with pytest.raises(VoiceAllocationExhausted):
        pool.acquire()


def test_reclaims_paused_slot(make_voice):
    pool = VoicePool(4)
    voices = fill(pool, make_voice)
    pool.pause(2)
    assert pool.is_paused(2)
    assert pool.allocate() == 2
    assert voices[2].finished()
    assert pool.is_idle(2)
    assert not pool.owns(voices[2])


def test_one_voice_per_slot(make_voice):
    pool = VoicePool(2)
    pool.start(0, make_voice(slot=0))
    with pytest.raises(ValueError):
        pool.start(0, make_voice(slot=0))
    with pytest.raises(ValueError):
        pool.start(1, make_voice(slot=0))


def test_bounds_checked():
    pool = VoicePool(2)
    with pytest.raises(IndexError):
        pool.voice_at(2)
    with pytest.raises(IndexError):
        pool.pause(-1)


def test_render_frees_finished_voices(make_voice):
    pool = VoicePool(2)
    v = make_voice(slot=1)
    pool.start(1, v)
    pool.render(TICK * 20)
    v.release()
    pool.render(TICK * 12)
    assert pool.is_idle(1)
    assert pool.active_count() == 0


def test_paused_voice_is_not_rendered(make_voice):
    pool = VoicePool(1)
    v = make_voice(slot=0)
    pool.start(0, v)
    pool.pause(0)
    assert not pool.render(256).any()
    assert v.oscillator.num_sample == 0
    pool.resume(0)
    assert pool.render(256).any()


def test_stop_clears_slot(make_voice):
    pool = VoicePool(1)
    v = make_voice(slot=0)
    pool.start(0, v)
    pool.stop(0)
    assert pool.is_idle(0) and v.finished()


def test_failing_voice_is_dropped_and_others_keep_playing(make_voice, caplog):
    pool = VoicePool(2)
    bad, good = make_voice(slot=0, note=60), make_voice(slot=1, note=64)
    pool.start(0, bad)
    pool.start(1, good)

    def blow_up(frames):
        raise FloatingPointError("voice blew up")
    bad.render = blow_up

    with caplog.at_level("ERROR", logger="instruments.pool"):
        mix = pool.render(TICK * 10)
    assert mix.any()
    assert pool.is_idle(0) and bad.finished()
    assert pool.voice_at(1) is good
    assert "slot 0 failed" in caplog.text


def test_synth_render_survives_a_failing_voice(synth):
    synth.note_on(60)
    healthy = synth.note_on(64)
    broken = synth.voice_for(60)

    def blow_up(frames):
        raise FloatingPointError("voice blew up")
    broken.render = blow_up

    out = synth.render(440)
    assert out.any()
    assert synth.num_active_voices() == 1
    assert synth.pool.owns(healthy)
