"""Tests for episode timing and frame iteration."""

import pytest
import torch

from diffusion_anim.episode import (
    EpisodeConfig, FrameState, clamp_steps, describe, frame_progress,
    frame_state, iter_episode, time_position
)
from diffusion_anim.rng import normal_buffer
from diffusion_anim.schedules import build_schedule


class TestEpisodeConfig:
    """Test config validation and frame counts."""

    def test_frame_counts(self):
        config = EpisodeConfig(steps=50, frames_per_step=6, tail_hold_frames=120)
        assert config.active_frames == 300
        assert config.total_frames == 420

    def test_negative_tail_ignored(self):
        config = EpisodeConfig(steps=10, frames_per_step=2, tail_hold_frames=-5)
        assert config.total_frames == 20

    @pytest.mark.parametrize("kwargs", [
        {"steps": 1},
        {"steps": 10, "shape": "exponential"},
        {"steps": 10, "direction": "sideways"},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            EpisodeConfig(**kwargs)

    def test_frozen(self):
        config = EpisodeConfig(steps=10)
        with pytest.raises(Exception):
            config.steps = 20

    def test_clamp_steps(self):
        assert clamp_steps(5) == 20
        assert clamp_steps(1000) == 400
        assert clamp_steps(64) == 64


class TestTimePosition:
    """Test frame to diffusion time mapping."""

    def test_progress_bounds(self):
        config = EpisodeConfig(steps=10, frames_per_step=3, tail_hold_frames=30)
        assert frame_progress(config, 0) == 0.0
        assert frame_progress(config, config.active_frames - 1) == 1.0
        assert frame_progress(config, config.total_frames - 1) == 1.0

    def test_forward(self):
        config = EpisodeConfig(steps=10, frames_per_step=3, direction='forward')
        assert time_position(config, 0) == (0.0, 'noising')
        t, _ = time_position(config, config.active_frames - 1)
        assert t == pytest.approx(9.0)

    def test_reverse(self):
        config = EpisodeConfig(steps=10, frames_per_step=3, direction='reverse')
        assert time_position(config, 0) == (9.0, 'denoising')
        t, _ = time_position(config, config.active_frames - 1)
        assert t == pytest.approx(0.0)

    def test_roundtrip_endpoints(self):
        config = EpisodeConfig(steps=11, frames_per_step=2, direction='roundtrip')
        assert time_position(config, 0)[0] == 0.0
        assert time_position(config, config.active_frames - 1)[0] == pytest.approx(0.0)
        assert time_position(config, config.active_frames - 1)[1] == 'denoising'

    def test_roundtrip_mirrors(self):
        """Frames f and (active - 1 - f) sit at the same diffusion time."""
        config = EpisodeConfig(steps=20, frames_per_step=5, direction='roundtrip')
        last = config.active_frames - 1
        for f in range(0, last // 2):
            t_fwd, phase_fwd = time_position(config, f)
            t_rev, phase_rev = time_position(config, last - f)
            assert t_fwd == pytest.approx(t_rev)
            assert phase_fwd == 'noising'
            assert phase_rev == 'denoising'

    def test_frame_state(self):
        config = EpisodeConfig(steps=10, frames_per_step=1, direction='forward')
        schedule = build_schedule(10, 'linear')
        state = frame_state(config, schedule, 3)
        assert state.t == pytest.approx(3.0)
        assert state.alpha_bar == pytest.approx(float(schedule[3]))


class TestDescribe:
    def test_caption(self):
        state = FrameState(frame=0, t=2.0, alpha_bar=0.0234, phase='noising')
        assert describe(state, 50) == "noising • t=3/50 • ᾱ≈0.0234"

    def test_half_rounds_up(self):
        state = FrameState(frame=0, t=2.5, alpha_bar=0.5, phase='denoising')
        assert "t=4/10" in describe(state, 10)


class TestIterEpisode:
    """Test frame iteration."""

    def test_frame_count_and_buffer_reuse(self):
        config = EpisodeConfig(steps=8, frames_per_step=4, direction='roundtrip')
        x0 = torch.linspace(0, 1, 12)
        eps = normal_buffer(1, 12)

        buffers = set()
        count = 0
        for state, x_t in iter_episode(config, x0, eps, stride=4):
            buffers.add(id(x_t))
            count += 1

        assert count == 9
        assert len(buffers) == 1

    @pytest.mark.parametrize("direction", ['forward', 'reverse', 'roundtrip'])
    def test_stride_keeps_last_frame(self, direction):
        """Strided iteration still ends on the last active frame."""
        config = EpisodeConfig(steps=50, direction=direction)
        x0 = torch.zeros(4)
        eps = normal_buffer(9, 4)

        states = [s for s, _ in iter_episode(config, x0, eps, stride=config.frames_per_step)]

        assert states[-1].frame == config.active_frames - 1
        assert len(states) == config.steps + 1
        expected = {'forward': 49.0, 'reverse': 0.0, 'roundtrip': 0.0}[direction]
        assert states[-1].t == pytest.approx(expected)

    def test_stride_dividing_active_frames_exactly(self):
        """No duplicate when the stride already lands on the last frame."""
        config = EpisodeConfig(steps=4, frames_per_step=3, direction='forward')
        frames = [s.frame for s, _ in iter_episode(config, torch.zeros(2), torch.zeros(2), stride=11)]
        assert frames == [0, 11]

    def test_roundtrip_returns_to_clean_signal(self):
        """The first and last active frames both show x_0 (up to ᾱ_0)."""
        config = EpisodeConfig(steps=30, frames_per_step=2, direction='roundtrip')
        x0 = torch.linspace(-1, 1, 64)
        eps = normal_buffer(42, 64)

        frames = [(s, x.clone()) for s, x in iter_episode(config, x0, eps)]
        first_state, first = frames[0]
        last_state, last = frames[-1]

        assert first_state.t == 0.0
        assert last_state.t == pytest.approx(0.0)
        assert torch.allclose(first, last, atol=1e-6)
        assert torch.allclose(first, x0, atol=0.05)

    def test_midpoint_is_noise_dominated(self):
        config = EpisodeConfig(steps=100, frames_per_step=2, direction='roundtrip')
        x0 = torch.zeros(1000)
        eps = normal_buffer(3, 1000)

        states = {s.frame: x.clone() for s, x in iter_episode(config, x0, eps)}
        mid = states[config.active_frames // 2]

        assert torch.allclose(mid, eps, atol=0.1)


if __name__ == "__main__":
    pytest.main([__file__])
