"""Tests for seeded puzzle shuffles."""

import pytest

from diffusion_anim.puzzle import identity_permutation, is_solved, seeded_permutation_shuffle


class TestSeededShuffle:
    """Test deterministic Fisher-Yates permutations."""

    @pytest.mark.parametrize("n", [2, 3, 4, 5, 8])
    @pytest.mark.parametrize("seed", [0, 1, 42, 0xDECAFBAD])
    def test_is_permutation_and_unsolved(self, n, seed):
        perm = seeded_permutation_shuffle(n, seed)

        assert sorted(perm) == list(range(n * n))
        assert not is_solved(perm)

    def test_reproducible(self):
        assert seeded_permutation_shuffle(4, 99) == seeded_permutation_shuffle(4, 99)

    def test_seeds_give_different_layouts(self):
        layouts = {tuple(seeded_permutation_shuffle(4, seed)) for seed in range(20)}
        assert len(layouts) > 1

    def test_single_tile(self):
        """A 1x1 board has nothing to shuffle."""
        assert seeded_permutation_shuffle(1, 5) == [0]

    def test_two_by_two_many_seeds(self):
        """Small boards fall on the identity often; it must always be broken."""
        for seed in range(200):
            assert not is_solved(seeded_permutation_shuffle(2, seed))

    @pytest.mark.parametrize("n", [0, -3])
    def test_invalid_size(self, n):
        with pytest.raises(ValueError):
            seeded_permutation_shuffle(n, 1)


class TestIdentity:
    def test_identity_solved(self):
        assert is_solved(identity_permutation(3))

    def test_swap_unsolved(self):
        perm = identity_permutation(3)
        perm[0], perm[1] = perm[1], perm[0]
        assert not is_solved(perm)


if __name__ == "__main__":
    pytest.main([__file__])
