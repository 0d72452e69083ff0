"""Seeded permutations for the jigsaw-puzzle animation."""

from typing import List, Sequence

from .rng import Mulberry32


def identity_permutation(n: int) -> List[int]:
    """Solved layout of an n x n board."""
    if n < 1:
        raise ValueError(f"grid size must be at least 1, got {n}")
    return list(range(n * n))


def is_solved(perm: Sequence[int]) -> bool:
    return all(v == i for i, v in enumerate(perm))


def seeded_permutation_shuffle(n: int, seed: int) -> List[int]:
    """
    Deterministic Fisher-Yates shuffle of the n x n tiles.

    The same (n, seed) always gives the same layout, so a board can be
    regenerated at a new grid size without replaying the shuffle. A shuffle
    that lands on the solved layout gets its first two tiles swapped.

    Args:
        n: Grid size (tiles per side)
        seed: Shuffle seed

    Returns:
        Permutation of 0..n²-1
    """
    perm = identity_permutation(n)
    rnd = Mulberry32(seed)

    for i in range(len(perm) - 1, 0, -1):
        j = int(rnd() * (i + 1))
        perm[i], perm[j] = perm[j], perm[i]

    if len(perm) > 1 and is_solved(perm):
        perm[0], perm[1] = perm[1], perm[0]

    return perm
