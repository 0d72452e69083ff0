"""Diffusion Animation Engine

Noise schedules, closed-form forward sampling and the Gaussian utilities
behind the interactive diffusion and sampling animations.
"""

__version__ = "0.1.0"
