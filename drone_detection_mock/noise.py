"""
Random source and noise helpers for the detection mock stream.
"""

from typing import Optional
import numpy as np


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper]."""
    if value < lower:
        return lower
    if value > upper:
        return upper
    return value


class NoiseModel:
    """
    Owns the process random source and applies uniform symmetric noise.

    A noise factor is the full width of the perturbation: a factor of 0.02
    moves a value by at most 0.01 in either direction.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None):
        """
        Initialize the noise model.

        Args:
            rng: Random number generator; seeded from OS entropy when omitted
        """
        self.rng = rng if rng is not None else np.random.default_rng()

    @classmethod
    def from_seed(cls, seed: Optional[int] = None) -> 'NoiseModel':
        """Create a noise model from an optional deterministic seed."""
        return cls(np.random.default_rng(seed))

    def add_noise(self, value: float, noise_factor: float) -> float:
        """
        Perturb value by (U(0,1) - 0.5) * noise_factor.

        Args:
            value: Base value
            noise_factor: Full width of the perturbation

        Returns:
            Perturbed value (not clamped)
        """
        return value + (float(self.rng.random()) - 0.5) * noise_factor

    def uniform(self, low: float, high: float) -> float:
        """Draw a float uniformly from [low, high)."""
        return float(self.rng.uniform(low, high))

    def chance(self, probability: float) -> bool:
        """Return True with the given probability."""
        return float(self.rng.random()) < probability
