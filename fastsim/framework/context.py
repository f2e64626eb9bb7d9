"""
# context.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Process-wide simulation state shared by the tasks of one analysis."""

import secrets
from typing import Optional

import numpy as np


class SimulationContext:
    """
    Simulation run description plus the random source every generator draws from.

    Attributes:
        name: Name of the simulation framework instance.
        seed: Seed of the random source. A fresh one is drawn when none is given.
        random: numpy Generator seeded with `seed`.
    """

    def __init__(self, name: str = "fastsim", seed: Optional[int] = None):
        self.name = name
        self.seed = self._determine_random_seed(seed)
        self.random = np.random.default_rng(self.seed)

    @staticmethod
    def _determine_random_seed(seed: Optional[int] = None) -> int:
        """Return `seed` if given, otherwise a fresh seed from the OS entropy pool."""
        if seed is not None:
            return int(seed)
        return secrets.randbits(63)

    def __repr__(self) -> str:
        return f"SimulationContext(name={self.name!r}, seed={self.seed})"


class ProcessContext:
    """
    Holder of the state that is global to one process (or one analysis manager).

    The simulation context is created lazily by the first task that needs it and
    then shared by every other task bound to the same process context.
    """

    def __init__(self, simulation: Optional[SimulationContext] = None):
        self.simulation = simulation

    @property
    def has_simulation(self) -> bool:
        return self.simulation is not None

    def ensure_simulation(self, seed: Optional[int] = None) -> SimulationContext:
        """Return the simulation context, creating it if absent."""
        if self.simulation is None:
            self.simulation = SimulationContext(seed=seed)
        return self.simulation

    @property
    def random(self) -> np.random.Generator:
        return self.ensure_simulation().random
