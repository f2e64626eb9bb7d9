"""
# box.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
import math
from typing import Optional, Tuple

from ..framework.stack import StackParticle
from .base import GenEventHeader, Generator

# Masses (GeV) of the species the gun is usually pointed with.
_PDG_MASSES = {
    11: 0.000511,
    13: 0.105658,
    22: 0.0,
    111: 0.134977,
    211: 0.139570,
    130: 0.497611,
    310: 0.497611,
    321: 0.493677,
    2112: 0.939565,
    2212: 0.938272,
}


class BoxGenerator(Generator):
    """
    Particle gun: a fixed number of primaries of one species per event.

    p_T, eta and phi are drawn uniformly in their ranges from the bound random
    source. The gun has no hard-process metadata.
    """

    def __init__(self, n_particles: int = 10, pdg: int = 211,
                 pt_range: Tuple[float, float] = (0.5, 10.0),
                 eta_range: Tuple[float, float] = (-0.9, 0.9),
                 phi_range: Tuple[float, float] = (0.0, 2.0 * math.pi),
                 mass: Optional[float] = None):
        super().__init__()
        if n_particles < 0:
            raise ValueError(f"n_particles must be non-negative, got {n_particles}")
        for label, (low, high) in (("pt_range", pt_range), ("eta_range", eta_range), ("phi_range", phi_range)):
            if high < low:
                raise ValueError(f"{label} is inverted: ({low}, {high})")
        if mass is None:
            if abs(pdg) not in _PDG_MASSES:
                raise ValueError(f"no mass known for PDG code {pdg}, pass mass explicitly")
            mass = _PDG_MASSES[abs(pdg)]
        self.n_particles = int(n_particles)
        self.pdg = int(pdg)
        self.pt_range = pt_range
        self.eta_range = eta_range
        self.phi_range = phi_range
        self.mass = float(mass)
        self.n_generated = 0

    def init(self) -> bool:
        if self.random is None or self.stack is None:
            return False
        self.initialized = True
        return True

    def generate(self) -> Optional[GenEventHeader]:
        if not self.initialized:
            raise RuntimeError("BoxGenerator.generate() called before init()")
        n = self.n_particles
        pt = self.random.uniform(*self.pt_range, size=n)
        eta = self.random.uniform(*self.eta_range, size=n)
        phi = self.random.uniform(*self.phi_range, size=n)

        for i in range(n):
            px = float(pt[i] * math.cos(phi[i]))
            py = float(pt[i] * math.sin(phi[i]))
            pz = float(pt[i] * math.sinh(eta[i]))
            e = math.sqrt(px * px + py * py + pz * pz + self.mass * self.mass)
            self.stack.push_track(StackParticle(
                pdg=self.pdg, status=1, px=px, py=py, pz=pz, e=e, mass=self.mass,
            ))

        self.n_generated += 1
        return GenEventHeader(name="BoxEventHeader")
