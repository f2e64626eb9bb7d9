"""
# stack.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Particle stack, event header and run loader used by the generators."""

import math
from dataclasses import dataclass
from typing import Any, List, Optional


@dataclass
class StackParticle:
    """
    One particle of the generated event record.

    Mother and daughter fields are stack indices, -1 meaning none.
    Momenta and energy in GeV, production vertex in mm and mm/c.
    """
    pdg: int
    status: int
    px: float
    py: float
    pz: float
    e: float
    mass: float = 0.0
    first_mother: int = -1
    second_mother: int = -1
    first_daughter: int = -1
    last_daughter: int = -1
    vx: float = 0.0
    vy: float = 0.0
    vz: float = 0.0
    t: float = 0.0

    @property
    def pt(self) -> float:
        return math.hypot(self.px, self.py)

    @property
    def phi(self) -> float:
        return math.atan2(self.py, self.px)


class ParticleStack:
    """
    Buffer of the particles generated for the current event.

    Primary particles occupy the first `n_primary` slots. A slot can be
    discarded, after which `particle()` returns None for it.
    """

    def __init__(self, name: str = "ParticleStack"):
        self.name = name
        self._particles: List[Optional[StackParticle]] = []
        self._n_primary = 0

    def reset(self) -> None:
        """Drop every particle of the previous event."""
        self._particles.clear()
        self._n_primary = 0

    def push_track(self, particle: StackParticle, primary: bool = True) -> int:
        """Append a particle and return its stack index."""
        if primary:
            if self._n_primary != len(self._particles):
                raise ValueError("primary particles must be pushed before secondaries")
            self._n_primary += 1
        self._particles.append(particle)
        return len(self._particles) - 1

    def discard(self, index: int) -> None:
        """Null the entry at `index` (the slot itself is kept)."""
        if index < 0 or index >= len(self._particles):
            raise IndexError(f"stack index {index} out of range [0, {len(self._particles)})")
        self._particles[index] = None

    def particle(self, index: int) -> Optional[StackParticle]:
        if index < 0 or index >= len(self._particles):
            raise IndexError(f"stack index {index} out of range [0, {len(self._particles)})")
        return self._particles[index]

    @property
    def n_primary(self) -> int:
        return self._n_primary

    @property
    def n_track(self) -> int:
        return len(self._particles)

    def __len__(self) -> int:
        return len(self._particles)


class EventHeader:
    """Run-level header of the current event."""

    def __init__(self):
        self.event_number = -1
        self.n_primary = 0
        self.n_track = 0
        # Header produced by the generator for this event, if any.
        self.gen_event_header: Optional[Any] = None

    def reset(self, event_number: int) -> None:
        self.event_number = event_number
        self.n_primary = 0
        self.n_track = 0
        self.gen_event_header = None


class RunLoader:
    """
    Run context of one task: a named folder owning a header and a stack.

    Both are materialized on demand with `make_header()` and `make_stack()`.
    """

    def __init__(self, folder: str):
        self.folder = folder
        self.header: Optional[EventHeader] = None
        self.stack: Optional[ParticleStack] = None
        self.n_events = 0

    def make_header(self) -> EventHeader:
        if self.header is None:
            self.header = EventHeader()
        return self.header

    def make_stack(self) -> ParticleStack:
        if self.stack is None:
            self.stack = ParticleStack(name=f"{self.folder}_Stack")
        return self.stack

    def begin_event(self) -> None:
        """Reset header and stack for the next event."""
        self.make_header().reset(self.n_events)
        self.make_stack().reset()

    def finish_event(self, gen_event_header: Optional[Any] = None) -> None:
        """Record the generator output of the current event in the header."""
        header = self.make_header()
        stack = self.make_stack()
        header.gen_event_header = gen_event_header
        header.n_primary = stack.n_primary
        header.n_track = stack.n_track
        self.n_events += 1
