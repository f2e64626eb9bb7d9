"""
# particles.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Lightweight generated-particle records published into the event."""

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Union

from .stack import StackParticle


@dataclass
class MCParticle:
    """
    Generated particle as seen by the analysis.

    `label` is the index of the source particle in the stack. `mother`,
    `mother2`, `daughter1` and `daughter2` are stack indices (-1 if none).
    """
    label: int
    pdg: int
    status: int
    px: float
    py: float
    pz: float
    e: float
    mass: float = 0.0
    mother: int = -1
    mother2: int = -1
    daughter1: int = -1
    daughter2: int = -1
    vx: float = 0.0
    vy: float = 0.0
    vz: float = 0.0

    @classmethod
    def from_stack(cls, particle: StackParticle, label: int) -> "MCParticle":
        return cls(
            label=label,
            pdg=particle.pdg,
            status=particle.status,
            px=particle.px,
            py=particle.py,
            pz=particle.pz,
            e=particle.e,
            mass=particle.mass,
            mother=particle.first_mother,
            mother2=particle.second_mother,
            daughter1=particle.first_daughter,
            daughter2=particle.last_daughter,
            vx=particle.vx,
            vy=particle.vy,
            vz=particle.vz,
        )

    @property
    def pt(self) -> float:
        return math.hypot(self.px, self.py)

    @property
    def p(self) -> float:
        return math.sqrt(self.px * self.px + self.py * self.py + self.pz * self.pz)

    @property
    def phi(self) -> float:
        return math.atan2(self.py, self.px)

    @property
    def eta(self) -> float:
        pt = self.pt
        if pt == 0.0:
            return math.copysign(math.inf, self.pz) if self.pz != 0.0 else 0.0
        return math.asinh(self.pz / pt)

    def to_dict(self) -> Dict[str, Any]:
        """Record in the evtjsonl particle layout."""
        return {
            "i": self.label,
            "id": self.pdg,
            "status": self.status,
            "px": self.px,
            "py": self.py,
            "pz": self.pz,
            "E": self.e,
            "m": self.mass,
            "mother1": self.mother,
            "mother2": self.mother2,
            "daughter1": self.daughter1,
            "daughter2": self.daughter2,
        }


class MCParticleCollection:
    """
    Named, indexed collection of MCParticle records with reserved capacity.

    Slots are allocated up front. `clear()` empties the collection but keeps
    the slots, and the capacity doubles whenever an event needs more.
    """

    def __init__(self, name: str, capacity: int = 1000):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.name = name
        self._slots: List[Optional[MCParticle]] = [None] * capacity
        self._size = 0

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def append(self, record: MCParticle) -> int:
        """Store `record` in the next slot and return its position."""
        if self._size == len(self._slots):
            self._slots.extend([None] * len(self._slots))
        self._slots[self._size] = record
        self._size += 1
        return self._size - 1

    def clear(self) -> None:
        for i in range(self._size):
            self._slots[i] = None
        self._size = 0

    def find(self, label: int) -> Optional[MCParticle]:
        """Return the record built from stack index `label`, if any."""
        for record in self:
            if record.label == label:
                return record
        return None

    def dangling_mothers(self) -> List[int]:
        """Labels of records whose mother index points to no record in the collection."""
        labels = {record.label for record in self}
        return [record.label for record in self if record.mother >= 0 and record.mother not in labels]

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [record.to_dict() for record in self]

    def __len__(self) -> int:
        return self._size

    def __getitem__(self, index: Union[int, slice]) -> Union[MCParticle, List[MCParticle]]:
        if isinstance(index, slice):
            return [self._slots[i] for i in range(*index.indices(self._size))]
        if index < 0:
            index += self._size
        if index < 0 or index >= self._size:
            raise IndexError(f"index {index} out of range for {self.name} of size {self._size}")
        return self._slots[index]

    def __iter__(self) -> Iterator[MCParticle]:
        for i in range(self._size):
            yield self._slots[i]

    def __repr__(self) -> str:
        return f"MCParticleCollection(name={self.name!r}, size={self._size}, capacity={self.capacity})"
