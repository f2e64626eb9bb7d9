"""
# base.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Base interface for event generators driven by the fast simulation task."""

import abc
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..framework.stack import ParticleStack


@dataclass
class HardProcessInfo:
    """Hard-scattering metadata of one event."""
    cross_section: float  # mb
    trials: int
    pt_hard: float        # GeV/c


class GenEventHeader:
    """Per-event header returned by a generator."""

    def __init__(self, name: str = "GenEventHeader"):
        self.name = name

    def hard_process(self) -> Optional[HardProcessInfo]:
        """Hard-process metadata of the event, None if the generator has none."""
        return None


class HardProcessEventHeader(GenEventHeader):
    """Header of generators reporting cross-section, trials and p_T,hard."""

    def __init__(self, cross_section: float, trials: int, pt_hard: float,
                 name: str = "HardProcessEventHeader"):
        super().__init__(name)
        self.cross_section = float(cross_section)
        self.trials = int(trials)
        self.pt_hard = float(pt_hard)

    def hard_process(self) -> Optional[HardProcessInfo]:
        return HardProcessInfo(cross_section=self.cross_section, trials=self.trials, pt_hard=self.pt_hard)


class Generator(abc.ABC):
    """
    Base generator class.

    The driving task binds a random source and a particle stack, calls `init()`
    once, then `generate()` once per event. Each call fills the stack with the
    particles of one event.

    Attributes:
        hard_process: True for generators of hard-scattering events, which
            support an event-listing range and report hard-process metadata.
        random: Random source bound with `set_random()`.
        stack: Particle stack bound with `set_stack()`.
        initialized: True once `init()` succeeded.
    """
    hard_process = False

    def __init__(self):
        self.random: Optional[np.random.Generator] = None
        self.stack: Optional[ParticleStack] = None
        self.initialized = False
        self.event_list_range: Tuple[int, int] = (-1, -1)

    def set_random(self, random: np.random.Generator) -> None:
        self.random = random

    def set_stack(self, stack: ParticleStack) -> None:
        self.stack = stack

    def set_event_list_range(self, first: int, last: int) -> None:
        """Events with index in [first, last] are listed when generated."""
        self.event_list_range = (int(first), int(last))

    def _in_event_list_range(self, event_index: int) -> bool:
        first, last = self.event_list_range
        return first >= 0 and first <= event_index <= last

    @abc.abstractmethod
    def init(self) -> bool:
        """Initialize the generator. Returns False on failure."""
        ...

    @abc.abstractmethod
    def generate(self) -> Optional[GenEventHeader]:
        """Generate one event into the bound stack and return its header."""
        ...
