"""
# pythia.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .. import config
from ..framework.stack import StackParticle
from .base import Generator, HardProcessEventHeader

# ====================================================================== #
# =========================== Helper functions ========================= #
# ====================================================================== #

def _require_pythia() -> Any:
    """Ensure pythia8mc is available, or raise ImportError."""
    try:
        import pythia8mc as pythia8
        return pythia8
    except Exception as e:
        raise ImportError("pythia8mc is not available, install to use this generator (e.g. `pip install pythia8mc`).") from e


def _pythia_info(pythia: Any) -> Any:
    """Return the Info object across binding versions."""
    if hasattr(pythia, "infoPython"):
        return pythia.infoPython()
    info = pythia.info
    return info() if callable(info) else info


def _particle_energy(p: Any) -> float:
    return float(p.e() if hasattr(p, "e") else p.eCalc())


def _particle_mass(p: Any) -> float:
    return float(p.m() if hasattr(p, "m") else p.mCalc() if hasattr(p, "mCalc") else 0.0)

# ====================================================================== #
# ====================== Pythia8 event generator ======================= #
# ====================================================================== #

class PythiaGenerator(Generator):
    """
    Pythia8 hard-process generator configured from a .cmnd run card.

    Inputs:
      - cmnd_path: optional path to a Pythia8 .cmnd configuration file
      - settings: extra "Key = value" strings applied after the card
      - finals_only: if True, only final-state particles are copied to the stack
      - quiet: if True, Pythia's banner, init and event printouts are switched off
      - max_attempts: number of `next()` calls allowed per event before giving up

    Behavior:
      1. `init()` reads the quiet settings, the run card and the extra settings,
         then seeds Pythia from the bound random source, so the analysis seed
         takes precedence over any seed in the card.
      2. `generate()` produces one accepted event, copies its record (without
         the system entry at index 0) into the stack with mother and daughter
         indices remapped to stack indices (-1 when the target is not kept),
         and returns a HardProcessEventHeader with sigmaGen (mb), the number
         of trials spent on this event and pTHat (GeV/c).
    """
    hard_process = True

    def __init__(self, cmnd_path: Optional[Union[str, Path]] = None,
                 settings: Optional[List[str]] = None,
                 finals_only: bool = False,
                 quiet: bool = True,
                 max_attempts: int = 100):
        super().__init__()
        self.cmnd_path = str(cmnd_path) if cmnd_path is not None else None
        self.settings = list(settings or [])
        self.finals_only = bool(finals_only)
        self.quiet = bool(quiet)
        self.max_attempts = int(max_attempts)
        self.seed: Optional[int] = None
        self.n_generated = 0
        self.n_failed = 0
        self._pythia = None
        self._n_tried = 0

    def init(self) -> bool:
        pythia8 = _require_pythia()

        pythia = pythia8.Pythia("", printBanner=not self.quiet)
        if self.quiet:
            for setting in config.pythia_quiet_settings:
                pythia.readString(setting)
        if self.cmnd_path is not None:
            if not pythia.readFile(self.cmnd_path):
                return False
        for setting in self.settings:
            if not pythia.readString(setting):
                return False
        if self.random is not None:
            self.seed = int(self.random.integers(1, config.pythia_seed_max))
            pythia.readString("Random:setSeed = on")
            pythia.readString(f"Random:seed = {self.seed}")

        if not pythia.init():
            return False
        self._pythia = pythia
        self._n_tried = 0
        self.initialized = True
        return True

    def generate(self) -> Optional[HardProcessEventHeader]:
        if not self.initialized:
            raise RuntimeError("PythiaGenerator.generate() called before init()")

        for _ in range(self.max_attempts):
            if self._pythia.next():
                break
            self.n_failed += 1
        else:
            raise RuntimeError(f"Pythia failed to generate an event in {self.max_attempts} attempts")

        evt = self._pythia.event
        if self._in_event_list_range(self.n_generated):
            evt.list()
        self._fill_stack(evt)
        self.n_generated += 1

        info = _pythia_info(self._pythia)
        n_tried = int(info.nTried())
        trials = n_tried - self._n_tried
        self._n_tried = n_tried
        return HardProcessEventHeader(
            cross_section=float(info.sigmaGen()),
            trials=trials,
            pt_hard=float(info.pTHat()),
            name="PythiaEventHeader",
        )

    def _fill_stack(self, evt: Any) -> None:
        """Copy the Pythia event record into the bound stack."""
        # Pythia index -> stack index, the system entry (0) is never kept.
        index_map: Dict[int, int] = {}
        kept = []
        for i in range(1, evt.size()):
            p = evt[i]
            if self.finals_only and not p.isFinal():
                continue
            index_map[i] = len(kept)
            kept.append(i)

        for i in kept:
            p = evt[i]
            self.stack.push_track(StackParticle(
                pdg=int(p.id()),
                status=int(p.status()),
                px=float(p.px()),
                py=float(p.py()),
                pz=float(p.pz()),
                e=_particle_energy(p),
                mass=_particle_mass(p),
                first_mother=index_map.get(int(p.mother1()), -1),
                second_mother=index_map.get(int(p.mother2()), -1),
                first_daughter=index_map.get(int(p.daughter1()), -1),
                last_daughter=index_map.get(int(p.daughter2()), -1),
                vx=float(p.xProd()),
                vy=float(p.yProd()),
                vz=float(p.zProd()),
                t=float(p.tProd()),
            ))

    def cross_section(self) -> Dict[str, float]:
        """Integrated cross-section summary of the run so far."""
        xsec = {}
        if self._pythia is None:
            return xsec
        info = _pythia_info(self._pythia)
        if hasattr(info, "sigmaGen"):
            xsec["sigmaGen_mb"] = float(info.sigmaGen())
        if hasattr(info, "sigmaErr"):
            xsec["sigmaErr_mb"] = float(info.sigmaErr())
        if hasattr(info, "weightSum"):
            xsec["weightSum"] = float(info.weightSum())
        return xsec
