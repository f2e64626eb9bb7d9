"""
# histograms.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Fixed-binning accumulators for task QA output.

Bin numbering follows the usual HEP convention: bin 0 is the underflow,
bins 1..nbins cover [xlow, xup) and bin nbins+1 is the overflow.
"""

import math
from typing import Dict, Iterator, List, Optional, Union

import numpy as np


class Hist1D:
    """One-dimensional histogram with weighted fills."""

    def __init__(self, name: str, title: str, nbins: int, xlow: float, xup: float,
                 x_title: str = "", y_title: str = ""):
        if nbins < 1:
            raise ValueError(f"nbins must be positive, got {nbins}")
        if not xup > xlow:
            raise ValueError(f"empty axis range [{xlow}, {xup})")
        self.name = name
        self.title = title
        self.x_title = x_title
        self.y_title = y_title
        self.nbins = int(nbins)
        self.xlow = float(xlow)
        self.xup = float(xup)
        self.edges = np.linspace(self.xlow, self.xup, self.nbins + 1)
        self.contents = np.zeros(self.nbins + 2)
        self.sumw2 = np.zeros(self.nbins + 2)
        self.entries = 0
        # Running sums over in-range fills, for the mean.
        self._sumw = 0.0
        self._sumwx = 0.0

    def find_bin(self, x: float) -> int:
        if math.isnan(x) or x >= self.xup:
            return self.nbins + 1
        if x < self.xlow:
            return 0
        width = (self.xup - self.xlow) / self.nbins
        return min(int((x - self.xlow) / width) + 1, self.nbins)

    def fill(self, x: float, weight: float = 1.0) -> int:
        """Add `weight` at `x` and return the bin that was filled."""
        b = self.find_bin(x)
        self.contents[b] += weight
        self.sumw2[b] += weight * weight
        self.entries += 1
        if 0 < b <= self.nbins:
            self._sumw += weight
            self._sumwx += weight * x
        return b

    def bin_content(self, b: int) -> float:
        return float(self.contents[b])

    def bin_error(self, b: int) -> float:
        return float(np.sqrt(self.sumw2[b]))

    def integral(self) -> float:
        """Sum of in-range bin contents."""
        return float(self.contents[1:self.nbins + 1].sum())

    def mean(self) -> float:
        return self._sumwx / self._sumw if self._sumw else 0.0

    def reset(self) -> None:
        self.contents[:] = 0.0
        self.sumw2[:] = 0.0
        self.entries = 0
        self._sumw = 0.0
        self._sumwx = 0.0

    def to_arrays(self) -> Dict[str, np.ndarray]:
        return {
            "edges": self.edges.copy(),
            "contents": self.contents.copy(),
            "sumw2": self.sumw2.copy(),
            "entries": np.array(self.entries),
        }


class Profile1D:
    """
    Per-bin weighted average of y as a function of x.

    `bin_content` returns sum(w*y)/sum(w) for the bin, 0 when the bin is empty.
    """

    def __init__(self, name: str, title: str, nbins: int, xlow: float, xup: float,
                 x_title: str = "", y_title: str = ""):
        self._axis = Hist1D(name, title, nbins, xlow, xup)
        self.name = name
        self.title = title
        self.x_title = x_title
        self.y_title = y_title
        self.nbins = self._axis.nbins
        self.edges = self._axis.edges
        self.sumw = np.zeros(self.nbins + 2)
        self.sumwy = np.zeros(self.nbins + 2)
        self.sumwy2 = np.zeros(self.nbins + 2)
        self.entries = 0

    def find_bin(self, x: float) -> int:
        return self._axis.find_bin(x)

    def fill(self, x: float, y: float, weight: float = 1.0) -> int:
        b = self.find_bin(x)
        self.sumw[b] += weight
        self.sumwy[b] += weight * y
        self.sumwy2[b] += weight * y * y
        self.entries += 1
        return b

    def bin_content(self, b: int) -> float:
        if self.sumw[b] == 0:
            return 0.0
        return float(self.sumwy[b] / self.sumw[b])

    def bin_entries(self, b: int) -> float:
        return float(self.sumw[b])

    def bin_spread(self, b: int) -> float:
        if self.sumw[b] == 0:
            return 0.0
        mean = self.sumwy[b] / self.sumw[b]
        return float(np.sqrt(max(self.sumwy2[b] / self.sumw[b] - mean * mean, 0.0)))

    def reset(self) -> None:
        self.sumw[:] = 0.0
        self.sumwy[:] = 0.0
        self.sumwy2[:] = 0.0
        self.entries = 0

    def to_arrays(self) -> Dict[str, np.ndarray]:
        return {
            "edges": self.edges.copy(),
            "sumw": self.sumw.copy(),
            "sumwy": self.sumwy.copy(),
            "sumwy2": self.sumwy2.copy(),
            "entries": np.array(self.entries),
        }


Histogram = Union[Hist1D, Profile1D]


class OutputList:
    """Named, ordered list of histograms posted by a task."""

    def __init__(self, name: str = "output"):
        self.name = name
        self._objects: List[Histogram] = []

    def add(self, obj: Histogram) -> None:
        if self.find(obj.name) is not None:
            raise ValueError(f"{self.name} already holds an object named {obj.name!r}")
        self._objects.append(obj)

    def find(self, name: str) -> Optional[Histogram]:
        for obj in self._objects:
            if obj.name == name:
                return obj
        return None

    def to_arrays(self) -> Dict[str, np.ndarray]:
        """Flatten to `<object>.<field>` keyed arrays (np.savez friendly)."""
        arrays = {}
        for obj in self._objects:
            for key, value in obj.to_arrays().items():
                arrays[f"{obj.name}.{key}"] = value
        return arrays

    def __iter__(self) -> Iterator[Histogram]:
        return iter(self._objects)

    def __len__(self) -> int:
        return len(self._objects)
