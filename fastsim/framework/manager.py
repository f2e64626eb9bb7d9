"""
# manager.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Analysis manager driving user tasks through their callbacks.

The manager owns one event container that persists across iterations, so
objects a task publishes once (by name) stay visible to itself and to every
task running after it.
"""

import abc
import os
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from tqdm import tqdm

from .. import config
from .context import ProcessContext
from .histograms import OutputList


class EventContainer:
    """Per-analysis event holding named objects published by tasks."""

    def __init__(self, name: str = "Event"):
        self.name = name
        self.event_number = -1
        self._objects: List[Any] = []

    def add_object(self, obj: Any) -> None:
        """Publish `obj` under its `name` attribute."""
        if not getattr(obj, "name", None):
            raise ValueError("objects added to the event must have a name")
        self._objects.append(obj)

    def find_list_object(self, name: str) -> Optional[Any]:
        for obj in self._objects:
            if obj.name == name:
                return obj
        return None

    @property
    def object_names(self) -> List[str]:
        return [obj.name for obj in self._objects]

    def __contains__(self, name: str) -> bool:
        return self.find_list_object(name) is not None

    def __len__(self) -> int:
        return len(self._objects)


class AnalysisTask(abc.ABC):
    """
    Base class of the tasks run by an AnalysisManager.

    Subclasses override `user_create_output_objects` (called once before the
    first event) and `user_exec` (called once per event).
    """

    def __init__(self, name: str):
        self.name = name
        self.manager: Optional["AnalysisManager"] = None
        self._output_slots: Dict[int, type] = {}

    @property
    def input_event(self) -> Optional[EventContainer]:
        return self.manager.event if self.manager is not None else None

    @property
    def process(self) -> Optional[ProcessContext]:
        return self.manager.process if self.manager is not None else None

    def define_output(self, slot: int, kind: type) -> None:
        self._output_slots[slot] = kind

    @property
    def output_slots(self) -> Dict[int, type]:
        return dict(self._output_slots)

    def post_data(self, slot: int, obj: Any) -> None:
        """Hand `obj` over to the manager as the content of output `slot`."""
        if slot not in self._output_slots:
            raise KeyError(f"task {self.name!r} has no output slot {slot}")
        kind = self._output_slots[slot]
        if not isinstance(obj, kind):
            raise TypeError(f"slot {slot} of {self.name!r} expects {kind.__name__}, got {type(obj).__name__}")
        if self.manager is not None:
            self.manager.post_data(self, slot, obj)

    def user_create_output_objects(self) -> None:
        pass

    @abc.abstractmethod
    def user_exec(self) -> None:
        """Process the current event."""

    def terminate(self) -> None:
        pass


class AnalysisManager:
    """
    Runs a chain of AnalysisTasks event by event.

    Attributes:
        process: Process-wide context shared by all tasks (simulation, random source).
        event: Event container handed to every task as its input event.
        tasks: Tasks in execution order.
        n_processed: Number of events executed so far.
    """

    def __init__(self, name: str = "AnalysisManager", process: Optional[ProcessContext] = None):
        self.name = name
        self.process = process if process is not None else ProcessContext()
        self.event = EventContainer()
        self.tasks: List[AnalysisTask] = []
        self.n_processed = 0
        self._outputs: Dict[Tuple[str, int], Any] = {}
        self._initialized = False

    def add_task(self, task: AnalysisTask) -> None:
        if any(t.name == task.name for t in self.tasks):
            raise ValueError(f"a task named {task.name!r} is already registered")
        task.manager = self
        self.tasks.append(task)

    def init_analysis(self) -> None:
        """Let every task create its output objects (once)."""
        if self._initialized:
            return
        for task in self.tasks:
            task.user_create_output_objects()
        self._initialized = True

    def exec_event(self) -> None:
        """Run one iteration of every task."""
        if not self._initialized:
            self.init_analysis()
        self.event.event_number = self.n_processed
        for task in self.tasks:
            task.user_exec()
        self.n_processed += 1

    def start_analysis(self, n_events: int, progress: bool = False) -> int:
        """Process `n_events` events, then terminate the tasks. Returns events processed."""
        self.init_analysis()
        events = range(int(n_events))
        if progress:
            events = tqdm(events, desc="Generating events", unit="evt", **config.tqdm_config)
        for _ in events:
            self.exec_event()
        for task in self.tasks:
            task.terminate()
        return self.n_processed

    def post_data(self, task: AnalysisTask, slot: int, obj: Any) -> None:
        self._outputs[(task.name, slot)] = obj

    def get_output(self, task_name: str, slot: int) -> Optional[Any]:
        return self._outputs.get((task_name, slot))

    @property
    def outputs(self) -> Dict[Tuple[str, int], Any]:
        return dict(self._outputs)

    def write_outputs(self, path: str) -> Optional[str]:
        """
        Flush every posted OutputList to a single .npz file.

        Arrays are keyed `<list>.<object>.<field>`. Returns the path written, or
        None when no task posted an output list.
        """
        arrays = {}
        for obj in self._outputs.values():
            if not isinstance(obj, OutputList):
                continue
            for key, value in obj.to_arrays().items():
                arrays[f"{obj.name}.{key}"] = value
        if not arrays:
            return None
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        np.savez(path, **arrays)
        return path
