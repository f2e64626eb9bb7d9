#!/usr/bin/env python3
"""
# test_tool.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Unit tests for FastSimulationTool.

Tests cover:
- Particle gun runs (JSONL layout, QA histogram file, manifest)
- Seed reproducibility
- Parameter validation and path traversal prevention (security)
- Per-line finals_only / full_history metadata of the JSONL writer
- Pythia runs from a run card (skipped when pythia8mc is not installed)
"""

import os
import sys
import io
import json
import shutil
import tempfile
import unittest
from pathlib import Path

import numpy as np

SCRIPT_PATH = Path(__file__).resolve()
SIMULATION_DIR = SCRIPT_PATH.parent                           # .../fastsim/simulation
PACKAGE_DIR = SIMULATION_DIR.parent                           # .../fastsim
REPO_ROOT = PACKAGE_DIR.parent                                # .../

# Add repository root to path for local imports
sys.path.insert(0, str(REPO_ROOT))

from fastsim.framework import AnalysisManager
from fastsim.generators import BoxGenerator, PythiaGenerator, _require_pythia
from fastsim.simulation import FastSimulationTask
from fastsim.simulation.tool import FastSimulationTool, GenParticlesWriterTask

CARD_PATH = PACKAGE_DIR / "generators" / "test_files" / "cards" / "pp_hardqcd.cmnd"

# Global flag for keeping test files
keep_files = False


def _has_pythia() -> bool:
    try:
        _require_pythia()
        return True
    except ImportError:
        return False


def _is_error(result: str) -> bool:
    """format_error output is JSON with status 'error' or plain text, accept both."""
    try:
        return json.loads(result).get("status") != "ok"
    except (json.JSONDecodeError, ValueError, AttributeError):
        return "error" in result.lower()


class TestFastSimulationTool(unittest.TestCase):
    """Test suite for FastSimulationTool."""

    def setUp(self):
        """Create temporary sandbox."""
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        """Clean up temporary sandbox."""
        if not keep_files:
            shutil.rmtree(self.test_dir)

    def _read_events(self, rel_path):
        with open(os.path.join(self.test_dir, rel_path), "r", encoding="utf-8") as f:
            return [json.loads(line) for line in f]

    def _run_box(self, data_dir="data/box", **kwargs):
        params = dict(
            base_directory=self.test_dir,
            data_dir=data_dir,
            n_events=5,
            generator="box",
            n_particles=4,
            seed=11,
        )
        params.update(kwargs)
        tool = FastSimulationTool(**params)
        return tool._run()

    def test_box_run(self):
        result = json.loads(self._run_box())
        self.assertEqual(result["status"], "ok")
        self.assertEqual(result["n_events"], 5)
        self.assertEqual(result["n_particles"], 20)
        self.assertEqual(result["n_dangling_mothers"], 0)
        self.assertEqual(result["seed"], 11)

        events = self._read_events(result["events_jsonl"])
        self.assertEqual(len(events), 5)
        self.assertEqual([ev["event_id"] for ev in events], list(range(5)))
        for ev in events:
            self.assertEqual(ev["schema"], "evtjsonl-1.0")
            self.assertEqual(ev["data"]["n"], 4)
            particles = ev["data"]["particles"]
            self.assertEqual([p["i"] for p in particles], [0, 1, 2, 3])
            for p in particles:
                self.assertEqual(p["id"], 211)
                self.assertEqual(p["mother1"], -1)
                for key in ("px", "py", "pz", "E", "m", "status", "mother2", "daughter1", "daughter2"):
                    self.assertIn(key, p)

        with open(os.path.join(self.test_dir, result["manifest_json"]), "r") as f:
            manifest = json.load(f)
        self.assertEqual(manifest["inputs"]["generator"], "box")
        self.assertEqual(manifest["outputs"]["n_events_written"], 5)

    def test_line_metadata(self):
        # Particle gun output holds final-state particles only, with full lineage keys.
        result = json.loads(self._run_box())
        for ev in self._read_events(result["events_jsonl"]):
            self.assertTrue(ev["finals_only"])
            self.assertTrue(ev["full_history"])
            for p in ev["data"]["particles"]:
                self.assertEqual(p["status"], 1)
                self.assertEqual((p["mother2"], p["daughter1"], p["daughter2"]), (-1, -1, -1))

        with open(os.path.join(self.test_dir, result["manifest_json"]), "r") as f:
            manifest = json.load(f)
        self.assertTrue(manifest["inputs"]["finals_only"])

    def test_box_qa_histograms_untouched(self):
        # The particle gun reports no hard-process metadata.
        result = json.loads(self._run_box())
        qa_path = os.path.join(self.test_dir, result["qa_histograms"])
        with np.load(qa_path) as data:
            self.assertIn("FastSimulationTask_histos.hist_trials.contents", data.files)
            self.assertEqual(float(data["FastSimulationTask_histos.hist_trials.contents"].sum()), 0.0)
            self.assertEqual(int(data["FastSimulationTask_histos.hist_pt_hard.entries"]), 0)

    def test_qa_disabled(self):
        result = json.loads(self._run_box(qa_histos=False))
        self.assertEqual(result["status"], "ok")
        self.assertNotIn("qa_histograms", result)
        self.assertFalse(os.path.exists(os.path.join(self.test_dir, "data", "box", "qa_histograms.npz")))

    def test_seed_reproducibility(self):
        first = json.loads(self._run_box(data_dir="data/run1"))
        second = json.loads(self._run_box(data_dir="data/run2"))
        third = json.loads(self._run_box(data_dir="data/run3", seed=12))
        ev1 = self._read_events(first["events_jsonl"])
        ev2 = self._read_events(second["events_jsonl"])
        ev3 = self._read_events(third["events_jsonl"])
        self.assertEqual(ev1, ev2)
        self.assertNotEqual(ev1[0]["data"]["particles"][0]["px"], ev3[0]["data"]["particles"][0]["px"])

    def test_fresh_seed_when_omitted(self):
        result = json.loads(self._run_box(seed=None))
        self.assertEqual(result["status"], "ok")
        self.assertIsInstance(result["seed"], int)

    def test_zero_events(self):
        result = json.loads(self._run_box(n_events=0))
        self.assertEqual(result["status"], "ok")
        self.assertEqual(result["n_events"], 0)
        self.assertEqual(self._read_events(result["events_jsonl"]), [])

    def test_invalid_parameters(self):
        self.assertTrue(_is_error(self._run_box(generator="herwig")))
        self.assertTrue(_is_error(self._run_box(n_events=-1)))
        self.assertTrue(_is_error(self._run_box(pdg=9999999)))

    def test_pythia_requires_card(self):
        tool = FastSimulationTool(base_directory=self.test_dir, data_dir="data/py", n_events=1, generator="pythia")
        self.assertTrue(_is_error(tool._run()))

    def test_missing_card(self):
        tool = FastSimulationTool(base_directory=self.test_dir, data_dir="data/py", n_events=1,
                                  generator="pythia", cmnd_path="cards/missing.cmnd")
        self.assertTrue(_is_error(tool._run()))

    def test_path_traversal_prevention(self):
        self.assertTrue(_is_error(self._run_box(data_dir="../../../tmp/escape")))
        tool = FastSimulationTool(base_directory=self.test_dir, data_dir="data/py", n_events=1,
                                  generator="pythia", cmnd_path="../../../etc/passwd")
        self.assertTrue(_is_error(tool._run()))

    @unittest.skipUnless(_has_pythia(), "pythia8mc not installed")
    def test_pythia_finals_only_metadata(self):
        os.makedirs(os.path.join(self.test_dir, "cards"))
        shutil.copy(CARD_PATH, os.path.join(self.test_dir, "cards", "pp_hardqcd.cmnd"))
        params = dict(base_directory=self.test_dir, n_events=1, generator="pythia",
                      cmnd_path="cards/pp_hardqcd.cmnd", seed=5)

        finals = json.loads(FastSimulationTool(data_dir="data/finals", finals_only=True, **params)._run())
        self.assertEqual(finals["status"], "ok")
        ev = self._read_events(finals["events_jsonl"])[0]
        self.assertTrue(ev["finals_only"])
        self.assertTrue(ev["full_history"])
        self.assertTrue(all(p["status"] > 0 for p in ev["data"]["particles"]))
        for key in ("mother1", "mother2", "daughter1", "daughter2"):
            self.assertIn(key, ev["data"]["particles"][0])

        full = json.loads(FastSimulationTool(data_dir="data/full", finals_only=False, **params)._run())
        ev = self._read_events(full["events_jsonl"])[0]
        self.assertFalse(ev["finals_only"])
        self.assertTrue(any(p["status"] < 0 for p in ev["data"]["particles"]))

    @unittest.skipUnless(_has_pythia(), "pythia8mc not installed")
    def test_pythia_run(self):
        os.makedirs(os.path.join(self.test_dir, "cards"))
        shutil.copy(CARD_PATH, os.path.join(self.test_dir, "cards", "pp_hardqcd.cmnd"))
        tool = FastSimulationTool(
            base_directory=self.test_dir,
            data_dir="data/pythia",
            n_events=3,
            generator="pythia",
            cmnd_path="cards/pp_hardqcd.cmnd",
            seed=5,
        )
        result = json.loads(tool._run())
        self.assertEqual(result["status"], "ok")
        self.assertEqual(result["n_events"], 3)
        self.assertTrue(os.path.exists(os.path.join(self.test_dir, "data", "pythia", "run.cmnd")))

        with np.load(os.path.join(self.test_dir, result["qa_histograms"])) as data:
            self.assertEqual(int(data["FastSimulationTask_histos.hist_pt_hard.entries"]), 3)
            self.assertGreaterEqual(float(data["FastSimulationTask_histos.hist_trials.contents"][1]), 3.0)

        with open(os.path.join(self.test_dir, result["manifest_json"]), "r") as f:
            manifest = json.load(f)
        self.assertIn("xsec", manifest["outputs"])
        self.assertGreater(manifest["outputs"]["qa"]["xsection_mb"], 0.0)


class TestGenParticlesWriter(unittest.TestCase):
    """Per-line metadata written by GenParticlesWriterTask."""

    def _write(self, generator, finals_only):
        fp = io.StringIO()
        manager = AnalysisManager()
        manager.add_task(FastSimulationTask(generator=generator))
        manager.add_task(GenParticlesWriterTask(fp, finals_only=finals_only))
        manager.start_analysis(1)
        return [json.loads(line) for line in fp.getvalue().splitlines()]

    def test_flags_follow_arguments(self):
        rows = self._write(BoxGenerator(n_particles=3), finals_only=True)
        self.assertEqual(len(rows), 1)
        self.assertTrue(rows[0]["finals_only"])
        self.assertTrue(rows[0]["full_history"])
        self.assertEqual(rows[0]["event_id"], 0)

        rows = self._write(BoxGenerator(n_particles=3), finals_only=False)
        self.assertFalse(rows[0]["finals_only"])

    @unittest.skipUnless(_has_pythia(), "pythia8mc not installed")
    def test_pythia_finals_only(self):
        rows = self._write(PythiaGenerator(cmnd_path=CARD_PATH, finals_only=True), finals_only=True)
        self.assertTrue(rows[0]["finals_only"])
        particles = rows[0]["data"]["particles"]
        self.assertTrue(all(p["status"] > 0 for p in particles))
        self.assertEqual(sorted(particles[0]),
                         sorted(["i", "id", "status", "px", "py", "pz", "E", "m",
                                 "mother1", "mother2", "daughter1", "daughter2"]))


if __name__ == '__main__':
    import argparse

    # Parse command-line arguments
    parser = argparse.ArgumentParser(description="Test suite for FastSimulationTool")
    parser.add_argument("--keep-files", action="store_true",
                        help="Keep test-generated files after tests complete")
    args, remaining = parser.parse_known_args()

    # Set global flag
    keep_files = args.keep_files

    # Run unittest with remaining arguments
    sys.argv[1:] = remaining
    unittest.main()
