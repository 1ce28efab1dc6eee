"""
Tests for saving and loading merged samples (k6stat.core.samples_file).
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from k6stat.core.samples_file import load_test_samples_file, save_test_samples
from k6stat.models import TestSamples


class TestSamplesFile:
    """Tests for the JSON samples file."""

    def test_save_writes_wire_names(self, tmp_path: Path, current_samples: TestSamples) -> None:
        path = tmp_path / "test.json"

        save_test_samples(current_samples, path)

        data = json.loads(path.read_text())
        assert data["test"]["Id"] == 2
        assert data["test"]["Name"] == "carbonapi 1.5.6"
        assert data["samples"]["find"][0]["errors"] == 10.0

    def test_load_restores_saved_samples(self, tmp_path: Path, current_samples: TestSamples) -> None:
        path = tmp_path / "test.json"
        save_test_samples(current_samples, path)

        assert load_test_samples_file(path) == current_samples

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            load_test_samples_file(tmp_path / "missing.json")

    def test_not_a_samples_document(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text('{"samples": {}}')

        with pytest.raises(ValidationError):
            load_test_samples_file(path)
