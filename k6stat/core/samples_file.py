"""
Save and load merged test samples as JSON files.

Lets an operator keep a reference run on disk and compare later runs
against it without querying the database again.
"""

from __future__ import annotations

import logging
from pathlib import Path

from k6stat.models import TestSamples

logger = logging.getLogger(__name__)


def save_test_samples(samples: TestSamples, path: str | Path) -> None:
    path = Path(path)
    path.write_text(samples.model_dump_json(by_alias=True), encoding="utf-8")
    logger.info("Saved test %d samples to %s", samples.test.id, path)


def load_test_samples_file(path: str | Path) -> TestSamples:
    """
    Load samples written by save_test_samples.

    Raises:
        OSError: the file cannot be read.
        pydantic.ValidationError: the file is not a samples document.
    """
    path = Path(path)
    samples = TestSamples.model_validate_json(path.read_text(encoding="utf-8"))
    logger.info("Loaded test %d samples from %s", samples.test.id, path)
    return samples
