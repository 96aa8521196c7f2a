"""Shared test fixtures."""

from pathlib import Path

import pytest

from roster.reader import read_ocr_text, read_reference_teams


DATA_DIR = Path(__file__).resolve().parent.parent / 'data'


@pytest.fixture(scope='session')
def data_dir() -> Path:
    """Path to the data directory."""
    return DATA_DIR


@pytest.fixture(scope='session')
def electronic_text() -> str:
    """OCR text of an electronic scoresheet with score preamble."""
    return read_ocr_text(DATA_DIR / 'electronic_sheet.txt')


@pytest.fixture(scope='session')
def manuscript_text() -> str:
    """OCR text of a handwritten scoresheet."""
    return read_ocr_text(DATA_DIR / 'manuscript_sheet.txt')


@pytest.fixture(scope='session')
def reference_teams():
    """Both teams from reference.csv, in file order."""
    return read_reference_teams(DATA_DIR / 'reference.csv')
