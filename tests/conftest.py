"""
Shared fixtures: temporary Lua projects.
"""
import tempfile
from pathlib import Path

import pytest


@pytest.fixture
def project():
    """
    Factory writing a dict of {relative path: source} into a temp directory.

    Returns the directory as a Path. Every call writes into the same
    directory, so a test can add files in several steps.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)

        def make(files):
            for rel, source in files.items():
                path = root / rel
                path.parent.mkdir(parents=True, exist_ok=True)
                with open(path, 'w', encoding='utf-8', newline='') as f:
                    f.write(source)
            return root

        yield make
