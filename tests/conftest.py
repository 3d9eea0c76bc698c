import shutil
import tempfile
from pathlib import Path

import pytest


@pytest.fixture(scope="session", autouse=True)
def isolate_home_config():
    """Temporarily move any existing user-level configuration out of the way.

    Tests expect the built-in defaults unless they write a configuration
    file themselves. The file is moved aside for the duration of the test
    session and restored afterwards.
    """
    config_path = Path.home() / ".commitsplit" / "config.json"
    backup_dir = None
    moved = False
    if config_path.exists():
        backup_dir = Path(tempfile.mkdtemp(prefix="commitsplit_backup_"))
        shutil.move(str(config_path), str(backup_dir / "config.json"))
        moved = True

    try:
        yield
    finally:
        if moved and backup_dir is not None:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(backup_dir / "config.json"), str(config_path))
            shutil.rmtree(str(backup_dir), ignore_errors=True)
