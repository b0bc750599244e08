"""Project-level configuration and scaffolding."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


CONFIG_FILE = "quotegrid.yaml"
DATA_FILE = "quotes.yaml"

DEFAULT_CONFIG = {
    "base_url": "http://127.0.0.1:8000",
    "currency_prefix": "R$ ",
    "max_import_rows": 5000,
    "logging_fsync": False,
    "logging_tail_bytes": 2_097_152,  # 2 MB
}

DEFAULT_PROJECT_CONFIG = """\
# quotegrid project config
base_url: http://127.0.0.1:8000
currency_prefix: "R$ "
max_import_rows: 5000
logging_fsync: false
"""

EMPTY_DATA = """\
# quotegrid data v1
version: 1
lists: []
requests: []
responses: []
suppliers: []
"""


def load_project_config(project_dir: Path) -> dict[str, Any]:
    """Load project configuration from ``quotegrid.yaml``, with defaults.

    Args:
        project_dir: Root of the quotegrid project.

    Returns:
        Merged configuration dict.
    """
    config = dict(DEFAULT_CONFIG)
    config_path = project_dir / CONFIG_FILE
    if config_path.exists():
        user_config = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        if not isinstance(user_config, dict):
            raise ValueError(f"{config_path} must contain a mapping")
        config.update(user_config)
    return config


def scaffold_project(target_dir: Path) -> Path:
    """Create an empty quotegrid project at the target directory.

    Args:
        target_dir: Directory to create (must not already contain quotes.yaml).

    Returns:
        Path to the created project directory.
    """
    target_dir = target_dir.resolve()
    target_dir.mkdir(parents=True, exist_ok=True)

    if (target_dir / DATA_FILE).exists():
        raise FileExistsError(f"{DATA_FILE} already exists in {target_dir}")

    (target_dir / DATA_FILE).write_text(EMPTY_DATA, encoding="utf-8")
    if not (target_dir / CONFIG_FILE).exists():
        (target_dir / CONFIG_FILE).write_text(DEFAULT_PROJECT_CONFIG, encoding="utf-8")
    (target_dir / "logs").mkdir(exist_ok=True)

    return target_dir
