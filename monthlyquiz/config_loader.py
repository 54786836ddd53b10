"""
Configuration loader for the monthly exam program.

Handles loading and validating exam configuration files.
"""

import json
import sys
from pathlib import Path
from typing import Optional

from .models import ExamConfig, DEFAULT_SUBJECTS


def default_config_path() -> Path:
    """config.json next to the executable, or in the project root."""
    if getattr(sys, 'frozen', False):
        exe_dir = Path(sys.executable).parent
    else:
        exe_dir = Path(__file__).parent.parent
    return exe_dir / "config.json"


def load_config(config_path: Optional[Path] = None) -> ExamConfig:
    """
    Load exam configuration from a JSON file.

    Args:
        config_path: Path to the configuration file. If None, looks for
                    'config.json' next to the executable/script.

    Returns:
        ExamConfig object with validated configuration

    Raises:
        ValueError: If config is invalid
    """
    if config_path is None:
        config_path = default_config_path()

    if not config_path.exists():
        print(f"Warning: Config file '{config_path}' not found. Using default configuration.")
        return ExamConfig.default()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")
    except OSError as e:
        raise ValueError(f"Error reading config file: {e}")

    if not isinstance(data, dict):
        raise ValueError("Invalid configuration: top-level value must be an object")

    try:
        config = ExamConfig.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration: malformed entry ({e})")

    is_valid, error_message = config.validate()
    if not is_valid:
        raise ValueError(f"Invalid configuration: {error_message}")

    return config


def create_sample_config(output_path: Path):
    """
    Create a sample configuration file for administrators.

    Args:
        output_path: Path where to save the sample config
    """
    sample_config = {
        "exam_hour_local": 21,
        "utc_offset_hours": 6,
        "window_days": 10,
        "publish_lead_days": 20,
        "short_duration_minutes": 25,
        "standard_duration_minutes": 30,
        "randomize_paper": False,
        "question_order": "seeded",
        "tick_interval_seconds": 0.5,
        "papers_dir": "quizdata",
        "data_dir": "exam_data",
        "subjects": DEFAULT_SUBJECTS,
        "_comment": "This is a sample exam configuration. Adjust values as needed.",
        "_instructions": {
            "exam_hour_local": "Hour (0-23, exam time zone) at which the daily exam opens",
            "utc_offset_hours": "Fixed offset of the exam time zone from UTC (no daylight saving)",
            "window_days": "Number of exam days at the end of each month",
            "publish_lead_days": "Days before the first exam day when the routine is shown",
            "short_duration_minutes": "Exam length for subjects marked short",
            "standard_duration_minutes": "Exam length for all other subjects",
            "randomize_paper": "true picks a random paper on each load instead of the seeded one",
            "question_order": "fixed (file order), seeded (stable per student and day) or random (every load)",
            "tick_interval_seconds": "How often the countdown is refreshed (at most 1 second)",
            "papers_dir": "Directory with one paper file per subject (.json or .enc)",
            "data_dir": "Directory for the local result store and session log",
            "subjects": "Ordered subject list: id, name, file and short flag"
        }
    }

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(sample_config, f, indent=2)

    print(f"Sample configuration created at: {output_path}")
