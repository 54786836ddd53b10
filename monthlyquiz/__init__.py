"""
Monthly Quiz Exam - Runner Package

This package contains the core components for the monthly assessment program:
- rng / schedule / selector: deterministic routine and paper selection
- windows / timer: exam window arithmetic and the countdown state machine
- submission / session: single-flight submission and result sheets
"""

__version__ = "1.0.0"
