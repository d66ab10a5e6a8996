"""
Memorial package
================

This package contains the Death Register analytics and memorial-calendar engine.

- The CLI entry point is in `memorial/cli.py`.
- Filtering and sorting of the register is in `memorial/engine.py`.
- Cohort/trend statistics are in `memorial/cohorts.py`.
- The memorial calendar and anniversary feed are in `memorial/anniversaries.py`.
- Loading register exports is in `memorial/loader.py`.
"""

__version__ = '0.3.0'
