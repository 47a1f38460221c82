# config_local.example.py

"""
Example local overrides.

Usage:
  1) Copy this file to `config_local.py`
  2) Adjust values for your machine
  3) Never commit `config_local.py` (it is gitignored)

Prefer `.env` for everything else. Only the host switches below are read.
"""

# Example: run only the background scheduler (no REPL)
# CONSOLE_ENABLED = False

# Example: disable automatic lane promotion while testing
# SCHEDULER_ENABLED = False
