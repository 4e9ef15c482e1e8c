"""Git utilities for everyday branch and repository housekeeping.

Features:
- Delete merged (or selected) branches, optionally on the remote too
- Switch branches interactively, including recently visited ones
- List merged pull requests in a revision range
- Clone, list and delete repositories under a managed root directory
- Shell setup helpers
"""

__version__ = "0.3.0"
