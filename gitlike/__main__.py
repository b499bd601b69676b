"""Allow running as `python -m gitlike`."""

from gitlike.cli import run

run()
