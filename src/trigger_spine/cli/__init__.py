"""trigger-spine command line interface."""

from trigger_spine.cli.app import app

__all__ = ["app"]
