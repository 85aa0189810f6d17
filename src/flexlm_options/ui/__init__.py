"""UI package exports for the command line and its renderer."""

from flexlm_options.ui.cli import CLIError, build_parser, main, run_cli
from flexlm_options.ui.render import CLIRenderer, create_renderer

__all__ = ["CLIError", "CLIRenderer", "build_parser", "create_renderer", "main", "run_cli"]
