import argparse
import sys
from typing import List, Optional

from PyQt6.QtWidgets import QApplication

from ui.main_window import MainWindow
from utils.config import AppConfig
from utils.logging_utils import configure_logging


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitpane",
        description="Desktop client for git status, staging, commits, branches and diffs.",
    )
    parser.add_argument(
        "repository",
        nargs="?",
        help="Repository to open on startup.",
    )
    parser.add_argument(
        "--git",
        dest="git_executable",
        help="Path to the git executable (default: $GITPANE_GIT or 'git').",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be specified multiple times).",
    )
    return parser


def build_config(argv: Optional[List[str]] = None) -> AppConfig:
    args = build_arg_parser().parse_args(argv)
    config = AppConfig(repository=args.repository, verbosity=args.verbose)
    if args.git_executable:
        config.git_executable = args.git_executable
    return config


def main(argv: Optional[List[str]] = None) -> int:
    config = build_config(argv)
    configure_logging(config.verbosity)

    # argparse already owns the command line; Qt only gets the program name.
    app = QApplication(sys.argv[:1])
    window = MainWindow(config)
    window.show()
    if config.repository:
        window.controller.open_repository(config.repository)
    return app.exec()


if __name__ == '__main__':
    sys.exit(main())
