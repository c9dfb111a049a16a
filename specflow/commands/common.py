"""Helpers shared by several commands."""

import argparse
import logging

from specflow.lib import github
from specflow.lib.config import SpecflowConfig

logger = logging.getLogger(__name__)


def resolve_default_branch(config: SpecflowConfig) -> str:
    """Configured default branch, else the one GitHub reports for the repo."""
    if config.default_branch:
        return config.default_branch
    branch = github.get_default_branch(config.project_root)
    logger.info(f"Using repository default branch '{branch}'")
    return branch


def parse_issue_number(value: str) -> int:
    """argparse type for --issue: a positive integer, optionally prefixed with #."""
    text = value.strip().lstrip("#")
    if not text.isdigit() or int(text) < 1:
        raise argparse.ArgumentTypeError(f"Invalid issue number: {value}")
    return int(text)


def yes_no(flag: bool) -> str:
    return "yes" if flag else "no"
