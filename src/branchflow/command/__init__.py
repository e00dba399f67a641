"""CLI command modules for branchflow."""

from branchflow.command.feature import FeatureCommand
from branchflow.command.hotfix import HotfixCommand
from branchflow.command.init import InitCommand
from branchflow.command.release import ReleaseCommand
from branchflow.command.support import SupportCommand

__all__ = [
    "FeatureCommand",
    "ReleaseCommand",
    "HotfixCommand",
    "SupportCommand",
    "InitCommand",
]
