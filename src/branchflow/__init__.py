"""branchflow - feature/release/hotfix/support branching on top of git."""

__version__ = "0.3.0"
