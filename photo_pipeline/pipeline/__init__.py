"""Pipeline status checks for a commit."""

from .branch_logs import BranchLogChecker, BranchLogResult
from .check import CheckResult, PipelineChecker

__all__ = ["BranchLogChecker", "BranchLogResult", "CheckResult", "PipelineChecker"]
