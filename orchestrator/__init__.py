"""
Orchestration package for coordinating import pipeline phases.

This package provides the orchestration layer that sequences all import
phases: Index → Resolve → Convert/Copy → Report.
"""

from .import_context import ImportContext
from .migration_orchestrator import MigrationOrchestrator, run_import
from .migration_report import MigrationReport

__all__ = [
    'ImportContext',
    'MigrationOrchestrator',
    'MigrationReport',
    'run_import',
]
