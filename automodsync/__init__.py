"""
automodsync - Automation Module Sync

A Python CLI and library that keeps the modules imported into Azure
Automation accounts in step with the versions published in a package
repository (the PowerShell Gallery or any NuGet v2 feed).

automodsync provides:
  - Declarative YAML deployment files with shared defaults
  - Idempotent package repository resolution with a persisted registry
  - Latest or pinned version lookup in NuGet v2 feeds
  - Skip / import / force-replace decisions per Automation account
  - Import submission through Azure Resource Manager and polling to a
    terminal state

Quick Start
-----------
Validate a deployment file:

    $ amsync validate deployments.yaml

Reconcile every deployment in it:

    $ amsync sync deployments.yaml

For full CLI documentation:

    $ amsync --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
core : module
    High-level orchestration functions.
config : package
    YAML deployment file loading and defaults merging.
repository : package
    Repository registrations keyed by source location.
gallery : package
    Module search in NuGet v2 feeds.
automation : package
    Azure Automation account access through ARM.
policy : package
    Skip / import / force-replace decision.
importer, poller : modules
    Import submission and wait-for-completion.
versioning : package
    Module version ordering.

Public API
----------
    from automodsync.core import sync_from_file, sync_deployments
    from automodsync.validation import validate_deployment_file
    from automodsync.config import load_deployment_file
    from automodsync.policy import Action, decide
    from automodsync.versioning import compare_versions
"""

__version__ = "0.1.0"
__description__ = "Keep Azure Automation modules in sync with a package repository"

# Re-export commonly used functions for convenience
from automodsync.config import load_deployment_file
from automodsync.core import sync_deployments, sync_from_file
from automodsync.policy import Action, decide
from automodsync.validation import validate_deployment_file
from automodsync.versioning import compare_versions, is_newer

__all__ = [
    "__version__",
    "__description__",
    "load_deployment_file",
    "sync_deployments",
    "sync_from_file",
    "validate_deployment_file",
    "Action",
    "decide",
    "compare_versions",
    "is_newer",
]
