"""
Deployment file loading for automodsync.

A deployment file is a YAML document describing which module to keep in
sync, where to fetch it from, and which Automation accounts receive it:

    apiVersion: amsync/v1
    subscription_id: 00000000-0000-0000-0000-000000000000
    defaults:
      options:
        resource_group: rg-automation
    deployments:
      - name: az-accounts
        source: https://www.powershellgallery.com/api/v2
        targets: [aa-prod-01, aa-prod-02]
        options:
          module_name: Az.Accounts
          module_version: "2.12.1"
          force: false
          credential: ${GALLERY_API_KEY}

Merge Behavior
--------------
The top-level `defaults` mapping is deep-merged under every deployment with
"last wins" semantics:
  - **Dicts**: Recursively merged (deployment keys override defaults)
  - **Lists**: Completely replaced (NOT appended/extended)
  - **Scalars**: Overwritten

Environment Expansion
---------------------
A credential written as `${NAME}` is read from the environment variable
NAME at load time. An unset variable produces a warning and no credential.

Functions
---------
load_deployment_file : function
    Load, merge and check a deployment file (main public API).
merged_deployments : function
    Apply defaults to the raw deployment entries of a parsed document.
check_document / check_deployment : function
    Collect errors and warnings without raising (shared with validation).

Error Handling
--------------
- ConfigError: missing file, YAML parse errors, structural problems. All
  errors are chained with "from err".
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import re
from typing import Any
from urllib.parse import urlparse

import yaml

from automodsync.exceptions import ConfigError
from automodsync.logging import get_global_logger

SUPPORTED_API_VERSIONS = ("amsync/v1",)
KNOWN_OPTIONS = ("module_name", "module_version", "resource_group", "force", "credential")

_ENV_REF = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)\}$")

# -------------------------------
# Data types
# -------------------------------


@dataclass(frozen=True)
class DeploymentOptions:
    """Per-deployment module options.

    Attributes:
        module_name: Module to reconcile.
        resource_group: Resource group holding the target accounts.
        module_version: Exact version to deploy, or None for latest.
        force: Replace an imported module even when it is the same or newer.
        credential: Opaque repository credential.
    """

    module_name: str
    resource_group: str
    module_version: str | None = None
    force: bool = False
    credential: str | None = None


@dataclass(frozen=True)
class DeploymentDescriptor:
    """One deployment unit: a module source and the accounts it feeds."""

    name: str
    source_location: str
    targets: tuple[str, ...]
    options: DeploymentOptions


@dataclass(frozen=True)
class DeploymentFile:
    """A loaded deployment file."""

    path: Path
    subscription_id: str | None
    deployments: tuple[DeploymentDescriptor, ...]


# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> Any:
    """
    Load a YAML file and return the parsed Python object.

    Raises:
      ConfigError - when the file is missing, unreadable, empty, or invalid YAML
    """
    if not p.exists():
        raise ConfigError(f"Deployment file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    except OSError as err:
        raise ConfigError(f"Failed to read deployment file {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    return data


def _redact_credentials(entries: list[Any]) -> list[Any]:
    """Return copies of the entries with option credentials masked."""
    redacted: list[Any] = []
    for entry in entries:
        options = entry.get("options") if isinstance(entry, dict) else None
        if isinstance(options, dict) and options.get("credential") is not None:
            entry = {**entry, "options": {**options, "credential": "***"}}
        redacted.append(entry)
    return redacted


def _print_yaml_content(data: Any) -> None:
    """Dump a structure through the debug logger."""
    logger = get_global_logger()
    yaml_str = yaml.dump(data, default_flow_style=False, sort_keys=False)
    for line in yaml_str.split("\n"):
        if line.strip():
            logger.debug("CONFIG", line)


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge two dicts with "overlay wins".

    Rules:
      - dict + dict -> deep merge
      - list + list -> overlay REPLACES base (not concatenated)
      - everything else -> overlay overwrites base

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            result[k] = v
    return result


def merged_deployments(document: dict[str, Any]) -> list[Any]:
    """Return the deployment entries with `defaults` merged underneath.

    Entries that are not mappings are returned untouched so the checks can
    report them.
    """
    defaults = document.get("defaults") or {}
    entries = document.get("deployments") or []
    if not isinstance(defaults, dict) or not isinstance(entries, list):
        return entries if isinstance(entries, list) else []
    return [
        _deep_merge_dicts(defaults, entry) if isinstance(entry, dict) else entry
        for entry in entries
    ]


# -------------------------------
# Checks
# -------------------------------


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def check_document(document: Any) -> tuple[list[str], list[str]]:
    """Check the top-level structure of a parsed deployment file."""
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(document, dict):
        return ["Top-level YAML must be a mapping"], warnings

    api_version = document.get("apiVersion")
    if not api_version:
        errors.append("Missing required field: apiVersion")
    elif api_version not in SUPPORTED_API_VERSIONS:
        errors.append(
            f"Unsupported apiVersion {api_version!r}. "
            f"Supported: {', '.join(SUPPORTED_API_VERSIONS)}"
        )

    if "defaults" in document and not isinstance(document["defaults"], dict):
        errors.append("Field 'defaults' must be a mapping")

    subscription = document.get("subscription_id")
    if subscription is not None and not isinstance(subscription, str):
        errors.append("Field 'subscription_id' must be a string")

    deployments = document.get("deployments")
    if deployments is None:
        errors.append("Missing required field: deployments")
    elif not isinstance(deployments, list):
        errors.append("Field 'deployments' must be a list")
    elif not deployments:
        errors.append("No deployments defined")

    return errors, warnings


def check_deployment(entry: Any, index: int) -> tuple[list[str], list[str]]:
    """Check one merged deployment entry.

    Args:
        entry: Deployment mapping after defaults were merged in.
        index: Position in the file, used in messages.

    Returns:
        A tuple (errors, warnings) of human-readable messages.

    """
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(entry, dict):
        return [f"Deployment #{index}: must be a mapping"], warnings

    name = entry.get("name")
    label = f"Deployment {name!r}" if isinstance(name, str) and name else f"Deployment #{index}"
    if not isinstance(name, str) or not name.strip():
        errors.append(f"{label}: missing required field 'name'")

    source = entry.get("source")
    if not isinstance(source, str) or not source.strip():
        errors.append(f"{label}: missing required field 'source'")
    elif not _is_http_url(source):
        errors.append(f"{label}: source {source!r} is not an absolute http(s) URL")

    targets = entry.get("targets")
    if not isinstance(targets, list) or not targets:
        errors.append(f"{label}: 'targets' must be a non-empty list of account names")
    else:
        for target in targets:
            if not isinstance(target, str) or not target.strip():
                errors.append(f"{label}: invalid target account name {target!r}")
        names = [t.lower() for t in targets if isinstance(t, str)]
        if len(set(names)) != len(names):
            warnings.append(f"{label}: duplicate target accounts will be processed twice")

    options = entry.get("options")
    if not isinstance(options, dict):
        errors.append(f"{label}: missing required mapping 'options'")
        return errors, warnings

    for key in ("module_name", "resource_group"):
        value = options.get(key)
        if not isinstance(value, str) or not value.strip():
            errors.append(f"{label}: missing required option '{key}'")

    version = options.get("module_version")
    if version is not None:
        if isinstance(version, bool) or not isinstance(version, str | int | float):
            errors.append(f"{label}: option 'module_version' must be a string")
        elif not isinstance(version, str):
            warnings.append(
                f"{label}: module_version {version!r} should be quoted; "
                f"YAML reads it as a number"
            )

    force = options.get("force")
    if force is not None and not isinstance(force, bool):
        errors.append(f"{label}: option 'force' must be true or false")

    credential = options.get("credential")
    if credential is not None:
        if not isinstance(credential, str):
            errors.append(f"{label}: option 'credential' must be a string")
        elif not _ENV_REF.match(credential):
            warnings.append(
                f"{label}: credential is stored in plain text; "
                f"prefer an environment reference like ${{GALLERY_API_KEY}}"
            )

    for key in options:
        if key not in KNOWN_OPTIONS:
            warnings.append(f"{label}: unknown option {key!r} is ignored")

    return errors, warnings


# -------------------------------
# Conversion
# -------------------------------


def _expand_credential(value: str | None, label: str) -> str | None:
    if value is None:
        return None
    m = _ENV_REF.match(value)
    if not m:
        return value
    resolved = os.environ.get(m.group(1))
    if not resolved:
        get_global_logger().warning(
            "CONFIG", f"{label}: environment variable {m.group(1)} not set"
        )
        return None
    return resolved


def _to_descriptor(entry: dict[str, Any]) -> DeploymentDescriptor:
    options = entry["options"]
    version = options.get("module_version")
    return DeploymentDescriptor(
        name=entry["name"],
        source_location=entry["source"],
        targets=tuple(entry["targets"]),
        options=DeploymentOptions(
            module_name=options["module_name"],
            resource_group=options["resource_group"],
            module_version=str(version) if version is not None else None,
            force=bool(options.get("force", False)),
            credential=_expand_credential(options.get("credential"), entry["name"]),
        ),
    )


# -------------------------------
# Public API
# -------------------------------


def load_deployment_file(config_path: Path) -> DeploymentFile:
    """
    Load and check a deployment file.

    Steps
      1) Read the YAML document.
      2) Check top-level fields (apiVersion, deployments, defaults).
      3) Merge `defaults` under each deployment.
      4) Check every merged deployment; warnings are logged.
      5) Expand ${ENV} credential references and build descriptors.

    Returns
      A DeploymentFile whose deployments keep the file's order.

    Raises
      ConfigError listing every problem found, or on YAML/file errors.
    """
    logger = get_global_logger()
    config_path = config_path.resolve()
    logger.verbose("CONFIG", f"Loading deployment file: {config_path}")

    document = _load_yaml_file(config_path)
    errors, warnings = check_document(document)
    if errors:
        raise ConfigError(f"Invalid deployment file {config_path}: " + "; ".join(errors))

    entries = merged_deployments(document)
    for index, entry in enumerate(entries, start=1):
        entry_errors, entry_warnings = check_deployment(entry, index)
        errors.extend(entry_errors)
        warnings.extend(entry_warnings)

    for warning in warnings:
        logger.warning("CONFIG", warning)
    if errors:
        raise ConfigError(f"Invalid deployment file {config_path}: " + "; ".join(errors))

    logger.debug("CONFIG", "--- Merged deployments ---")
    _print_yaml_content(_redact_credentials(entries))

    deployments = tuple(_to_descriptor(entry) for entry in entries)
    logger.verbose("CONFIG", f"Loaded {len(deployments)} deployment(s)")
    return DeploymentFile(
        path=config_path,
        subscription_id=document.get("subscription_id"),
        deployments=deployments,
    )
