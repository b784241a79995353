# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Deployment file validation.

Checks a deployment file without contacting any repository or Azure, which
makes it suitable as a fast pre-check in pull request pipelines.

Validation Checks:

- YAML syntax is valid
- apiVersion is present and supported
- deployments is a non-empty list; defaults (if present) is a mapping
- Each deployment (after defaults are merged) has a name, an http(s)
  source, a non-empty list of targets, and the module_name and
  resource_group options
- Optional options have the right types

Warnings are raised for unquoted numeric versions, plain-text credentials,
unknown options, duplicate targets and duplicate deployment names.

Example:
    ```python
    from pathlib import Path
    from automodsync.validation import validate_deployment_file

    result = validate_deployment_file(Path("deployments.yaml"))
    if result.status == "valid":
        print(f"{result.deployment_count} deployment(s) OK")
    ```

"""

from __future__ import annotations

from pathlib import Path

import yaml

from automodsync.config.loader import check_deployment, check_document, merged_deployments
from automodsync.logging import get_global_logger
from automodsync.results import ValidationResult

__all__ = ["validate_deployment_file"]


def validate_deployment_file(config_path: Path) -> ValidationResult:
    """Validate a deployment file without any network calls.

    Args:
        config_path: Path to the deployment YAML file.

    Returns:
        ValidationResult with status "valid" or "invalid", the collected
            errors and warnings, and the number of deployments found.

    """
    logger = get_global_logger()
    errors: list[str] = []
    warnings: list[str] = []

    def finish(count: int) -> ValidationResult:
        return ValidationResult(
            status="invalid" if errors else "valid",
            errors=errors,
            warnings=warnings,
            deployment_count=count,
            config_path=str(config_path),
        )

    logger.verbose("VALIDATE", f"Validating deployment file: {config_path}")

    if not config_path.exists():
        errors.append(f"Deployment file not found: {config_path}")
        return finish(0)

    try:
        with open(config_path, encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except yaml.YAMLError as err:
        errors.append(f"Invalid YAML syntax: {err}")
        return finish(0)
    except OSError as err:
        errors.append(f"Failed to read deployment file: {err}")
        return finish(0)

    if document is None:
        errors.append("Deployment file is empty")
        return finish(0)

    doc_errors, doc_warnings = check_document(document)
    errors.extend(doc_errors)
    warnings.extend(doc_warnings)
    if not isinstance(document, dict):
        return finish(0)

    entries = merged_deployments(document)
    seen: set[str] = set()
    for index, entry in enumerate(entries, start=1):
        logger.verbose("VALIDATE", f"Checking deployment #{index}")
        entry_errors, entry_warnings = check_deployment(entry, index)
        errors.extend(entry_errors)
        warnings.extend(entry_warnings)

        name = entry.get("name") if isinstance(entry, dict) else None
        if isinstance(name, str):
            if name in seen:
                warnings.append(f"Deployment name {name!r} is used more than once")
            seen.add(name)

    return finish(len(entries))
