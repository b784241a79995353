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

"""Deployment file loading for automodsync.

Public API:

- load_deployment_file: Load, merge and check a deployment YAML file
- DeploymentFile, DeploymentDescriptor, DeploymentOptions: Loaded types

Example:
    Basic usage:

        from pathlib import Path
        from automodsync.config import load_deployment_file

        loaded = load_deployment_file(Path("deployments.yaml"))
        for deployment in loaded.deployments:
            print(deployment.name, deployment.targets)

"""

from .loader import (
    DeploymentDescriptor,
    DeploymentFile,
    DeploymentOptions,
    load_deployment_file,
)

__all__ = [
    "DeploymentDescriptor",
    "DeploymentFile",
    "DeploymentOptions",
    "load_deployment_file",
]
