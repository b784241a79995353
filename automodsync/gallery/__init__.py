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

"""Module search for automodsync.

Galleries find the module version a deployment should reconcile to:
the latest stable version in the repository, or the exact version the
deployment pins.

Available Galleries:
    NuGetGallery
        NuGet v2 OData feeds (PowerShell Gallery and compatible servers).

Example:
    ```python
    from automodsync.gallery import NuGetGallery

    module = NuGetGallery().find_module("Az.Accounts", repo, "2.12.1")
    if module is None:
        print("not published")
    ```
"""

from .base import ModuleGallery, SourceModule
from .nuget import NuGetGallery

__all__ = ["ModuleGallery", "NuGetGallery", "SourceModule"]
