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

"""Module gallery protocol for automodsync.

A gallery answers one question: which version of a module does a
repository offer? Either the latest one, or an exact version the
deployment pins.

Design Philosophy:
    - Galleries are Protocol classes (structural subtyping, not inheritance)
    - "Not found" is a normal return value (None), not an exception; the
      orchestration decides that it is fatal
    - Transport problems are exceptions (NetworkError)

Example:
    A fixed in-memory gallery for tests:
        ```python
        from automodsync.gallery.base import SourceModule

        class FixedGallery:
            def __init__(self, module):
                self.module = module

            def find_module(self, name, repository, required_version=None,
                            credential=None):
                return self.module
        ```

"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from automodsync.repository.registry import ModuleRepository


@dataclass(frozen=True)
class SourceModule:
    """A module version found in a repository.

    Attributes:
        name: Module name as the repository spells it.
        version: Version string as published (e.g., "2.12.1").
        repository: Repository the module was found in.
        content_location: Download URL advertised by the feed, if any.
        is_prerelease: Whether the feed flags the version as a prerelease.
    """

    name: str
    version: str
    repository: ModuleRepository
    content_location: str | None = None
    is_prerelease: bool = False


class ModuleGallery(Protocol):
    """Protocol for module search backends."""

    def find_module(
        self,
        name: str,
        repository: ModuleRepository,
        required_version: str | None = None,
        credential: str | None = None,
    ) -> SourceModule | None:
        """Find the best matching module version in a repository.

        Args:
            name: Module name, matched case-insensitively.
            repository: Repository to search.
            required_version: Exact version to look for. None means the
                latest stable version.
            credential: Opaque repository credential, passed through.

        Returns:
            The matching module, or None if the repository has no match.

        Raises:
            NetworkError: If the repository cannot be queried.

        """
        ...
