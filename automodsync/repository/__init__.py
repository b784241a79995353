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

"""Repository resolution for automodsync.

Maps a deployment's source location to a named repository registration,
creating one when needed. Registrations persist in a JSON store
(state/repositories.json by default) between runs.

Public API:

- ModuleRepository: Handle for a registered repository
- RepositoryRegistry: Lookup, registration and resolution
- load_registry / save_registry: Raw JSON store access

"""

from .registry import ModuleRepository, RepositoryRegistry, load_registry, save_registry

__all__ = ["ModuleRepository", "RepositoryRegistry", "load_registry", "save_registry"]
