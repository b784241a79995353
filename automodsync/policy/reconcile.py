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

"""Reconciliation decision for automodsync.

Decides what to do with one target account, given the module version found
in the repository (S), the version already imported (T, or nothing), and
the deployment's force flag:

    target absent              -> IMPORT
    S > T                      -> IMPORT
    S <= T and force           -> FORCE_REPLACE
    S <= T and not force       -> SKIP

Force therefore covers both re-importing the same version and rolling back
to a lower one.

Example:
    ```python
    from automodsync.policy import Action, decide

    action = decide(source, imported, force=False)
    if action is Action.SKIP:
        print("up to date")
    ```

"""

from __future__ import annotations

from enum import Enum

from automodsync.automation.base import ImportedModuleInfo
from automodsync.gallery.base import SourceModule
from automodsync.versioning import is_newer


class Action(str, Enum):
    IMPORT = "import"
    FORCE_REPLACE = "force-replace"
    SKIP = "skip"


def decide(
    source: SourceModule,
    target: ImportedModuleInfo | None,
    force: bool,
) -> Action:
    """Decide whether to skip, import, or force-replace a module.

    Args:
        source: Module version found in the repository.
        target: Module currently imported in the account, or None if absent.
        force: Whether the deployment allows replacing a same-or-newer import.

    Returns:
        The action to apply. A target that reports no version yet is treated
            as older than any source version.

    """
    if target is None or is_newer(source.version, target.version):
        return Action.IMPORT

    if force:
        return Action.FORCE_REPLACE

    return Action.SKIP
