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

"""Update policy for automodsync.

Modules:

reconcile : module
    Pure decision between skipping, importing, and force-replacing a module.

Public API:

Action : enum
    IMPORT, FORCE_REPLACE or SKIP.
decide : function
    Compare source and imported versions under the force flag.

"""

from .reconcile import Action, decide

__all__ = ["Action", "decide"]
