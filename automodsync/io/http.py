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

"""
HTTP session factory shared by the package feed and Azure clients.

Every remote call made by automodsync is a single synchronous request: a
failed request aborts the run instead of being retried, so sessions are
created with retries explicitly disabled on both schemes.

Constants:

- DEFAULT_TIMEOUT (int): Per-request timeout in seconds.
- USER_AGENT (str): Identifies automodsync in server logs.
"""

from __future__ import annotations

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from automodsync import __version__

DEFAULT_TIMEOUT = 60
USER_AGENT = f"automodsync/{__version__}"


def make_session() -> requests.Session:
    """
    Create a requests.Session for automodsync API calls.

    - Sets the automodsync User-Agent.
    - Mounts adapters with Retry(total=0) so urllib3 never replays a request.
    """
    s = requests.Session()
    no_retries = Retry(total=0, read=False)
    s.headers.update({"User-Agent": USER_AGENT})
    s.mount("http://", HTTPAdapter(max_retries=no_retries))
    s.mount("https://", HTTPAdapter(max_retries=no_retries))
    return s
