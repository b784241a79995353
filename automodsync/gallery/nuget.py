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

"""NuGet v2 feed search for automodsync.

The PowerShell Gallery and compatible repositories (Azure Artifacts,
ProGet, Nexus) expose the NuGet v2 OData API, which answers with Atom XML.
Two queries are used:

Exact version:
    GET <location>/Packages(Id='<name>',Version='<version>')
    Returns a single <entry>, or HTTP 404 when the version does not exist.

Latest version:
    GET <location>/FindPackagesById()?id='<name>'
    Returns a <feed> of every published version, paged through
    <link rel="next">. The highest stable version wins; prereleases are
    skipped unless include_prerelease is set.

Feeds are parsed with BeautifulSoup's html.parser, which lowercases tag
names, so `<d:Version>` is looked up as "d:version". bs4 warns when an
XML document goes through an HTML parser; that warning is suppressed for
feed responses only.

Example:
    ```python
    from automodsync.gallery import NuGetGallery
    from automodsync.repository import ModuleRepository

    repo = ModuleRepository("psgallery", "https://www.powershellgallery.com/api/v2")
    module = NuGetGallery().find_module("Az.Accounts", repo)
    print(module.version)
    ```

Note:
    A credential is sent as the X-NuGet-ApiKey header, which private feeds
    accept for read access.
"""

from __future__ import annotations

from urllib.parse import urljoin
import warnings

from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning
import requests

from automodsync.exceptions import NetworkError
from automodsync.gallery.base import SourceModule
from automodsync.io.http import DEFAULT_TIMEOUT, make_session
from automodsync.logging import get_global_logger
from automodsync.repository.registry import ModuleRepository
from automodsync.versioning import version_key


def _odata_literal(value: str) -> str:
    """Quote a value as an OData string literal."""
    return "'" + value.replace("'", "''") + "'"


def _text(tag) -> str | None:
    if tag is None:
        return None
    value = tag.get_text(strip=True)
    return value or None


def _parse_feed(markup: str) -> BeautifulSoup:
    """Parse an Atom response without bs4's XML-as-HTML warning."""
    with warnings.catch_warnings():
        warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)
        return BeautifulSoup(markup, "html.parser")


def _parse_entries(soup: BeautifulSoup, repository: ModuleRepository) -> list[SourceModule]:
    """Turn Atom <entry> elements into SourceModule objects.

    Entries without a version are dropped.
    """
    modules: list[SourceModule] = []
    for entry in soup.find_all("entry"):
        props = entry.find("m:properties") or entry
        version = _text(props.find("d:version"))
        if not version:
            continue
        name = _text(props.find("d:id")) or _text(entry.find("title"))
        if not name:
            continue

        content = entry.find("content")
        content_location = content.get("src") if content is not None else None
        prerelease = (_text(props.find("d:isprerelease")) or "false").lower() == "true"

        modules.append(
            SourceModule(
                name=name,
                version=version,
                repository=repository,
                content_location=content_location,
                is_prerelease=prerelease,
            )
        )
    return modules


def _next_link(soup: BeautifulSoup, base_url: str) -> str | None:
    link = soup.find("link", rel="next")
    if link is None or not link.get("href"):
        return None
    return urljoin(base_url, link["href"])


class NuGetGallery:
    """Module search against NuGet v2 (OData) feeds.

    Attributes:
        include_prerelease: When True, "latest" may resolve to a prerelease.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        include_prerelease: bool = False,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        self._session = session or make_session()
        self.include_prerelease = include_prerelease
        self.timeout = timeout

    def _get(
        self,
        url: str,
        credential: str | None,
        params: dict[str, str] | None = None,
    ) -> requests.Response:
        logger = get_global_logger()
        headers = {"Accept": "application/atom+xml"}
        if credential:
            headers["X-NuGet-ApiKey"] = credential
            logger.debug("GALLERY", "Sending repository credential")

        logger.verbose("HTTP", f"GET {url}")
        try:
            response = self._session.get(
                url, params=params, headers=headers, timeout=self.timeout
            )
        except requests.exceptions.RequestException as err:
            raise NetworkError(f"Failed to query repository at {url}: {err}") from err
        logger.debug("HTTP", f"Response: {response.status_code} {response.reason}")
        return response

    def _find_exact(
        self,
        name: str,
        repository: ModuleRepository,
        version: str,
        credential: str | None,
    ) -> SourceModule | None:
        url = (
            f"{repository.source_location}/Packages("
            f"Id={_odata_literal(name)},Version={_odata_literal(version)})"
        )
        response = self._get(url, credential)
        if response.status_code == 404:
            return None
        if not response.ok:
            raise NetworkError(
                f"Repository {repository.name!r} query failed: "
                f"{response.status_code} {response.reason}"
            )

        for module in _parse_entries(_parse_feed(response.text), repository):
            if module.name.lower() == name.lower():
                return module
        return None

    def _find_latest(
        self,
        name: str,
        repository: ModuleRepository,
        credential: str | None,
    ) -> SourceModule | None:
        logger = get_global_logger()
        url: str | None = f"{repository.source_location}/FindPackagesById()"
        params: dict[str, str] | None = {"id": _odata_literal(name)}
        seen: set[str] = set()
        candidates: list[SourceModule] = []

        while url and url not in seen:
            seen.add(url)
            response = self._get(url, credential, params=params)
            if response.status_code == 404:
                break
            if not response.ok:
                raise NetworkError(
                    f"Repository {repository.name!r} query failed: "
                    f"{response.status_code} {response.reason}"
                )
            soup = _parse_feed(response.text)
            for module in _parse_entries(soup, repository):
                if module.name.lower() != name.lower():
                    continue
                if module.is_prerelease and not self.include_prerelease:
                    logger.debug("GALLERY", f"Skipping prerelease {module.version}")
                    continue
                candidates.append(module)

            # The next link already carries the query string.
            url = _next_link(soup, response.url)
            params = None

        if not candidates:
            return None
        logger.verbose("GALLERY", f"Found {len(candidates)} version(s) of {name}")
        return max(candidates, key=lambda m: version_key(m.version))

    def find_module(
        self,
        name: str,
        repository: ModuleRepository,
        required_version: str | None = None,
        credential: str | None = None,
    ) -> SourceModule | None:
        """Find a module in a NuGet v2 repository.

        Args:
            name: Module name, matched case-insensitively.
            repository: Repository to search.
            required_version: Exact version to look for, or None for latest.
            credential: Optional API key for private feeds.

        Returns:
            The matching module, or None.

        Raises:
            NetworkError: On transport failures or unexpected HTTP statuses.

        """
        logger = get_global_logger()
        if required_version:
            logger.verbose(
                "GALLERY",
                f"Searching {repository.name} for {name} {required_version}",
            )
            return self._find_exact(name, repository, required_version, credential)

        logger.verbose("GALLERY", f"Searching {repository.name} for latest {name}")
        return self._find_latest(name, repository, credential)
