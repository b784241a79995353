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

"""Package repository registrations for automodsync.

A deployment names its package source by location (a feed URL). Before a
module can be searched for, that location is resolved to a named
repository registration, registering one as `<module>-repository` when no
existing registration points at the location.

Registrations are persisted to a JSON store so they are visible to later
runs, mirroring how a repository registered once on a build agent stays
registered:

    {
      "metadata": {"amsync_version": "...", "schema_version": "1", ...},
      "repositories": {
        "Az.Accounts-repository": {
          "source_location": "https://www.powershellgallery.com/api/v2",
          "credential_required": false,
          "registered_at": "2025-01-01T00:00:00+00:00"
        }
      }
    }

Credentials are never written to the store; only whether one was supplied.

Example:
    Resolve a repository for a deployment:
        ```python
        from pathlib import Path
        from automodsync.repository import RepositoryRegistry

        registry = RepositoryRegistry(Path("state/repositories.json"))
        repo = registry.resolve(
            "https://www.powershellgallery.com/api/v2", "Az.Accounts"
        )
        print(repo.name)  # Az.Accounts-repository (or an existing name)
        ```

"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
import json
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from automodsync import __version__
from automodsync.exceptions import RepositoryRegistrationError
from automodsync.logging import get_global_logger

SCHEMA_VERSION = "1"


@dataclass(frozen=True)
class ModuleRepository:
    """A named, queryable package source.

    Attributes:
        name: Registration name (unique key in the store).
        source_location: Feed URL exactly as it was registered.
    """

    name: str
    source_location: str


class RepositoryRegistry:
    """Resolves source locations to repository registrations.

    Handles are cached per source location, so repeated resolution of the
    same location within a run returns the identical ModuleRepository
    object and never registers twice.

    Attributes:
        state_file: Path to the JSON store, or None for an in-memory registry.
        persist: When False, new registrations are kept in memory only
            (used by dry runs).
        state: In-memory copy of the store.

    Example:
        ```python
        registry = RepositoryRegistry(Path("state/repositories.json"))
        first = registry.resolve(url, "MyModule")
        again = registry.resolve(url, "OtherModule")
        assert first is again
        ```

    """

    def __init__(self, state_file: Path | None = None, persist: bool = True):
        self.state_file = state_file
        self.persist = persist and state_file is not None
        self.state: dict[str, Any] = create_default_state()
        self._handles: dict[str, ModuleRepository] = {}
        self._loaded = False

    def load(self) -> dict[str, Any]:
        """Load registrations from the store.

        A missing store starts empty. A corrupted store is moved aside to
        `<name>.json.backup` and reported as a registration error, since the
        existing registrations can no longer be trusted.

        Raises:
            RepositoryRegistrationError: If the store is corrupted or unreadable.

        """
        logger = get_global_logger()
        self._loaded = True
        if self.state_file is None:
            return self.state

        try:
            self.state = load_registry(self.state_file)
            logger.verbose("REPO", f"Loaded repository registry: {self.state_file}")
        except FileNotFoundError:
            logger.verbose(
                "REPO", f"Registry not found, starting empty: {self.state_file}"
            )
            self.state = create_default_state()
        except json.JSONDecodeError as err:
            backup = self.state_file.with_suffix(".json.backup")
            self.state_file.rename(backup)
            self.state = create_default_state()
            raise RepositoryRegistrationError(
                f"Corrupted repository registry backed up to {backup}"
            ) from err
        except OSError as err:
            raise RepositoryRegistrationError(
                f"Cannot read repository registry {self.state_file}: {err}"
            ) from err

        self.state.setdefault("repositories", {})
        return self.state

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def save(self) -> None:
        """Write the store, refreshing metadata.last_updated."""
        if not self.persist or self.state_file is None:
            return
        self.state.setdefault("metadata", {})
        self.state["metadata"]["amsync_version"] = __version__
        self.state["metadata"]["schema_version"] = SCHEMA_VERSION
        self.state["metadata"]["last_updated"] = datetime.now(UTC).isoformat()
        save_registry(self.state, self.state_file)

    def _handle(self, name: str, source_location: str) -> ModuleRepository:
        handle = self._handles.get(source_location)
        if handle is None:
            handle = ModuleRepository(name=name, source_location=source_location)
            self._handles[source_location] = handle
        return handle

    def find_by_source_location(self, source_location: str) -> ModuleRepository | None:
        """Return the repository registered for an exact source location.

        Args:
            source_location: Feed location, compared as an exact string.

        Returns:
            The cached handle for the location, or None if nothing is
                registered there.

        """
        self._ensure_loaded()
        if source_location in self._handles:
            return self._handles[source_location]

        for name, entry in sorted(self.state.get("repositories", {}).items()):
            if entry.get("source_location") == source_location:
                return self._handle(name, source_location)
        return None

    def register(
        self,
        name: str,
        source_location: str,
        credential: str | None = None,
    ) -> ModuleRepository:
        """Register a new repository and return its handle.

        Args:
            name: Registration name.
            source_location: Absolute http(s) feed URL.
            credential: Opaque credential. Only its presence is recorded.

        Returns:
            Handle for the new registration.

        Raises:
            RepositoryRegistrationError: If the name is empty, the location is
                not an http(s) URL, the name is already registered to a
                different location, or the store cannot be written.

        """
        logger = get_global_logger()
        self._ensure_loaded()

        if not name or not name.strip():
            raise RepositoryRegistrationError("Repository name must not be empty")

        parsed = urlparse(source_location)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise RepositoryRegistrationError(
                f"Cannot register repository {name!r}: source location "
                f"{source_location!r} is not an absolute http(s) URL"
            )

        repositories = self.state.setdefault("repositories", {})
        existing = repositories.get(name)
        if existing is not None:
            if existing.get("source_location") != source_location:
                raise RepositoryRegistrationError(
                    f"Repository name {name!r} is already registered to "
                    f"{existing.get('source_location')!r}"
                )
            return self._handle(name, source_location)

        repositories[name] = {
            "source_location": source_location,
            "credential_required": credential is not None,
            "registered_at": datetime.now(UTC).isoformat(),
        }
        try:
            self.save()
        except OSError as err:
            del repositories[name]
            raise RepositoryRegistrationError(
                f"Failed to save repository registry {self.state_file}: {err}"
            ) from err

        logger.verbose("REPO", f"Registered repository {name} -> {source_location}")
        return self._handle(name, source_location)

    def resolve(
        self,
        source_location: str,
        module_name: str,
        credential: str | None = None,
    ) -> ModuleRepository:
        """Return a usable repository for a source location.

        Looks for an existing registration pointing at the location first;
        otherwise registers `<module_name>-repository`.

        Raises:
            RepositoryRegistrationError: If registration is rejected.

        """
        logger = get_global_logger()
        found = self.find_by_source_location(source_location)
        if found is not None:
            logger.verbose(
                "REPO", f"Using registered repository {found.name} ({source_location})"
            )
            return found

        name = f"{module_name}-repository"
        logger.verbose("REPO", f"No repository for {source_location}, registering {name}")
        return self.register(name, source_location, credential=credential)


def create_default_state() -> dict[str, Any]:
    """Create an empty registry structure."""
    return {
        "metadata": {
            "amsync_version": __version__,
            "schema_version": SCHEMA_VERSION,
            "last_updated": datetime.now(UTC).isoformat(),
        },
        "repositories": {},
    }


def load_registry(state_file: Path) -> dict[str, Any]:
    """Load the registry store from JSON.

    Raises:
        FileNotFoundError: If the store doesn't exist.
        json.JSONDecodeError: If the store contains invalid JSON.

    """
    with open(state_file, encoding="utf-8") as f:
        return json.load(f)


def save_registry(state: dict[str, Any], state_file: Path) -> None:
    """Save the registry store with 2-space indentation and sorted keys.

    Creates parent directories if needed and ends the file with a newline.
    """
    state_file.parent.mkdir(parents=True, exist_ok=True)

    with open(state_file, "w", encoding="utf-8") as f:
        json.dump(state, f, indent=2, sort_keys=True)
        f.write("\n")
