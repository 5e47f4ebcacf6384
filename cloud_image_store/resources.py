"""Resource contexts from which credential key material is loaded."""
import io
import logging
from pathlib import Path
from typing import BinaryIO, Mapping, Optional, Protocol, Union, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ResourceContext(Protocol):
    """Interface for resolving and opening named binary resources.

    A context hides where key material lives (a directory of key files,
    a secret store, resources bundled with the application), so the
    credential builder stays source-agnostic.
    """

    def resource_name(self, locator: str) -> Optional[str]:
        """Resolve a locator to a resource name.

        Returns:
            Optional[str]: The resource name, or None if the locator does not
            identify a resource in this context.
        """
        ...

    def open_resource(self, locator: str) -> BinaryIO:
        """Open a resource for binary reading.

        Raises:
            OSError: If the resource cannot be opened.
        """
        ...


class DirectoryResourceContext(ResourceContext):
    """Resources stored as files under a root directory."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def __eq__(self, other):
        if not isinstance(other, DirectoryResourceContext):
            return NotImplemented
        return self.root == other.root

    def __hash__(self):
        return hash(self.root)

    def _path(self, locator: str) -> Path:
        return self.root / locator

    def resource_name(self, locator: str) -> Optional[str]:
        if not locator:
            return None
        path = self._path(locator)
        if not path.is_file():
            logger.debug(f"Resource not found: {path}")
            return None
        return str(path)

    def open_resource(self, locator: str) -> BinaryIO:
        return self._path(locator).open("rb")


class InMemoryResourceContext(ResourceContext):
    """Resources held in memory, e.g. key material fetched from a secret store."""

    def __init__(self, resources: Mapping[str, bytes]):
        self._resources = dict(resources)

    def __eq__(self, other):
        if not isinstance(other, InMemoryResourceContext):
            return NotImplemented
        return self._resources == other._resources

    def __hash__(self):
        return hash(frozenset(self._resources.items()))

    def resource_name(self, locator: str) -> Optional[str]:
        if locator in self._resources:
            return locator
        return None

    def open_resource(self, locator: str) -> BinaryIO:
        try:
            return io.BytesIO(self._resources[locator])
        except KeyError:
            raise FileNotFoundError(f"Resource not found: {locator}")
