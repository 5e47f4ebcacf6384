"""Service account credential construction for Google Cloud Storage."""
import dataclasses
import json
import logging
import shutil
import tempfile
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional, Union

import requests
from google.auth import crypt
from google.auth.credentials import Credentials as GoogleCredentials
from google.oauth2 import service_account

from cloud_image_store.resources import ResourceContext
from cloud_image_store.storage.base import (
    ArgumentErrors,
    CredentialSecurityError,
    InvalidArgumentError,
    StorageIOError,
)

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"
KEY_CHUNK_SIZE = 1024


class CredentialScope(str, Enum):
    """Authorization scopes a credential can be granted."""

    FULL_CONTROL = "full_control"
    READ_ONLY = "read_only"
    READ_WRITE = "read_write"

    @property
    def uri(self) -> str:
        return SCOPE_URIS[self]


SCOPE_URIS = {
    CredentialScope.FULL_CONTROL: "https://www.googleapis.com/auth/devstorage.full_control",
    CredentialScope.READ_ONLY: "https://www.googleapis.com/auth/devstorage.read_only",
    CredentialScope.READ_WRITE: "https://www.googleapis.com/auth/devstorage.read_write",
}


@dataclass(frozen=True)
class Credential:
    """Authenticated identity plus the transport and codec used with it.

    Instances are produced by ``CredentialBuilder.build`` and never
    change afterwards.
    """

    account_id: str
    private_key: bytes = field(repr=False)
    transport: Optional[requests.Session]
    json_codec: Optional[Any]
    scopes: tuple[str, ...]
    google_credentials: GoogleCredentials = field(repr=False)
    project_id: Optional[str] = None


@dataclass(frozen=True)
class CredentialBuilder:
    """Fluent, immutable builder for ``Credential``.

    Every ``with_*`` call returns a new builder, so a configured builder
    can be shared between threads and specialised without aliasing.

    Two ways to obtain a builder:

    - ``CredentialBuilder(context, key_locator, account_id)`` gives a
      caller-owned builder.
    - ``CredentialBuilder.setup(context, key_locator, account_id)`` returns
      a process-wide builder. The first call wins: later calls return the
      same instance and their arguments are ignored (a warning is logged).

    Example:
        credential = (
            CredentialBuilder(DirectoryResourceContext("keys"), "sa.pem", "sa@p.iam.gserviceaccount.com")
            .with_scope(CredentialScope.READ_WRITE)
            .build()
        )
    """

    context: ResourceContext
    key_locator: str
    account_id: str
    transport: Optional[requests.Session] = None
    json_codec: Optional[Any] = None
    scopes: tuple[str, ...] = ()
    project_id: Optional[str] = None
    # Resolved once on construction; with_* copies carry it over unchecked
    key_name: Optional[str] = field(default=None, repr=False, compare=False)

    _instance: ClassVar[Optional["CredentialBuilder"]] = None
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __post_init__(self):
        errors = ArgumentErrors()
        errors.check(self.context is not None, "Given context was None!")
        errors.check(bool(self.account_id), "Given account_id was None or empty!")
        key_name = self.key_name
        if key_name is None and self.context is not None:
            key_name = self.context.resource_name(self.key_locator)
            errors.check(key_name is not None, "Given key resource was invalid!")
        errors.raise_if_any()
        object.__setattr__(self, "key_name", key_name)

    @classmethod
    def setup(
        cls,
        context: ResourceContext,
        key_locator: str,
        account_id: str,
    ) -> "CredentialBuilder":
        """Get the process-wide builder, creating it on first use.

        Args:
            context: Context used to resolve and open the key resource.
            key_locator: Locator of the private key within the context.
            account_id: Service account id (email).

        Returns:
            CredentialBuilder: The process-wide builder.

        Raises:
            InvalidArgumentError: If the first call has invalid arguments.
        """
        instance = cls._instance
        if instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls(context, key_locator, account_id)
                    logger.info(f"Set up process-wide CredentialBuilder for {account_id}")
                    return cls._instance
                instance = cls._instance

        if (instance.context, instance.key_locator, instance.account_id) != (
            context,
            key_locator,
            account_id,
        ):
            logger.warning(
                "CredentialBuilder is already set up; ignoring arguments "
                f"(account_id={account_id!r}, key_locator={key_locator!r})"
            )
        return instance

    @classmethod
    def reset(cls) -> None:
        """Drop the process-wide builder so the next ``setup`` creates a new one."""
        with cls._lock:
            cls._instance = None

    def with_transport(self, transport: requests.Session) -> "CredentialBuilder":
        if transport is None:
            raise InvalidArgumentError("Given transport was None!")
        return dataclasses.replace(self, transport=transport)

    def with_json_codec(self, codec: Any) -> "CredentialBuilder":
        if codec is None:
            raise InvalidArgumentError("Given JSON codec was None!")
        return dataclasses.replace(self, json_codec=codec)

    def with_scope(self, scope: Union[CredentialScope, str]) -> "CredentialBuilder":
        """Set the single authorization scope, replacing any previous one."""
        if scope is None:
            raise InvalidArgumentError("Given scope was None!")
        try:
            scope = CredentialScope(scope)
        except ValueError:
            raise InvalidArgumentError(f"Given scope was invalid: {scope!r}")
        return dataclasses.replace(self, scopes=(scope.uri,))

    def with_project(self, project_id: str) -> "CredentialBuilder":
        if not project_id:
            raise InvalidArgumentError("Given project_id was None or empty!")
        return dataclasses.replace(self, project_id=project_id)

    def build(self) -> Credential:
        """Build the credential.

        Unset options fall back to defaults: a new ``requests.Session`` as
        transport, the standard ``json`` module as codec and the
        full-control scope.

        Returns:
            Credential: The built credential.

        Raises:
            StorageIOError: If the key resource cannot be read.
            CredentialSecurityError: If the key material is unusable.
        """
        private_key = self._read_key()
        logger.debug("Read private key material")

        if self.transport is not None:
            transport = self.transport
            logger.debug("Using given transport")
        else:
            transport = requests.Session()
            logger.debug("Using stock transport (requests.Session)")

        if self.scopes:
            scopes = self.scopes
        else:
            scopes = (CredentialScope.FULL_CONTROL.uri,)
            logger.debug("Using stock scope (full_control)")

        if self.json_codec is not None:
            json_codec = self.json_codec
        else:
            json_codec = json
            logger.debug("Using stock JSON codec (json)")

        google_credentials, key_project = self._service_account_credentials(
            private_key, json_codec, scopes
        )

        logger.info(f"Built credential for {self.account_id}")
        return Credential(
            account_id=self.account_id,
            private_key=private_key,
            transport=transport,
            json_codec=json_codec,
            scopes=scopes,
            google_credentials=google_credentials,
            project_id=self.project_id or key_project,
        )

    def _read_key(self) -> bytes:
        """Copy the whole key resource through a temporary file into memory."""
        try:
            with self.context.open_resource(self.key_locator) as source, \
                    tempfile.TemporaryFile(prefix="key", suffix=".key") as temp_key:
                shutil.copyfileobj(source, temp_key, KEY_CHUNK_SIZE)
                temp_key.seek(0)
                return temp_key.read()
        except OSError as e:
            logger.error(f"Failed to read key resource {self.key_locator!r}: {e}")
            raise StorageIOError(f"Failed to read key resource {self.key_locator!r}: {e}") from e

    def _service_account_credentials(
        self,
        private_key: bytes,
        json_codec: Any,
        scopes: tuple[str, ...],
    ) -> tuple[GoogleCredentials, Optional[str]]:
        # JSON key files carry their own key and metadata; anything else is
        # treated as a PEM encoded private key
        if private_key.lstrip().startswith(b"{"):
            try:
                info = json_codec.loads(private_key.decode("utf-8"))
                credentials = service_account.Credentials.from_service_account_info(
                    info, scopes=list(scopes)
                )
            except (ValueError, KeyError, TypeError) as e:
                logger.error(f"Invalid service account key file: {e}")
                raise CredentialSecurityError(f"Invalid service account key file: {e}") from e

            if credentials.service_account_email != self.account_id:
                logger.warning(
                    f"Key file belongs to {credentials.service_account_email}, "
                    f"not {self.account_id}"
                )
            return credentials, info.get("project_id")

        try:
            signer = crypt.RSASigner.from_string(private_key)
        except (ValueError, TypeError) as e:
            logger.error(f"Invalid private key: {e}")
            raise CredentialSecurityError(f"Invalid private key: {e}") from e

        credentials = service_account.Credentials(
            signer,
            self.account_id,
            TOKEN_URI,
            scopes=list(scopes),
        )
        return credentials, None
