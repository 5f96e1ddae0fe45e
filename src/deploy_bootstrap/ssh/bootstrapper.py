"""One-shot remote operations driven by a credential spec."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional, Union

import paramiko

from ..utils.logging import get_logger
from .credentials import CredentialResolver, CredentialSpec
from .session import AlgorithmPreferences, ProgressCallback, RemoteCommandResult, RemoteSession

logger = get_logger(__name__)

KEY_TEST_COMMAND = "echo hello-keytest"


class Bootstrapper:
    """Resolves credentials and opens a fresh session for every operation.

    Each call connects, does its work and closes the session again, so no
    connection outlives a single operation.
    """

    def __init__(
        self,
        spec: CredentialSpec,
        *,
        resolver: Optional[CredentialResolver] = None,
        algorithms: Optional[AlgorithmPreferences] = None,
        client_factory: Callable[[], paramiko.SSHClient] | None = None,
        key_loader: Callable[[bytes], paramiko.PKey] | None = None,
    ) -> None:
        spec.validate()
        self.spec = spec
        self.resolver = resolver or CredentialResolver()
        self.algorithms = algorithms
        self._client_factory = client_factory
        self._key_loader = key_loader

    def open_session(self) -> RemoteSession:
        credential = self.resolver.resolve(self.spec)
        return RemoteSession(
            credential,
            self.spec.host,
            self.spec.port,
            self.spec.user,
            client_factory=self._client_factory,
            algorithms=self.algorithms,
            key_loader=self._key_loader,
        )

    def run_command(self, command: str) -> RemoteCommandResult:
        with self.open_session() as session:
            return session.run(command)

    def upload_file(
        self,
        local_path: Union[str, Path],
        remote_path: str,
        progress: Optional[ProgressCallback] = None,
    ) -> int:
        with self.open_session() as session:
            return session.upload_file(local_path, remote_path, progress)

    def upload_directory(
        self,
        local_dir: Union[str, Path],
        remote_dir: str,
        progress: Optional[ProgressCallback] = None,
    ) -> List[str]:
        with self.open_session() as session:
            return session.upload_directory(local_dir, remote_dir, progress)

    def test_authentication(self) -> RemoteCommandResult:
        logger.info("Testing key authentication for %s@%s", self.spec.user, self.spec.host)
        return self.run_command(KEY_TEST_COMMAND)
