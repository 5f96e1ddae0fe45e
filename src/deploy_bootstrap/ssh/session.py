"""SSH session management built on Paramiko."""

from __future__ import annotations

import posixpath
import shlex
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

import paramiko

from ..utils.logging import get_logger
from .credentials import load_private_key
from .errors import RemoteCommandError, RemoteConnectError

logger = get_logger(__name__)

ProgressCallback = Callable[[str, int, int], None]

# Files the remote service owns; a deployment upload must never replace them.
PROTECTED_CONFIG_PREFIX = "appsettings"

RECV_CHUNK = 32768
POLL_INTERVAL = 0.05


def is_protected_config(filename: str) -> bool:
    return filename.lower().startswith(PROTECTED_CONFIG_PREFIX)


def _drain(channel: paramiko.Channel) -> Tuple[bytes, bytes]:
    """Read stdout and stderr side by side until the remote command exits.

    Both buffers are emptied on every pass so a chatty stderr cannot fill the
    channel window while stdout is still open.
    """
    stdout_chunks: List[bytes] = []
    stderr_chunks: List[bytes] = []
    while True:
        # data always precedes the exit status on the wire
        finished = channel.exit_status_ready()
        has_activity = False
        while channel.recv_ready():
            stdout_chunks.append(channel.recv(RECV_CHUNK))
            has_activity = True
        while channel.recv_stderr_ready():
            stderr_chunks.append(channel.recv_stderr(RECV_CHUNK))
            has_activity = True
        if finished:
            break
        if not has_activity:
            time.sleep(POLL_INTERVAL)
    return b"".join(stdout_chunks), b"".join(stderr_chunks)


@dataclass(frozen=True)
class AlgorithmPreferences:
    """Preferred key exchange and host key algorithms, most preferred first."""

    kex: Tuple[str, ...] = ()
    host_key: Tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.kex or self.host_key)

    def transport_factory(self) -> Callable[..., paramiko.Transport]:
        def factory(sock, **kwargs) -> paramiko.Transport:
            transport = paramiko.Transport(sock, **kwargs)
            options = transport.get_security_options()
            if self.kex:
                options.kex = self.kex
            if self.host_key:
                options.key_types = self.host_key
            return transport

        return factory


@dataclass
class RemoteCommandResult:
    command: str
    stdout: str
    stderr: str
    exit_status: int = -1

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


class RemoteSession:
    """High-level wrapper around paramiko.SSHClient.

    Not safe for concurrent use; open one session per caller.
    """

    def __init__(
        self,
        credential: bytes,
        host: str,
        port: int,
        user: str,
        *,
        client_factory: Callable[[], paramiko.SSHClient] | None = None,
        algorithms: Optional[AlgorithmPreferences] = None,
        key_loader: Callable[[bytes], paramiko.PKey] | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.algorithms = algorithms or AlgorithmPreferences()
        self._credential = credential
        self._client_factory = client_factory or paramiko.SSHClient
        self._key_loader = key_loader or load_private_key
        self._client: Optional[paramiko.SSHClient] = None

    def __enter__(self) -> "RemoteSession":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    @property
    def connected(self) -> bool:
        return self._client is not None

    def connect(self) -> None:
        if self._client:
            return
        logger.info("Connecting to %s@%s:%s", self.user, self.host, self.port)
        client = self._client_factory()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            connect_kwargs = {
                "hostname": self.host,
                "port": self.port,
                "username": self.user,
                "pkey": self._key_loader(self._credential),
                "look_for_keys": False,
                "allow_agent": False,
            }
            if self.algorithms:
                connect_kwargs["transport_factory"] = self.algorithms.transport_factory()
            client.connect(**connect_kwargs)
        except Exception as exc:
            client.close()
            raise RemoteConnectError(self.host, self.port, self.user, exc) from exc
        self._client = client

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def run(self, command: str) -> RemoteCommandResult:
        """Run ``command`` and block until it exits.

        A non-zero exit is returned in the result; only transport failures
        raise :class:`RemoteCommandError`.
        """
        client = self._require_client()
        logger.debug("Running on %s: %s", self.host, command)
        try:
            _, stdout, _ = client.exec_command(command)
            stdout_data, stderr_data = _drain(stdout.channel)
            exit_status = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, OSError) as exc:
            raise RemoteCommandError(self.host, self.port, self.user, exc) from exc

        return RemoteCommandResult(
            command=command,
            stdout=stdout_data.decode("utf-8", errors="replace"),
            stderr=stderr_data.decode("utf-8", errors="replace"),
            exit_status=-1 if exit_status is None else exit_status,
        )

    def ensure_remote_dir(self, remote_dir: str) -> None:
        if not remote_dir or remote_dir in ("/", "."):
            return
        result = self.run(f"mkdir -p {shlex.quote(remote_dir)}")
        if not result.ok:
            raise RemoteCommandError(
                self.host,
                self.port,
                self.user,
                RuntimeError(f"mkdir -p {remote_dir} exited {result.exit_status}: {result.stderr.strip()}"),
                stage="mkdir",
            )

    def upload_file(
        self,
        local_path: Union[str, Path],
        remote_path: str,
        progress: Optional[ProgressCallback] = None,
    ) -> int:
        """Copy one file, creating the remote parent first. Returns bytes sent."""
        local = Path(local_path)
        if not local.is_file():
            raise FileNotFoundError(f"Local file not found: {local}")
        self.ensure_remote_dir(posixpath.dirname(remote_path))
        with self._open_sftp() as sftp:
            return self._put(sftp, local, remote_path, progress)

    def upload_directory(
        self,
        local_dir: Union[str, Path],
        remote_dir: str,
        progress: Optional[ProgressCallback] = None,
    ) -> List[str]:
        """Recursively copy ``local_dir`` into ``remote_dir``.

        ``appsettings*`` files are never uploaded. Returns the remote paths
        that were written.
        """
        root = Path(local_dir)
        if not root.is_dir():
            raise FileNotFoundError(f"Local directory not found: {root}")
        remote_dir = remote_dir.rstrip("/") or "/"
        self.ensure_remote_dir(remote_dir)
        created = {remote_dir}
        uploaded: List[str] = []

        with self._open_sftp() as sftp:
            for local_file in sorted(root.rglob("*")):
                if not local_file.is_file():
                    continue
                relative = local_file.relative_to(root).as_posix()
                if is_protected_config(local_file.name):
                    logger.info("Skipping protected config file %s", relative)
                    continue
                remote_path = posixpath.join(remote_dir, relative)
                parent = posixpath.dirname(remote_path)
                if parent not in created:
                    self.ensure_remote_dir(parent)
                    created.add(parent)
                self._put(sftp, local_file, remote_path, progress)
                uploaded.append(remote_path)

        logger.info("Uploaded %d files to %s:%s", len(uploaded), self.host, remote_dir)
        return uploaded

    def _require_client(self) -> paramiko.SSHClient:
        if not self._client:
            self.connect()
        assert self._client is not None
        return self._client

    def _open_sftp(self) -> paramiko.SFTPClient:
        client = self._require_client()
        try:
            return client.open_sftp()
        except (paramiko.SSHException, OSError) as exc:
            raise RemoteCommandError(self.host, self.port, self.user, exc, stage="upload") from exc

    def _put(
        self,
        sftp: paramiko.SFTPClient,
        local: Path,
        remote_path: str,
        progress: Optional[ProgressCallback],
    ) -> int:
        callback = None
        if progress is not None:

            def callback(transferred: int, total: int) -> None:
                progress(remote_path, transferred, total)

        logger.debug("Uploading %s -> %s", local, remote_path)
        try:
            sftp.put(str(local), remote_path, callback=callback)
        except (paramiko.SSHException, OSError) as exc:
            raise RemoteCommandError(self.host, self.port, self.user, exc, stage="upload") from exc
        return local.stat().st_size
