"""Remote host probing utilities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .session import RemoteSession


@dataclass
class RemoteHostFacts:
    hostname: str
    kernel: str
    architecture: str
    passwordless_sudo: bool = False
    pwsh_version: Optional[str] = None
    dotnet_version: Optional[str] = None

    def to_payload(self) -> dict:
        return {
            "hostname": self.hostname,
            "kernel": self.kernel,
            "architecture": self.architecture,
            "passwordless_sudo": self.passwordless_sudo,
            "pwsh_version": self.pwsh_version,
            "dotnet_version": self.dotnet_version,
        }


class RemoteProbe:
    """Checks whether a host is ready to run the deployment service."""

    def collect(self, session: RemoteSession) -> RemoteHostFacts:
        hostname = self._safe_run(session, "hostname")
        kernel = self._safe_run(session, "uname -sr")
        architecture = self._safe_run(session, "uname -m")

        return RemoteHostFacts(
            hostname=hostname or "unknown",
            kernel=kernel or "unknown",
            architecture=architecture or "unknown",
            passwordless_sudo=session.run("sudo -n true").ok,
            pwsh_version=self._version(session, "pwsh --version"),
            dotnet_version=self._version(session, "dotnet --version"),
        )

    def _safe_run(self, session: RemoteSession, command: str) -> str:
        result = session.run(command)
        return (result.stdout or result.stderr).strip()

    def _version(self, session: RemoteSession, command: str) -> Optional[str]:
        result = session.run(command)
        if not result.ok:
            return None
        return result.stdout.strip() or None
