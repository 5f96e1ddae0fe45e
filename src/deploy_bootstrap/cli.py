"""Command-line interface for deploy-bootstrap."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .config import AppConfig, load_config
from .ssh import (
    Bootstrapper,
    CredentialError,
    RemoteCommandError,
    RemoteProbe,
    RemoteSessionError,
    generate_rsa_key_pair,
    write_key_pair_files,
)
from .ssh.keygen import authorized_keys_install_script
from .utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_REMOTE_COMMAND_FAILED = 1
EXIT_SETUP_FAILED = 2
EXIT_REMOTE_STEP_FAILED = 3


@dataclass
class CLIContext:
    """Context captured from CLI arguments."""

    config: AppConfig
    client_factory: Optional[Callable] = None
    key_loader: Optional[Callable] = None

    def bootstrapper(self) -> Bootstrapper:
        ssh = self.config.ssh
        return Bootstrapper(
            ssh.to_credential_spec(),
            algorithms=ssh.algorithm_preferences(),
            client_factory=self.client_factory,
            key_loader=self.key_loader,
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deploy-bootstrap",
        description="Mint SSH keys and bootstrap a remote host over SSH.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a JSON config file overriding defaults.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    ssh_options = argparse.ArgumentParser(add_help=False)
    ssh_options.add_argument("--ssh-host", help="SSH host")
    ssh_options.add_argument("--ssh-port", type=int, default=None, help="SSH port")
    ssh_options.add_argument("--ssh-user", help="SSH user")
    ssh_options.add_argument("--ssh-key", help="Path to private key file")
    ssh_options.add_argument(
        "--autoconvert-key",
        action="store_true",
        default=None,
        help="Convert an OpenSSH private key to PEM in memory (no disk writes)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    keygen_parser = subparsers.add_parser("keygen", help="Generate an RSA key pair")
    keygen_parser.add_argument(
        "--prefix", default="id_rsa", help="File prefix for the key pair (default: id_rsa)"
    )
    keygen_parser.add_argument("--bits", type=int, default=2048, help="RSA modulus size")
    keygen_parser.add_argument(
        "--stdout",
        action="store_true",
        help="Write keys to stdout instead of files (prints private then public)",
    )

    deploy_parser = subparsers.add_parser(
        "deploy", parents=[ssh_options], help="Upload a publish directory and run a command"
    )
    deploy_parser.add_argument("--publish-dir", default=None, help="Publish directory to upload")
    deploy_parser.add_argument(
        "--remote-dir", default=None, help="Remote target (default: /home/<user>/deployment-service)"
    )
    deploy_parser.add_argument("--run", dest="run_command", default=None, help="Command to run after upload")

    exec_parser = subparsers.add_parser("exec", parents=[ssh_options], help="Run one remote command")
    exec_parser.add_argument("remote_command", help="Command line to execute remotely")

    subparsers.add_parser(
        "verify-key", parents=[ssh_options], help="Check that the configured key authenticates"
    )
    subparsers.add_parser(
        "verify-host", parents=[ssh_options], help="Check sudo, pwsh and dotnet on the remote host"
    )

    ensure_parser = subparsers.add_parser(
        "ensure-dir", parents=[ssh_options], help="Create a directory on the remote host"
    )
    ensure_parser.add_argument("remote_dir", help="Remote directory to create")

    return parser


def _apply_overrides(config: AppConfig, args: argparse.Namespace) -> None:
    if getattr(args, "ssh_host", None):
        config.ssh.host = args.ssh_host
    if getattr(args, "ssh_port", None):
        config.ssh.port = args.ssh_port
    if getattr(args, "ssh_user", None):
        config.ssh.user = args.ssh_user
    if getattr(args, "ssh_key", None):
        config.ssh.key_path = args.ssh_key
        config.ssh.key_content = None
    if getattr(args, "autoconvert_key", None) is not None:
        config.ssh.auto_convert = args.autoconvert_key


def _build_context(args: argparse.Namespace) -> CLIContext:
    config = load_config(args.config)
    _apply_overrides(config, args)
    return CLIContext(config=config)


def handle_keygen_command(args: argparse.Namespace) -> int:
    pair = generate_rsa_key_pair(args.bits)
    if args.stdout:
        print(pair.private_pem)
        print(pair.public_line)
    else:
        private_path, public_path = write_key_pair_files(args.prefix, pair.private_pem, pair.public_line)
        print(f"Wrote private key: {private_path}")
        print(f"Wrote public key: {public_path}")

    print()
    print("--- Remote install script (paste into remote host shell) ---")
    print(authorized_keys_install_script(pair.public_line))
    print("--- end script ---")
    return EXIT_OK


def _report_progress(remote_path: str, transferred: int, total: int) -> None:
    if transferred == total:
        logger.info("Uploaded %s (%d bytes)", remote_path, total)


def handle_deploy_command(args: argparse.Namespace, context: CLIContext) -> int:
    deploy = context.config.deploy
    publish_dir = Path(args.publish_dir or deploy.publish_dir)
    if not publish_dir.is_dir():
        print(f"Publish directory not found: {publish_dir}", file=sys.stderr)
        return EXIT_SETUP_FAILED

    bootstrapper = context.bootstrapper()
    remote_dir = args.remote_dir or deploy.resolve_remote_dir(bootstrapper.spec.user)

    print("Uploading publish directory...")
    uploaded = bootstrapper.upload_directory(publish_dir, remote_dir, progress=_report_progress)
    print(f"Uploaded {len(uploaded)} files to {remote_dir}")

    print("Running install command...")
    result = bootstrapper.run_command(args.run_command or deploy.command)
    print(f"Exit={result.exit_status}, Output={result.stdout.strip()}, Error={result.stderr.strip()}")
    return EXIT_OK if result.ok else EXIT_REMOTE_COMMAND_FAILED


def handle_exec_command(args: argparse.Namespace, context: CLIContext) -> int:
    result = context.bootstrapper().run_command(args.remote_command)
    if result.stdout:
        sys.stdout.write(result.stdout)
    if result.stderr:
        sys.stderr.write(result.stderr)
    print(f"Exit={result.exit_status}")
    return EXIT_OK if result.ok else EXIT_REMOTE_COMMAND_FAILED


def handle_verify_key_command(args: argparse.Namespace, context: CLIContext) -> int:
    result = context.bootstrapper().test_authentication()
    if result.ok:
        print("✅ Success: key authenticated successfully.")
        return EXIT_OK
    print(f"❌ Authentication failed (exit={result.exit_status}). Error: {result.stderr.strip()}")
    return EXIT_REMOTE_COMMAND_FAILED


def handle_verify_host_command(args: argparse.Namespace, context: CLIContext) -> int:
    bootstrapper = context.bootstrapper()
    print(f"Verifying remote host configuration on {bootstrapper.spec.host} (sudo, pwsh, dotnet)...")
    with bootstrapper.open_session() as session:
        facts = RemoteProbe().collect(session)
    print(json.dumps(facts.to_payload(), indent=2))
    if not facts.passwordless_sudo:
        print("Sudo: non-interactive sudo failed. Some install steps may require interactive sudo.")
    return EXIT_OK


def handle_ensure_dir_command(args: argparse.Namespace, context: CLIContext) -> int:
    with context.bootstrapper().open_session() as session:
        try:
            session.ensure_remote_dir(args.remote_dir)
        except RemoteCommandError as exc:
            print(f"Failed to ensure remote directory: {exc}", file=sys.stderr)
            return EXIT_REMOTE_STEP_FAILED
    print(f"Remote directory ensured: {args.remote_dir}")
    return EXIT_OK


_REMOTE_HANDLERS: Dict[str, Callable[[argparse.Namespace, CLIContext], int]] = {
    "deploy": handle_deploy_command,
    "exec": handle_exec_command,
    "verify-key": handle_verify_key_command,
    "verify-host": handle_verify_host_command,
    "ensure-dir": handle_ensure_dir_command,
}


def run_cli(argv: Optional[List[str]] = None, *, context: Optional[CLIContext] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "keygen":
        return handle_keygen_command(args)

    try:
        if context is None:
            context = _build_context(args)
        else:
            _apply_overrides(context.config, args)
        return _REMOTE_HANDLERS[args.command](args, context)
    except (CredentialError, RemoteSessionError) as exc:
        print(f"❌ Bootstrap failed: {exc}", file=sys.stderr)
        return EXIT_SETUP_FAILED
    except (ValueError, FileNotFoundError) as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return EXIT_SETUP_FAILED
