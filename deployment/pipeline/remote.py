"""
Remote command execution over SSH.

Commands run through the system `ssh` client in a subprocess, the same way
the rest of the deployment tooling shells out to `docker` and `aws`.
"""
import logging
import os
import shlex
import stat
import subprocess
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List

from deployment.pipeline.errors import RemoteCommandError

logger = logging.getLogger(__name__)


def quote_remote_path(path: str) -> str:
    """Quote a path for a remote shell while keeping a leading ``~/`` expandable."""
    if path == "~":
        return '"$HOME"'
    if path.startswith("~/"):
        return '"$HOME"/' + shlex.quote(path[2:])
    return shlex.quote(path)


class SSHRemoteShell:
    """Run shell commands on one host as one user."""

    def __init__(self, host: str, user: str, key_path: Path, port: int = 22, runner=subprocess.run):
        self.host = host
        self.user = user
        self.key_path = Path(key_path)
        self.port = port
        self._runner = runner

    def build_command(self, command: str) -> List[str]:
        """Build the local argv that runs `command` on the host."""
        return [
            "ssh",
            "-i", str(self.key_path),
            "-p", str(self.port),
            "-o", "BatchMode=yes",
            "-o", "StrictHostKeyChecking=no",
            "-o", "UserKnownHostsFile=/dev/null",
            f"{self.user}@{self.host}",
            command,
        ]

    def run(self, command: str, check: bool = True) -> subprocess.CompletedProcess:
        """Run `command` remotely; with `check`, a non-zero exit raises RemoteCommandError."""
        logger.debug(f"[{self.user}@{self.host}] $ {command}")
        result = self._runner(
            self.build_command(command),
            capture_output=True,
            text=True,
        )
        if check and result.returncode != 0:
            logger.error(f"Remote command failed ({result.returncode}): {command}")
            logger.error(f"Command error: {result.stderr}")
            raise RemoteCommandError(command, result.returncode, result.stderr)
        return result


@contextmanager
def private_key_file(private_key_material: str) -> Iterator[Path]:
    """Write key material to an owner-read-only temp file, removed on exit."""
    fd, path = tempfile.mkstemp(prefix="deploy-key-", suffix=".pem")
    key_path = Path(path)
    try:
        with os.fdopen(fd, 'w') as f:
            f.write(private_key_material)
            if not private_key_material.endswith("\n"):
                f.write("\n")
        os.chmod(key_path, stat.S_IRUSR)
        logger.debug(f"Private key written to {key_path} with permissions 400")
        yield key_path
    finally:
        if key_path.exists():
            os.chmod(key_path, stat.S_IRUSR | stat.S_IWUSR)
            key_path.unlink()
