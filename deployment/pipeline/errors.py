"""Exceptions raised while deploying."""


class DeploymentError(Exception):
    """Base class for deployment failures."""


class RemoteCommandError(DeploymentError):
    """A command run on the remote host exited non-zero."""

    def __init__(self, command: str, returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        message = f"Remote command failed with exit code {returncode}: {command}"
        if stderr:
            message = f"{message}\n{stderr.strip()}"
        super().__init__(message)


class PipelineError(DeploymentError):
    """A pipeline stage failed."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Stage '{stage}' failed: {cause}")
