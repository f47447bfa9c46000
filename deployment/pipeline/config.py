"""Settings consumed by the deploy step."""
from typing import Optional

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DeploySettings(BaseSettings):
    """
    Remote deployment settings, read from `DEPLOY_*` environment variables.

    Host, user and private key are opaque credentials handed to the SSH step;
    in CI they come from repository secrets.
    """

    host: Optional[str] = Field(default=None, description="Address of the target server")
    user: str = Field(default="ubuntu", description="Login user on the target server")
    private_key: Optional[SecretStr] = Field(
        default=None,
        description="Private key material used to log in"
    )
    port: int = Field(default=22, description="SSH port")

    app_dir: str = Field(
        default="~/tasklist-app",
        description="Checkout location of the app on the server"
    )
    repo_url: str = Field(
        default="https://github.com/tasklist-app/tasklist-app.git",
        description="Repository cloned onto the server"
    )
    process_name: str = Field(
        default="tasklist-app",
        description="Name of the process registered with the supervisor"
    )
    start_command: str = Field(
        default=".venv/bin/python -m tasklist_api.cli serve",
        description="Command the supervisor runs inside app_dir"
    )

    deploy_branch: str = Field(
        default="main",
        validation_alias="DEPLOY_BRANCH",
        description="Only this branch deploys"
    )
    branch: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DEPLOY_BRANCH_NAME", "GITHUB_REF_NAME"),
        description="Branch being built"
    )

    model_config = SettingsConfigDict(
        env_prefix="DEPLOY_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def require_credentials(self) -> None:
        """Raise if the SSH step cannot run with these settings."""
        missing = [name for name in ("host", "private_key") if getattr(self, name) is None]
        if missing:
            env_names = ", ".join(f"DEPLOY_{name.upper()}" for name in missing)
            raise ValueError(f"Missing deployment settings: {env_names}")
