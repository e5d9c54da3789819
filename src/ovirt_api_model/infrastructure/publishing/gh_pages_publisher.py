"""Publishes the generated HTML reference to the documentation branch."""

from __future__ import annotations

import os
import re
import shutil
import subprocess
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from ovirt_api_model.config.schemas.app_schema import PublishConfig
from ovirt_api_model.domain.base.exceptions import PublishError
from ovirt_api_model.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

_AGENT_VAR_RE = re.compile(r"(SSH_AUTH_SOCK|SSH_AGENT_PID)=([^;\s]+);")
_VERSION_RE = re.compile(r"^v?(\d+\.\d+)")

Runner = Callable[..., Any]


class PublishTarget(str, Enum):
    """Where the page lands in the documentation branch."""

    MASTER = "master"
    TAGGED = "tagged"


def version_from_description(description: str) -> str:
    """``4.2.34-1-gabc`` becomes ``4.2``."""
    match = _VERSION_RE.match(description.strip())
    if not match:
        raise PublishError(f"Cannot derive a version from 'git describe' output: {description!r}")
    return match.group(1)


class GhPagesPublisher:
    """
    Copies the rendered reference into a clone of the documentation branch and pushes it.

    Every step runs once, in order, and the first failing command aborts the
    publication with :class:`PublishError`.
    """

    def __init__(
        self,
        config: PublishConfig,
        source_file: Union[str, Path],
        runner: Optional[Runner] = None,
        environ: Optional[Mapping[str, str]] = None,
        dry_run: bool = False,
        project_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        self.config = config
        self.source_file = Path(source_file)
        self.runner = runner or subprocess.run
        self.dry_run = dry_run
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.checkout_dir = self.project_dir / config.checkout_dir
        self._env = dict(os.environ if environ is None else environ)
        self._secrets: list[str] = []
        self._agent_started = False

    def publish(self, target: Union[PublishTarget, str]) -> Path:
        """
        Publish the reference page.

        :param target: ``master`` or ``tagged``.
        :return: Path of the copied page inside the checkout.
        :raises PublishError: If a precondition or a command fails.
        """
        try:
            target = PublishTarget(target)
        except ValueError:
            raise PublishError(
                f"Unknown publish target '{target}', expected one of: "
                f"{', '.join(t.value for t in PublishTarget)}"
            ) from None

        if not self.source_file.is_file():
            raise PublishError(f"Generated documentation not found: {self.source_file}")
        key, iv = self._credentials()

        logger.info(f"Publishing {self.source_file} to {target.value} (dry run: {self.dry_run})")
        try:
            self._load_ssh_key(key, iv)
            self._init_git_config()
            self._clone_gh_pages()
            if target == PublishTarget.MASTER:
                destination = self._copy_to("master")
            else:
                destination = self._copy_to(version_from_description(self._describe()))
            self._push_gh_pages()
        finally:
            self._release_ssh_key()
        logger.info(f"Published documentation to {destination}")
        return destination

    def _credentials(self) -> tuple[str, str]:
        missing = [
            name
            for name in (self.config.key_env_var, self.config.iv_env_var)
            if not self._env.get(name)
        ]
        if missing:
            raise PublishError(f"Missing deploy key variables: {', '.join(missing)}")
        key = self._env[self.config.key_env_var]
        iv = self._env[self.config.iv_env_var]
        self._secrets = [key, iv]
        return key, iv

    def _load_ssh_key(self, key: str, iv: str) -> None:
        key_file = self.project_dir / self.config.key_file
        self._run(
            [
                "openssl", "aes-256-cbc",
                "-K", key,
                "-iv", iv,
                "-in", str(self.project_dir / self.config.encrypted_key_file),
                "-out", str(key_file),
                "-d",
            ]
        )
        agent_output = self._run(["ssh-agent", "-s"], capture=True)
        agent_vars = dict(_AGENT_VAR_RE.findall(agent_output))
        self._env.update(agent_vars)
        self._agent_started = "SSH_AGENT_PID" in agent_vars
        if not self.dry_run:
            os.chmod(key_file, 0o600)
        self._run(["ssh-add", str(key_file)])

    def _release_ssh_key(self) -> None:
        """Stop the agent started for this publication and delete the decrypted key."""
        if self._agent_started:
            try:
                self._run(["ssh-agent", "-k"])
            except PublishError as e:
                logger.warning(f"Could not stop ssh-agent: {e.message}")
            self._agent_started = False
        if not self.dry_run:
            (self.project_dir / self.config.key_file).unlink(missing_ok=True)

    def _init_git_config(self) -> None:
        self._run(["git", "config", "--global", "user.email", self.config.git_user_email])
        self._run(["git", "config", "--global", "user.name", self.config.git_user_name])

    def _clone_gh_pages(self) -> None:
        branch = self.config.branch
        self._run(["git", "clone", self.config.repository, str(self.checkout_dir)])
        self._run(["git", "checkout", f"origin/{branch}", "-b", branch], cwd=self.checkout_dir)

    def _copy_to(self, folder: str) -> Path:
        destination = self.checkout_dir / folder / "index.html"
        logger.info(f"Copying {self.source_file} to {destination}")
        if not self.dry_run:
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(self.source_file, destination)
            except OSError as e:
                raise PublishError(f"Cannot copy documentation to {destination}: {e}") from e
        return destination

    def _describe(self) -> str:
        return self._run(["git", "describe"], capture=True, read_only=True).strip()

    def _push_gh_pages(self) -> None:
        commit = self._run(
            ["git", "log", "--format=%H", "-n", "1"], capture=True, read_only=True
        ).strip()
        description = self._describe()
        self._run(["git", "add", "."], cwd=self.checkout_dir)
        self._run(
            ["git", "commit", "-m", f"gh-pages {description} {commit}"], cwd=self.checkout_dir
        )
        self._run(["git", "push", "origin", f"HEAD:{self.config.branch}"], cwd=self.checkout_dir)

    def _mask(self, command: Sequence[str]) -> list[str]:
        return ["****" if part in self._secrets else part for part in command]

    def _run(
        self,
        command: list[str],
        cwd: Optional[Path] = None,
        capture: bool = False,
        read_only: bool = False,
    ) -> str:
        """Run one command, failing fast; mutating commands are only logged in dry-run mode."""
        shown = self._mask(command)
        if self.dry_run and not read_only:
            logger.info(f"[dry-run] {' '.join(shown)}")
            return ""

        logger.debug(f"Running: {' '.join(shown)}")
        try:
            result = self.runner(
                command,
                cwd=str(cwd or self.project_dir),
                env=self._env,
                check=True,
                capture_output=capture,
                text=True,
            )
        except subprocess.CalledProcessError as e:
            logger.error(f"Command failed with exit code {e.returncode}: {' '.join(shown)}")
            raise PublishError(
                f"Command failed with exit code {e.returncode}: {' '.join(shown)}", command=shown
            ) from None
        except OSError as e:
            raise PublishError(f"Cannot run {shown[0]}: {e}", command=shown) from e
        return (result.stdout or "") if capture else ""
