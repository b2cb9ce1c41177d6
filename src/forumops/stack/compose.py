"""docker compose lifecycle for the monitoring stack.

Every call shells out to ``docker compose -f <file> [-p <project>] ...``.
A nonzero exit is reported through :class:`CommandResult` rather than
raised, so callers decide how to surface it; :class:`ComposeError` is
reserved for the binary being missing or the call timing out.
"""

from __future__ import annotations

import json
import logging
import subprocess
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from forumops.config import StackConfig

logger = logging.getLogger(__name__)


class ComposeError(Exception):
    """Raised when docker compose cannot be executed."""

    pass


@dataclass
class CommandResult:
    """Outcome of one compose invocation."""

    command: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def error_text(self, limit: int = 500) -> str:
        """Best error line(s) for display."""
        return (self.stderr.strip() or self.stdout.strip() or "Unknown error")[:limit]


@dataclass
class ServiceState:
    """One row of ``docker compose ps``."""

    name: str
    service: str
    state: str
    health: str = ""
    status: str = ""

    @property
    def running(self) -> bool:
        return self.state == "running"

    @property
    def healthy(self) -> bool:
        # Services without a healthcheck report an empty health
        return self.running and self.health in ("", "healthy")


def parse_ps_output(output: str) -> list[ServiceState]:
    """Parse ``docker compose ps --format json``.

    Compose v2.21+ prints one JSON object per line; older v2 releases print a
    single JSON array.
    """
    text = output.strip()
    if not text:
        return []

    if text.startswith("["):
        entries = json.loads(text)
    else:
        entries = [json.loads(line) for line in text.splitlines() if line.strip()]

    states = []
    for entry in entries:
        states.append(
            ServiceState(
                name=entry.get("Name", ""),
                service=entry.get("Service", ""),
                state=str(entry.get("State", "")).lower(),
                health=str(entry.get("Health", "")).lower(),
                status=entry.get("Status", ""),
            )
        )
    return states


class ComposeStack:
    """Runs docker compose against the monitoring compose file."""

    def __init__(self, config: StackConfig):
        self.config = config

    def base_command(self) -> list[str]:
        """``docker compose -f FILE [-p PROJECT]``."""
        cmd = [*self.config.compose_command, "-f", self.config.compose_file]
        if self.config.project_name:
            cmd.extend(["-p", self.config.project_name])
        return cmd

    def _run(self, args: list[str], timeout: int | None = None) -> CommandResult:
        cmd = self.base_command() + args
        logger.debug("Running: %s", " ".join(cmd))
        start = time.time()
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout or self.config.timeout,
            )
        except FileNotFoundError:
            raise ComposeError(f"{self.config.compose_command[0]} not found on PATH")  # noqa: B904
        except subprocess.TimeoutExpired:
            raise ComposeError(  # noqa: B904
                f"'{' '.join(cmd)}' timed out after {timeout or self.config.timeout}s"
            )

        elapsed = time.time() - start
        if result.returncode != 0:
            logger.debug("Compose exited %d: %s", result.returncode, result.stderr.strip())
        return CommandResult(
            command=cmd,
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            elapsed_seconds=elapsed,
        )

    def up(
        self,
        services: list[str] | None = None,
        detach: bool = True,
        pull: bool = False,
    ) -> CommandResult:
        """Start the stack (or a subset of services)."""
        args = ["up"]
        if detach:
            args.append("-d")
        if pull:
            args.extend(["--pull", "always"])
        args.extend(services or [])
        return self._run(args)

    def down(self, volumes: bool = False) -> CommandResult:
        """Stop and remove the stack's containers."""
        args = ["down"]
        if volumes:
            args.append("--volumes")
        return self._run(args)

    def restart(self, services: list[str] | None = None) -> CommandResult:
        return self._run(["restart", *(services or [])])

    def pull(self) -> CommandResult:
        return self._run(["pull"])

    def config_check(self) -> CommandResult:
        """Validate the compose file without starting anything."""
        return self._run(["config", "--quiet"], timeout=30)

    def ps(self) -> list[ServiceState]:
        """List containers of the stack.

        Raises:
            ComposeError: If compose fails or prints unparseable output.
        """
        result = self._run(["ps", "--all", "--format", "json"], timeout=30)
        if not result.ok:
            raise ComposeError(f"docker compose ps failed: {result.error_text()}")
        try:
            return parse_ps_output(result.stdout)
        except json.JSONDecodeError as e:
            raise ComposeError(f"Unexpected docker compose ps output: {e}")  # noqa: B904

    def logs(
        self,
        service: str | None = None,
        lines: int = 100,
        follow: bool = False,
        on_line: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Fetch or stream service logs.

        With ``follow`` the output is streamed line by line to *on_line*
        until the process exits or the user interrupts it.
        """
        args = ["logs", "--no-color", f"--tail={lines}"]
        if service:
            args.append(service)

        if not follow:
            return self._run(args, timeout=60)

        cmd = self.base_command() + args + ["-f"]
        logger.debug("Streaming: %s", " ".join(cmd))
        start = time.time()
        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except FileNotFoundError:
            raise ComposeError(f"{self.config.compose_command[0]} not found on PATH")  # noqa: B904

        try:
            if process.stdout:
                for line in iter(process.stdout.readline, ""):
                    if on_line:
                        on_line(line)
            returncode = process.wait()
        except KeyboardInterrupt:
            process.terminate()
            returncode = process.wait()

        return CommandResult(
            command=cmd,
            returncode=returncode,
            elapsed_seconds=time.time() - start,
        )
