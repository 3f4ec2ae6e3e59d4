"""
Async command execution engine.

This module turns a validated provider sub-command into a gcloud/az
invocation and runs it as a bounded child process:
- Validation is applied before anything is spawned
- Timeout applies to the whole process group, not just the shell
- Output size is checked while reading, before decode
- Every process failure is normalized into an ExecutionResult
"""

import asyncio
import os
import signal
from typing import Any, Optional

from cloud_mcp.executor.types import (
    CommandRequest,
    ExecutionPolicy,
    ExecutionResult,
    ExecutorError,
    Provider,
    ValidationError,
)
from cloud_mcp.executor.validator import CommandValidator, create_validator
from cloud_mcp.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BINARIES = {
    Provider.GCP: "gcloud",
    Provider.AZURE: "az",
}

_READ_CHUNK = 64 * 1024


class OutputLimitExceeded(ExecutorError):
    """Raised internally when a process writes more than the output cap."""


class _OutputBuffer:
    """Accumulates stdout/stderr and enforces the combined size cap."""

    def __init__(self, limit: int):
        self.limit = limit
        self.stdout = bytearray()
        self.stderr = bytearray()

    @property
    def size(self) -> int:
        return len(self.stdout) + len(self.stderr)

    def append(self, target: bytearray, chunk: bytes) -> None:
        target.extend(chunk)
        if self.size > self.limit:
            raise OutputLimitExceeded(f"Output exceeded {self.limit} bytes")


def _decode(data: bytes) -> str:
    return bytes(data).decode("utf-8", errors="replace")


class CommandExecutor:
    """
    Executes gcloud/az commands with validation and resource limits.

    This class is the main entry point for command execution. It:
    1. Validates commands against the provider denylist
    2. Builds the full CLI invocation (program name + scope flag)
    3. Runs it through the shell with timeout and output limits
    4. Returns a normalized ExecutionResult
    """

    def __init__(
        self,
        validator: CommandValidator,
        binaries: Optional[dict[Provider, str]] = None,
    ):
        """
        Initialize the executor.

        Args:
            validator: CommandValidator holding the denylists and policy
            binaries: Optional CLI program override per provider
        """
        self.validator = validator
        self.binaries = {**DEFAULT_BINARIES, **(binaries or {})}

    def build_invocation(
        self,
        provider: Provider,
        command: str,
        scope_id: Optional[str] = None,
    ) -> str:
        """
        Build the literal shell invocation for a sub-command.

        The caller's text is used verbatim; only the program name and the
        scope flag are added.
        """
        invocation = f"{self.binaries[provider]} {command}"
        if scope_id:
            if provider is Provider.GCP:
                invocation += f" --project={scope_id}"
            else:
                invocation += f" --subscription {scope_id}"
        return invocation

    async def execute(self, provider: Provider, request: CommandRequest) -> ExecutionResult:
        """
        Validate and execute a provider sub-command.

        Args:
            provider: Target provider
            request: Sub-command and optional scope id

        Returns:
            ExecutionResult; process failures never raise

        Raises:
            ValidationError: If the command is rejected by policy
        """
        outcome = self.validator.validate(provider, request.raw_command)
        if not outcome.permitted:
            logger.warning(
                "Rejected %s command %r: %s", provider.value, request.raw_command, outcome.reason
            )
            raise ValidationError(
                outcome.reason or "Command validation failed",
                provider=provider,
                command=request.raw_command,
            )

        invocation = self.build_invocation(provider, request.raw_command, request.scope_id)
        return await self.run_invocation(invocation)

    async def execute_gcp(
        self, command: str, project_id: Optional[str] = None
    ) -> ExecutionResult:
        """Execute a gcloud sub-command, optionally scoped to a project."""
        return await self.execute(Provider.GCP, CommandRequest(command, project_id))

    async def execute_azure(
        self, command: str, subscription_id: Optional[str] = None
    ) -> ExecutionResult:
        """Execute an az sub-command, optionally scoped to a subscription."""
        return await self.execute(Provider.AZURE, CommandRequest(command, subscription_id))

    async def run_invocation(self, invocation: str) -> ExecutionResult:
        """
        Run an already-built invocation under the policy limits.

        No validation happens here; use execute() for caller input.
        """
        policy = self.validator.policy
        logger.debug("Executing: %s", invocation)

        try:
            process = await asyncio.create_subprocess_shell(
                invocation,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            logger.error("Failed to spawn %r: %s", invocation, e)
            return ExecutionResult(
                stdout="",
                stderr=str(e) or f"Failed to start command: {invocation}",
                exit_code=1,
            )

        buffer = _OutputBuffer(policy.max_output_bytes)

        try:
            await asyncio.wait_for(
                self._communicate(process, buffer),
                timeout=policy.timeout_seconds,
            )
        except asyncio.TimeoutError:
            await self._terminate(process)
            logger.warning("Command timed out after %ss: %s", policy.timeout_seconds, invocation)
            return self._failure(
                buffer,
                f"Command timed out after {policy.timeout_seconds:g} seconds: {invocation}",
            )
        except OutputLimitExceeded:
            await self._terminate(process)
            logger.warning("Command output exceeded %d bytes: %s", buffer.limit, invocation)
            return self._failure(
                buffer,
                f"Command output exceeded {buffer.limit} bytes: {invocation}",
            )

        exit_code = process.returncode
        if exit_code == 0:
            return ExecutionResult(
                stdout=_decode(buffer.stdout),
                stderr=_decode(buffer.stderr),
                exit_code=0,
            )

        stderr = _decode(buffer.stderr)
        return ExecutionResult(
            stdout=_decode(buffer.stdout),
            stderr=stderr if stderr.strip() else f"Command failed with exit code {exit_code}: {invocation}",
            exit_code=exit_code if exit_code and exit_code > 0 else 1,
        )

    async def _communicate(
        self, process: asyncio.subprocess.Process, buffer: _OutputBuffer
    ) -> None:
        """Drain both pipes concurrently, then reap the process."""
        readers = [
            asyncio.ensure_future(self._drain(process.stdout, buffer, buffer.stdout)),
            asyncio.ensure_future(self._drain(process.stderr, buffer, buffer.stderr)),
        ]
        try:
            await asyncio.gather(*readers)
        finally:
            for reader in readers:
                reader.cancel()
        await process.wait()

    @staticmethod
    async def _drain(
        stream: Optional[asyncio.StreamReader],
        buffer: _OutputBuffer,
        target: bytearray,
    ) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                return
            buffer.append(target, chunk)

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process) -> None:
        """Kill the whole process group so shell children die with the shell."""
        try:
            if hasattr(os, "killpg"):
                os.killpg(process.pid, signal.SIGKILL)
            else:
                process.kill()
        except (ProcessLookupError, PermissionError):
            pass
        await process.wait()

    @staticmethod
    def _failure(buffer: _OutputBuffer, diagnostic: str) -> ExecutionResult:
        """
        Build a failed result from partial output plus a diagnostic.

        stdout, stderr and the diagnostic line together stay within the
        combined output cap; stdout is kept first.
        """
        budget = max(buffer.limit - len(diagnostic.encode("utf-8")) - 1, 0)
        stdout_bytes = buffer.stdout[:budget]
        stderr_bytes = buffer.stderr[: budget - len(stdout_bytes)]
        stdout = _decode(stdout_bytes)
        stderr = _decode(stderr_bytes).rstrip()
        return ExecutionResult(
            stdout=stdout,
            stderr=f"{stderr}\n{diagnostic}" if stderr else diagnostic,
            exit_code=1,
        )


def create_executor(config: Any) -> CommandExecutor:
    """
    Factory function to create a CommandExecutor from server config.

    Args:
        config: CloudMCPServerConfig instance

    Returns:
        Configured CommandExecutor instance
    """
    policy = ExecutionPolicy(
        timeout_seconds=config.command.timeout_seconds,
        max_output_bytes=config.command.max_output_size,
    )
    validator = create_validator(policy, config.security.model_dump())

    return CommandExecutor(
        validator=validator,
        binaries={
            Provider.GCP: config.command.gcloud_binary,
            Provider.AZURE: config.command.az_binary,
        },
    )
