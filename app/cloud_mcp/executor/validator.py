"""
Security validation for provider CLI commands.

Two rules are applied to the sub-command text (the part after the
``gcloud``/``az`` program name):

1. Denylisted leading sub-commands are rejected (credential management,
   configuration mutation, unstable command surfaces).
2. For gcloud, combining ``--format`` with ``eval`` is rejected, since the
   output-formatting language can be used to evaluate expressions.

Validation is pure: no I/O and no mutable state, so a single validator
can be shared by every concurrent call.
"""

from typing import Any, Optional

from cloud_mcp.executor.types import ExecutionPolicy, Provider, ValidationOutcome


# Built-in denylists. Configuration may extend these, never shrink them.
BLOCKED_GCP_COMMANDS = ("auth", "config", "init", "beta", "alpha")
BLOCKED_AZURE_COMMANDS = ("login", "account", "config")

FORMAT_TOKEN = "--format"
EVAL_TOKEN = "eval"


def _merge_denylist(builtin: tuple[str, ...], extra: Optional[list[str]]) -> tuple[str, ...]:
    """Append configured entries to a built-in denylist, keeping order and dropping duplicates."""
    merged = list(builtin)
    for entry in extra or []:
        normalized = entry.strip().lower()
        if normalized and normalized not in merged:
            merged.append(normalized)
    return tuple(merged)


class CommandValidator:
    """
    Validates commands against the provider denylists.

    Also exposes the execution policy (timeout and output cap) that the
    executor applies to permitted commands.
    """

    def __init__(
        self,
        policy: Optional[ExecutionPolicy] = None,
        security_config: Optional[dict[str, Any]] = None,
    ):
        """
        Initialize validator.

        Args:
            policy: Resource limits for execution (defaults: 30s, 10 MiB)
            security_config: Optional security settings dict containing:
                - gcp_blocked_commands: extra gcloud sub-commands to block
                - azure_blocked_commands: extra az sub-commands to block
        """
        security_config = security_config or {}
        self._policy = policy or ExecutionPolicy()
        self._denylists: dict[Provider, tuple[str, ...]] = {
            Provider.GCP: _merge_denylist(
                BLOCKED_GCP_COMMANDS, security_config.get("gcp_blocked_commands")
            ),
            Provider.AZURE: _merge_denylist(
                BLOCKED_AZURE_COMMANDS, security_config.get("azure_blocked_commands")
            ),
        }

    @property
    def policy(self) -> ExecutionPolicy:
        return self._policy

    @property
    def max_timeout(self) -> float:
        """Maximum wall-clock duration of a command, in seconds."""
        return self._policy.timeout_seconds

    @property
    def max_output_size(self) -> int:
        """Maximum combined stdout+stderr size, in bytes."""
        return self._policy.max_output_bytes

    def denylist(self, provider: Provider) -> tuple[str, ...]:
        """Return the effective denylist for a provider."""
        return self._denylists[provider]

    def validate(self, provider: Provider | str, raw_command: str) -> ValidationOutcome:
        """
        Validate a sub-command for the given provider.

        Args:
            provider: Provider (or its value, "gcp" / "azure")
            raw_command: Sub-command text without the CLI program name

        Returns:
            ValidationOutcome indicating if the command may run
        """
        provider = Provider(provider)

        if not raw_command or not raw_command.strip():
            return ValidationOutcome.reject("empty command")

        normalized = raw_command.strip().lower()

        for blocked in self.denylist(provider):
            if normalized.startswith(blocked):
                return ValidationOutcome.reject(
                    f"Command blocked: {blocked} commands are not allowed for security reasons"
                )

        if provider is Provider.GCP and FORMAT_TOKEN in normalized and EVAL_TOKEN in normalized:
            return ValidationOutcome.reject(
                "Potentially dangerous format evaluation detected"
            )

        return ValidationOutcome.allow()

    def validate_gcp(self, raw_command: str) -> ValidationOutcome:
        return self.validate(Provider.GCP, raw_command)

    def validate_azure(self, raw_command: str) -> ValidationOutcome:
        return self.validate(Provider.AZURE, raw_command)


def create_validator(
    policy: Optional[ExecutionPolicy] = None,
    security_config: Optional[dict[str, Any]] = None,
) -> CommandValidator:
    """
    Factory function to create a CommandValidator.

    Args:
        policy: Execution limits
        security_config: Security configuration dictionary

    Returns:
        Configured CommandValidator instance
    """
    return CommandValidator(policy, security_config)
