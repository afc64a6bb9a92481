"""Wallet secret resolution.

The private key may come from several places. Sources are tried in order and
the first one yielding a non-empty value wins:

1. `DirectSecretSource`: the `PRIVATE_KEY` setting (environment or .env file)
2. `KeychainSecretSource`: macOS keychain via the `security` CLI
3. `SecretServiceSource`: freedesktop Secret Service via the `secret-tool` CLI
4. `CommandSecretSource`: an arbitrary shell command printing the key

Only configured sources take part. Every OS/process call goes through an
injectable `runner` so each source can be tested without touching the host.
"""

from __future__ import annotations

import logging
import subprocess
import sys
from typing import Callable, List, Optional, Protocol, Sequence, Union, runtime_checkable

from paytoll_mcp.core.config import SecretSourcesConfig
from paytoll_mcp.errors import ConfigurationError

logger = logging.getLogger(__name__)

CommandArgs = Union[str, Sequence[str]]
Runner = Callable[..., "subprocess.CompletedProcess[str]"]

COMMAND_TIMEOUT_SECONDS = 30.0


def run_command(args: CommandArgs, *, shell: bool = False) -> "subprocess.CompletedProcess[str]":
    """Run a command capturing text output; never raises on non-zero exit."""
    return subprocess.run(
        args,
        shell=shell,
        capture_output=True,
        text=True,
        timeout=COMMAND_TIMEOUT_SECONDS,
        check=False,
    )


@runtime_checkable
class SecretSource(Protocol):
    name: str

    def resolve(self) -> Optional[str]: ...


class DirectSecretSource:
    name = "env"

    def __init__(self, value: Optional[str]) -> None:
        self._value = value

    def resolve(self) -> Optional[str]:
        if self._value and self._value.strip():
            return self._value.strip()
        return None


class _CliLookupSource:
    """Shared behavior for platform-restricted CLI lookups."""

    name = "cli"
    platform_prefix = ""
    platform_label = ""

    def __init__(self, *, runner: Optional[Runner] = None, platform: Optional[str] = None) -> None:
        self._runner = runner or run_command
        self._platform = platform or sys.platform

    def _argv(self) -> List[str]:
        raise NotImplementedError

    def resolve(self) -> Optional[str]:
        if not self._platform.startswith(self.platform_prefix):
            raise ConfigurationError(
                f"{self.name} secret lookup is only supported on {self.platform_label} "
                f"(current platform: {self._platform})"
            )
        argv = self._argv()
        try:
            proc = self._runner(argv)
        except FileNotFoundError as e:
            raise ConfigurationError(f"{self.name} secret lookup needs the '{argv[0]}' command") from e
        except subprocess.TimeoutExpired as e:
            raise ConfigurationError(f"{self.name} secret lookup timed out") from e
        if proc.returncode != 0:
            logger.warning("%s secret lookup found no entry (exit code %d)", self.name, proc.returncode)
            return None
        value = (proc.stdout or "").strip()
        return value or None


class KeychainSecretSource(_CliLookupSource):
    name = "keychain"
    platform_prefix = "darwin"
    platform_label = "macOS"

    def __init__(self, service: str, account: str = "default", **kwargs) -> None:
        super().__init__(**kwargs)
        self.service = service
        self.account = account

    def _argv(self) -> List[str]:
        return ["security", "find-generic-password", "-s", self.service, "-a", self.account, "-w"]


class SecretServiceSource(_CliLookupSource):
    name = "secret-service"
    platform_prefix = "linux"
    platform_label = "Linux"

    def __init__(self, service: str, account: str = "default", **kwargs) -> None:
        super().__init__(**kwargs)
        self.service = service
        self.account = account

    def _argv(self) -> List[str]:
        return ["secret-tool", "lookup", "service", self.service, "account", self.account]


class CommandSecretSource:
    name = "command"

    def __init__(self, command: str, *, runner: Optional[Runner] = None) -> None:
        self.command = command
        self._runner = runner or run_command

    def resolve(self) -> Optional[str]:
        try:
            proc = self._runner(self.command, shell=True)
        except subprocess.TimeoutExpired as e:
            raise ConfigurationError("PAYTOLL_PRIVATE_KEY_COMMAND timed out") from e
        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip().splitlines()
            hint = f": {stderr[-1]}" if stderr else ""
            raise ConfigurationError(f"PAYTOLL_PRIVATE_KEY_COMMAND exited with code {proc.returncode}{hint}")
        value = (proc.stdout or "").strip()
        return value or None


def build_secret_sources(
    config: SecretSourcesConfig,
    *,
    runner: Optional[Runner] = None,
    platform: Optional[str] = None,
) -> List[SecretSource]:
    """Build the ordered list of configured secret sources."""
    sources: List[SecretSource] = [DirectSecretSource(config.private_key)]
    if config.keychain_service:
        sources.append(
            KeychainSecretSource(
                config.keychain_service, config.keychain_account, runner=runner, platform=platform
            )
        )
    if config.secret_service_service:
        sources.append(
            SecretServiceSource(
                config.secret_service_service, config.secret_service_account, runner=runner, platform=platform
            )
        )
    if config.private_key_command:
        sources.append(CommandSecretSource(config.private_key_command, runner=runner))
    return sources


def resolve_secret(sources: Sequence[SecretSource]) -> Optional[str]:
    """Return the first non-empty secret, short-circuiting the remaining sources.

    Raises:
        ConfigurationError: If a configured source cannot be used.
    """
    for source in sources:
        value = source.resolve()
        if value:
            logger.info("Wallet key resolved from %s source", source.name)
            return value
        logger.debug("No wallet key from %s source", source.name)
    return None
