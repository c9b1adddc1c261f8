"""Shell execution utilities.

Provides safe subprocess execution with proper error handling.
"""

import shutil
import subprocess
from dataclasses import dataclass

# Windows process exit codes are DWORDs; negative values are HRESULTs.
_DWORD_MASK = 0xFFFFFFFF


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0

    @property
    def exit_code(self) -> int:
        """Exit code as an unsigned 32-bit value (e.g. 0x800F0825)."""
        return self.returncode & _DWORD_MASK

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        if not self.stderr:
            return self.stdout
        return f"{self.stdout}\n{self.stderr}"


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: str | None = None,
) -> CommandResult:
    """Execute a shell command and return the result.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command. The child
            process is killed before TimeoutExpired is raised.
        cwd: Working directory for the command. If None, uses current directory.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        check=check,
        timeout=timeout,
        cwd=cwd,
    )
    return CommandResult(
        stdout=result.stdout or "",
        stderr=result.stderr or "",
        returncode=result.returncode,
    )


def run_powershell(
    script: str,
    *,
    executable: str = "powershell.exe",
    timeout: float | None = 120.0,
) -> CommandResult:
    """Run a PowerShell script non-interactively.

    Args:
        script: Script text passed to -Command.
        executable: PowerShell executable (powershell.exe or pwsh).
        timeout: Maximum time in seconds to wait.

    Returns:
        CommandResult of the PowerShell process.

    Raises:
        subprocess.TimeoutExpired: If the script exceeds timeout.
        FileNotFoundError: If PowerShell is not found.
    """
    return run_command(
        [
            executable,
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy",
            "Bypass",
            "-Command",
            script,
        ],
        timeout=timeout,
    )


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.

    Returns:
        True if command exists, False otherwise.
    """
    return shutil.which(name) is not None


def schedule_restart(delay_seconds: int = 30) -> CommandResult:
    """Ask Windows to restart after a delay.

    Args:
        delay_seconds: Seconds before the restart, cancellable with `shutdown /a`.

    Returns:
        CommandResult of the shutdown command.
    """
    return run_command(
        [
            "shutdown",
            "/r",
            "/t",
            str(delay_seconds),
            "/c",
            "wuctl: restarting to finish uninstalling updates",
        ]
    )
