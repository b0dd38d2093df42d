# src/gitsops/gitwrap.py: Safe subprocess wrappers for Git.
# This module provides run_git, a controlled way of calling the system 'git'
# binary, and GitRepository, the narrow view of a repository the filters need:
# committed blobs at a revision, tracked paths, working-tree files, and local
# config.

import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from .errors import GitError

# --- Core Git Execution ---

def _decode(output) -> str:
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output or ""


def run_git(
    args: List[str],
    cwd: Path,
    timeout: int = 120,
    check: bool = True,
    env: Optional[dict] = None,
    text: bool = True,
) -> subprocess.CompletedProcess:
    """
    Runs a git command in a specified directory with a timeout and error handling.

    Args:
        args: A list of arguments for the git command.
        cwd: The working directory for the command.
        timeout: The command timeout in seconds.
        check: If True, raises GitError on a non-zero exit code.
        env: An optional dictionary of environment variables.
        text: If False, stdout and stderr are returned as bytes.

    Returns:
        The CompletedProcess object.

    Raises:
        GitError: If git is not found, the command fails, or it times out.
    """
    if not cwd.is_dir():
        raise GitError(f"Git working directory not found: {cwd}")

    base_env = os.environ.copy()
    base_env["GIT_TERMINAL_PROMPT"] = "0"  # Disable interactive prompts
    if env:
        base_env.update(env)

    try:
        process = subprocess.run(
            ["git"] + args,
            cwd=cwd,
            capture_output=True,
            text=text,
            timeout=timeout,
            check=check,
            env=base_env,
        )
        return process
    except FileNotFoundError:
        raise GitError("The 'git' command was not found. Is it installed and in your PATH?")
    except subprocess.CalledProcessError as e:
        error_message = _decode(e.stderr).strip() or _decode(e.stdout).strip()
        raise GitError(f"Git command '{' '.join(args)}' failed: {error_message}")
    except subprocess.TimeoutExpired:
        raise GitError(f"Git command '{' '.join(args)}' timed out after {timeout} seconds.")


# --- Repository view ---

class GitRepository:
    """
    The git operations used by the filters and the initializer.

    Paths are relative to the repository root, which is also where git runs
    filter commands from.
    """

    def __init__(self, root: Optional[Path] = None):
        self.root: Path = root or Path.cwd()

    def is_inside_work_tree(self) -> bool:
        """Checks if the root directory is inside a git working tree."""
        try:
            result = run_git(["rev-parse", "--is-inside-work-tree"], cwd=self.root, check=False)
        except GitError:
            return False
        return result.returncode == 0 and result.stdout.strip() == "true"

    def exists_at(self, path: str, rev: str = "HEAD") -> bool:
        """Checks if a path is recorded at a revision. False if the revision does not exist yet."""
        result = run_git(["cat-file", "-e", f"{rev}:{path}"], cwd=self.root, check=False)
        return result.returncode == 0

    def read_blob(self, path: str, rev: str = "HEAD") -> bytes:
        """Reads the raw blob content of a path at a revision."""
        result = run_git(["cat-file", "blob", f"{rev}:{path}"], cwd=self.root, text=False)
        return result.stdout

    def list_tracked(self) -> List[str]:
        """Lists every path tracked in the index."""
        result = run_git(["ls-files", "-z"], cwd=self.root, text=False)
        return [os.fsdecode(p) for p in result.stdout.split(b"\0") if p]

    def read_worktree_file(self, path: str) -> Optional[bytes]:
        """Reads a file from the working tree, or None if it is not on disk."""
        file_path = self.root / path
        if not file_path.is_file():
            return None
        return file_path.read_bytes()

    def get_config(self, key: str) -> Optional[str]:
        """Gets a local config value, or None if it is not set."""
        result = run_git(["config", "--local", "--get", key], cwd=self.root, check=False)
        if result.returncode == 0:
            return result.stdout.strip()
        if result.returncode == 1:
            return None
        raise GitError(f"Failed to read git config '{key}': {result.stderr.strip()}")

    def set_config(self, key: str, value: str) -> None:
        """Sets a local config value."""
        run_git(["config", "--local", key, value], cwd=self.root)

    def checkout_from_head(self, path: str, config_overrides: Optional[Dict[str, str]] = None) -> None:
        """
        Force-checks out a path from HEAD, rewriting the working-tree file.

        The file is removed first: git skips paths whose index entry still
        matches the file on disk, and the smudge filter would never run.
        config_overrides are passed as 'git -c key=value' for this command only.
        """
        (self.root / path).unlink(missing_ok=True)
        args: List[str] = []
        for key, value in (config_overrides or {}).items():
            args += ["-c", f"{key}={value}"]
        args += ["checkout", "-f", "HEAD", "--", path]
        run_git(args, cwd=self.root)
