# src/gitsops/repoinit.py: Filter registration and bulk decrypt.
# This module wires the smudge/clean filters into the local git config and,
# on request, rewrites every tracked file that still holds sops ciphertext
# into readable plaintext. The user's answer comes from an injected Confirm
# callable, so the flow runs the same in tests as in a terminal.

from dataclasses import dataclass, field
from typing import Callable, List

from rich.console import Console

from .detect import is_encrypted
from .gitwrap import GitRepository
from .log import get_logger

logger = get_logger(__name__)

Confirm = Callable[[str], bool]

IDENTITY_FILTER_COMMAND = "cat"
BULK_DECRYPT_PROMPT = "Decrypt all encrypted files in the working tree now?"


@dataclass
class InitResult:
    already_initialized: bool = False
    decrypted: List[str] = field(default_factory=list)


class RepoInitializer:
    """
    Registers the git-sops filters for a repository.

    Re-running it on a repository that already has all three filter settings
    changes nothing.
    """

    def __init__(
        self,
        repo: GitRepository,
        program: str,
        confirm: Confirm,
        console: Console,
        filter_name: str = "sops",
    ):
        self.repo = repo
        self.program = program
        self.confirm = confirm
        self.console = console
        self.filter_name = filter_name

    def _key(self, name: str) -> str:
        return f"filter.{self.filter_name}.{name}"

    def desired_settings(self) -> dict[str, str]:
        """The three config entries that make up a filter registration."""
        return {
            self._key("required"): "true",
            self._key("smudge"): f"{self.program} smudge %f",
            self._key("clean"): f"{self.program} clean %f",
        }

    def is_initialized(self) -> bool:
        return all(self.repo.get_config(key) is not None for key in self.desired_settings())

    def init(self) -> InitResult:
        if self.is_initialized():
            self.console.print("Repository is already initialized.")
            return InitResult(already_initialized=True)

        for key, value in self.desired_settings().items():
            self.repo.set_config(key, value)
            logger.info("Set %s", key)
        self.console.print(f"Registered '{self.filter_name}' smudge and clean filters.")

        result = InitResult()
        if self.confirm(BULK_DECRYPT_PROMPT):
            result.decrypted = self.bulk_decrypt()
        return result

    def find_encrypted_paths(self) -> List[str]:
        """Tracked paths whose working-tree content looks like sops ciphertext."""
        encrypted = []
        for path in self.repo.list_tracked():
            content = self.repo.read_worktree_file(path)
            if content is None:
                logger.debug("Skipping %s: not in working tree", path)
                continue
            if is_encrypted(content):
                encrypted.append(path)
        return encrypted

    def bulk_decrypt(self) -> List[str]:
        """
        Re-checks out each encrypted file so the smudge filter decrypts it.

        The clean filter is swapped for an identity command during the
        checkout so git does not encrypt the files again.
        """
        overrides = {self._key("clean"): IDENTITY_FILTER_COMMAND}
        paths = self.find_encrypted_paths()
        for path in paths:
            self.console.print(f"Decrypting {path}", markup=False, highlight=False)
            self.repo.checkout_from_head(path, config_overrides=overrides)
        return paths
