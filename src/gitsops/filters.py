# src/gitsops/filters.py: Smudge and clean filter logic.
# git calls smudge when it writes a file into the working tree and clean when
# it stages one. Smudge just decrypts. Clean decides whether the plaintext
# really changed since HEAD. sops picks fresh nonces on every run, so
# re-encrypting unchanged plaintext would still produce a diff. When nothing
# changed, clean hands back the committed ciphertext as-is.

from enum import Enum, auto

from rich.console import Console

from .codec import CodecTag, classify
from .engine import SecretsEngine
from .gitwrap import GitRepository
from .log import get_logger, path_context

logger = get_logger(__name__)


class CleanDecision(Enum):
    """Outcome of comparing working-tree plaintext with the committed blob."""
    NEW_FILE = auto()
    UNCHANGED = auto()
    CHANGED = auto()


class SecretFilter:
    """
    Runs the smudge and clean filters for single files.

    One instance serves one filter invocation; it keeps no state between calls.
    """

    def __init__(
        self,
        repo: GitRepository,
        engine: SecretsEngine,
        console: Console,
        rev: str = "HEAD",
    ):
        self.repo = repo
        self.engine = engine
        self.console = console
        self.rev = rev

    def smudge(self, path: str, ciphertext: bytes) -> bytes:
        """Decrypts ciphertext from the object store for the working tree."""
        token = path_context.set(path)
        try:
            codec = classify(path)
            self._report(codec, path, "decrypting")
            return self.engine.decrypt(ciphertext, codec, path)
        finally:
            path_context.reset(token)

    def clean(self, path: str, plaintext: bytes) -> bytes:
        """
        Returns the ciphertext to store for a staged file.

        Failures while reading or decrypting the committed blob propagate.
        They are never treated as a change.
        """
        token = path_context.set(path)
        try:
            decision, committed = self._determine_clean_decision(path, plaintext)
            logger.info("Clean decision for %s: %s", path, decision.name)

            if decision == CleanDecision.UNCHANGED:
                return committed
            return self._encrypt(path, plaintext)
        finally:
            path_context.reset(token)

    def _determine_clean_decision(self, path: str, plaintext: bytes) -> tuple[CleanDecision, bytes]:
        """Compares plaintext against the decrypted committed blob."""
        if not self.repo.exists_at(path, self.rev):
            return CleanDecision.NEW_FILE, b""

        codec = classify(path)
        committed = self.repo.read_blob(path, self.rev)
        committed_plaintext = self.engine.decrypt(committed, codec, path)

        if committed_plaintext == plaintext:
            return CleanDecision.UNCHANGED, committed
        return CleanDecision.CHANGED, committed

    def _encrypt(self, path: str, plaintext: bytes) -> bytes:
        codec = classify(path)
        self._report(codec, path, "encrypting")
        return self.engine.encrypt(plaintext, codec, path)

    def _report(self, codec: CodecTag, path: str, action: str) -> None:
        self.console.print(f"[{codec.value}] {action} {path}", markup=False, highlight=False)
