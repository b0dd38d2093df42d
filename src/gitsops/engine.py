# src/gitsops/engine.py: Secrets engine port and the sops adapter.
# The filters never encrypt anything themselves. They hand content to a
# SecretsEngine together with a codec hint and the tracked filename, which sops
# uses to pick the matching creation rule. SopsEngine shells out to the sops
# binary; tests substitute an in-memory engine.

import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from .codec import CodecTag
from .config import Settings
from .errors import EngineError
from .log import get_logger

logger = get_logger(__name__)


class SecretsEngine(ABC):
    @abstractmethod
    def encrypt(self, content: bytes, codec: CodecTag, filename: str) -> bytes:
        """Encrypt plaintext content. Raises EngineError on failure."""
        pass

    @abstractmethod
    def decrypt(self, content: bytes, codec: CodecTag, filename: str) -> bytes:
        """Decrypt ciphertext content. Raises EngineError on failure."""
        pass


class SopsEngine(SecretsEngine):
    """
    Implements the SecretsEngine port by running the sops binary.

    Content is piped through stdin and the result is read back from stdout,
    so plaintext never touches the disk.
    """

    def __init__(self, settings: Settings):
        self.binary = settings.sops_binary
        self.config_path: Path = settings.config_path

    def encrypt(self, content: bytes, codec: CodecTag, filename: str) -> bytes:
        return self._run("--encrypt", content, codec, filename)

    def decrypt(self, content: bytes, codec: CodecTag, filename: str) -> bytes:
        return self._run("--decrypt", content, codec, filename)

    def _build_args(self, mode: str, codec: CodecTag, filename: str) -> List[str]:
        return [
            self.binary,
            "--config", str(self.config_path),
            mode,
            "--input-type", codec.value,
            "--output-type", codec.value,
            "--filename-override", filename,
            "/dev/stdin",
        ]

    def _run(self, mode: str, content: bytes, codec: CodecTag, filename: str) -> bytes:
        args = self._build_args(mode, codec, filename)
        logger.debug("Running sops %s for %s as %s", mode, filename, codec.value)
        try:
            process = subprocess.run(
                args,
                input=content,
                capture_output=True,
                check=True,
            )
        except FileNotFoundError:
            raise EngineError(f"The '{self.binary}' command was not found. Is it installed and in your PATH?")
        except subprocess.CalledProcessError as e:
            error_message = e.stderr.decode("utf-8", errors="replace").strip()
            raise EngineError(f"sops {mode} failed for '{filename}': {error_message}")
        return process.stdout
