# tests/conftest.py: In-memory test doubles for git and sops.

import base64
import os
from typing import Dict, List, Optional

import pytest

from gitsops.codec import CodecTag
from gitsops.engine import SecretsEngine
from gitsops.errors import EngineError, GitError


class FakeEngine(SecretsEngine):
    """
    A non-deterministic engine: every encryption uses a fresh random nonce,
    like sops, so encrypting the same plaintext twice gives different bytes.
    """

    def __init__(self):
        self.encrypt_calls: List[tuple] = []
        self.decrypt_calls: List[tuple] = []
        self.fail_decrypt = False
        self.fail_encrypt = False

    def encrypt(self, content: bytes, codec: CodecTag, filename: str) -> bytes:
        self.encrypt_calls.append((content, codec, filename))
        if self.fail_encrypt:
            raise EngineError("encrypt failed")
        nonce = os.urandom(8).hex().encode()
        return b"ENC[FAKE," + nonce + b",data:" + base64.b64encode(content) + b"]"

    def decrypt(self, content: bytes, codec: CodecTag, filename: str) -> bytes:
        self.decrypt_calls.append((content, codec, filename))
        if self.fail_decrypt:
            raise EngineError("decrypt failed")
        if not content.startswith(b"ENC[FAKE,") or not content.endswith(b"]"):
            raise EngineError(f"malformed ciphertext for {filename}")
        _, _, data = content[:-1].partition(b",data:")
        return base64.b64decode(data)


class FakeRepository:
    """Dictionary-backed stand-in for GitRepository."""

    def __init__(self):
        self.committed: Dict[str, bytes] = {}
        self.worktree: Dict[str, bytes] = {}
        self.config: Dict[str, str] = {}
        self.tracked: List[str] = []
        self.checkouts: List[tuple] = []
        self.config_writes: List[tuple] = []
        self.fail_read_blob = False

    def is_inside_work_tree(self) -> bool:
        return True

    def exists_at(self, path: str, rev: str = "HEAD") -> bool:
        return path in self.committed

    def read_blob(self, path: str, rev: str = "HEAD") -> bytes:
        if self.fail_read_blob:
            raise GitError(f"cannot read {rev}:{path}")
        return self.committed[path]

    def list_tracked(self) -> List[str]:
        return list(self.tracked)

    def read_worktree_file(self, path: str) -> Optional[bytes]:
        return self.worktree.get(path)

    def get_config(self, key: str) -> Optional[str]:
        return self.config.get(key)

    def set_config(self, key: str, value: str) -> None:
        self.config_writes.append((key, value))
        self.config[key] = value

    def checkout_from_head(self, path: str, config_overrides=None) -> None:
        self.checkouts.append((path, dict(config_overrides or {})))


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def repo() -> FakeRepository:
    return FakeRepository()
