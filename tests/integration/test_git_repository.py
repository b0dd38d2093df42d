# tests/integration/test_git_repository.py: GitRepository against a real git binary.

import io
import os
import shlex
import shutil
import subprocess
import sys
from pathlib import Path

import pytest
from rich.console import Console

from gitsops.gitwrap import GitRepository
from gitsops.repoinit import RepoInitializer

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

posix_only = pytest.mark.skipif(os.name == "nt", reason="filter commands are POSIX shell commands")

GIT_IDENTITY = [
    "-c", "user.name=git-sops tests",
    "-c", "user.email=tests@example.invalid",
    "-c", "commit.gpgsign=false",
]

SRC_DIR = Path(__file__).resolve().parents[2] / "src"

# Wraps each line in ENC[...] on --encrypt and unwraps it otherwise.
FAKE_SOPS = r"""#!/bin/sh
for arg in "$@"; do
    if [ "$arg" = "--encrypt" ]; then
        exec sed -e 's/^\(.*\)$/ENC[\1]/'
    fi
done
exec sed -e 's/^ENC\[\(.*\)\]$/\1/'
"""


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(["git", *GIT_IDENTITY, *args], cwd=cwd, check=True, capture_output=True, text=True)
    return result.stdout


@pytest.fixture
def work_tree(tmp_path: Path) -> Path:
    git(tmp_path, "init", "-q")
    (tmp_path / "secrets").mkdir()
    (tmp_path / "secrets" / ".env").write_bytes(b"TOKEN=ENC[AES256_GCM,data:abc]\n")
    (tmp_path / "README.md").write_text("hello\n")
    git(tmp_path, "add", ".")
    git(tmp_path, "commit", "-q", "-m", "initial")
    return tmp_path


@pytest.fixture
def fake_sops(tmp_path: Path, monkeypatch) -> Path:
    """Puts a line-wrapping stand-in for sops on PATH, plus a sops config."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    sops = bin_dir / "sops"
    sops.write_text(FAKE_SOPS)
    sops.chmod(0o755)

    config = tmp_path / "sops.yaml"
    config.write_text("creation_rules: []\n")

    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    monkeypatch.setenv("SOPS_CONFIG", str(config))
    pythonpath = os.environ.get("PYTHONPATH")
    monkeypatch.setenv("PYTHONPATH", f"{SRC_DIR}{os.pathsep}{pythonpath}" if pythonpath else str(SRC_DIR))
    return sops


@pytest.fixture
def encrypted_repo(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    root.mkdir()
    git(root, "init", "-q")
    (root / ".gitattributes").write_text("*.env filter=sops\n")
    (root / ".env").write_bytes(b"ENC[SECRET=1]\n")
    git(root, "add", ".")
    git(root, "commit", "-q", "-m", "initial")
    return root


def test_is_inside_work_tree(work_tree: Path):
    assert GitRepository(work_tree).is_inside_work_tree() is True


def test_exists_at_and_read_blob(work_tree: Path):
    repo = GitRepository(work_tree)

    assert repo.exists_at("secrets/.env") is True
    assert repo.exists_at("secrets/new.yaml") is False
    assert repo.read_blob("secrets/.env") == b"TOKEN=ENC[AES256_GCM,data:abc]\n"


def test_exists_at_before_first_commit(tmp_path: Path):
    git(tmp_path, "init", "-q")
    assert GitRepository(tmp_path).exists_at("anything.env") is False


def test_list_tracked(work_tree: Path):
    assert sorted(GitRepository(work_tree).list_tracked()) == ["README.md", "secrets/.env"]


def test_config_round_trip(work_tree: Path):
    repo = GitRepository(work_tree)

    assert repo.get_config("filter.sops.clean") is None
    repo.set_config("filter.sops.clean", "git-sops clean %f")
    assert repo.get_config("filter.sops.clean") == "git-sops clean %f"


def test_checkout_from_head_restores_file(work_tree: Path):
    repo = GitRepository(work_tree)
    (work_tree / "README.md").write_text("local edit\n")

    repo.checkout_from_head("README.md", config_overrides={"filter.sops.clean": "cat"})

    assert (work_tree / "README.md").read_text() == "hello\n"


@posix_only
def test_checkout_from_head_smudges_unchanged_file(work_tree: Path):
    repo = GitRepository(work_tree)
    (work_tree / ".gitattributes").write_text("README.md filter=upper\n")

    repo.checkout_from_head(
        "README.md",
        config_overrides={"filter.upper.smudge": "tr a-z A-Z", "filter.upper.clean": "cat"},
    )

    assert (work_tree / "README.md").read_text() == "HELLO\n"


@posix_only
def test_init_bulk_decrypts_committed_file(encrypted_repo: Path, fake_sops: Path):
    initializer = RepoInitializer(
        GitRepository(encrypted_repo),
        program=f"{shlex.quote(sys.executable)} -m gitsops",
        confirm=lambda prompt: True,
        console=Console(file=io.StringIO()),
    )

    result = initializer.init()

    assert result.decrypted == [".env"]
    assert (encrypted_repo / ".env").read_bytes() == b"SECRET=1\n"
    assert git(encrypted_repo, "status", "--porcelain") == ""


@posix_only
def test_edited_file_is_stored_encrypted(encrypted_repo: Path, fake_sops: Path):
    RepoInitializer(
        GitRepository(encrypted_repo),
        program=f"{shlex.quote(sys.executable)} -m gitsops",
        confirm=lambda prompt: True,
        console=Console(file=io.StringIO()),
    ).init()

    (encrypted_repo / ".env").write_bytes(b"SECRET=2\n")
    git(encrypted_repo, "add", ".env")

    assert git(encrypted_repo, "show", ":.env") == "ENC[SECRET=2]\n"
