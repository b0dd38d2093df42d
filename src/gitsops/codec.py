# src/gitsops/codec.py: File type classification.
# Maps a tracked path to the content codec sops should use for it. Structured
# codecs let sops encrypt values while keeping keys readable; everything else
# is treated as an opaque binary blob.

from enum import Enum
from fnmatch import fnmatchcase


class CodecTag(str, Enum):
    """Content codec hint, spelled the way sops expects for --input-type."""
    JSON = "json"
    YAML = "yaml"
    DOTENV = "dotenv"
    INI = "ini"
    BINARY = "binary"

    def __str__(self) -> str:
        return self.value


# Checked in order, first match wins.
_PATTERNS = [
    ("*.json*", CodecTag.JSON),
    ("*.yaml*", CodecTag.YAML),
    ("*.yml*", CodecTag.YAML),
    ("*.env*", CodecTag.DOTENV),
    ("*.dotenv*", CodecTag.DOTENV),
    ("*.ini*", CodecTag.INI),
]


def classify(path: str) -> CodecTag:
    """
    Returns the codec tag for a path.

    Matching is case-sensitive and looks anywhere in the path, so
    'config.yml.bak' is yaml and 'secrets.env.local' is dotenv.
    """
    for pattern, tag in _PATTERNS:
        if fnmatchcase(path, pattern):
            return tag
    return CodecTag.BINARY
