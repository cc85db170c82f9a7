"""
Filesystem-backed vault storage.

Paths handed in and out are vault-relative and '/'-separated, the way the
note-taking app addresses files. Content is read and written verbatim
(UTF-8, no newline translation) so re-rendered notes compare byte for byte.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import List, Tuple

import yaml

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"


@dataclass(frozen=True)
class VaultFile:
    path: str
    basename: str # file name without extension


class VaultStore:
    def __init__(self, root='.'):
        self.root = Path(root)

    def _full_path(self, path) -> Path:
        return self.root.joinpath(*PurePosixPath(path).parts)

    def list_files(self, path_prefix='') -> List[VaultFile]:
        """All Markdown files in the vault whose relative path starts with path_prefix."""
        # Only walk the deepest folder the prefix fully names
        start = self._full_path(path_prefix.rpartition('/')[0])
        if not start.is_dir():
            return []
        files = []
        for full_path in start.rglob(f"*{MARKDOWN_SUFFIX}"):
            if not full_path.is_file():
                continue
            rel_path = full_path.relative_to(self.root).as_posix()
            if rel_path.startswith(path_prefix):
                files.append(VaultFile(path=rel_path, basename=full_path.stem))
        # rglob order is filesystem dependent
        files.sort(key=lambda f: f.path)
        return files

    def exists(self, path) -> bool:
        return self._full_path(path).exists()

    def read_file(self, path) -> str:
        with open(self._full_path(path), 'r', encoding='utf-8', newline='') as f:
            return f.read()

    def write_file(self, path, content):
        """Creates or overwrites path, creating parent folders as needed."""
        full_path = self._full_path(path)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        with open(full_path, 'w', encoding='utf-8', newline='') as f:
            f.write(content)

    def create_folder(self, path):
        full_path = self._full_path(path)
        try:
            os.makedirs(full_path, exist_ok=True)
        except FileExistsError:
            # A file already sits where the folder should be
            logger.warning(f"Cannot create folder {path}: a file with that name exists.")
            raise


# --- Frontmatter ---
def split_frontmatter(text) -> Tuple[str, str]:
    """Returns (yaml_text, body). yaml_text is '' when there is no frontmatter block."""
    if text.startswith('---\n'):
        end_idx = text.find('\n---\n', 3)
        if end_idx != -1:
            return text[4:end_idx], text[end_idx + 5:]
        if text.endswith('\n---'):
            return text[4:-4], ''
    return '', text


def parse_frontmatter(text) -> dict:
    """Parses the YAML frontmatter of a note. Returns {} if missing or not a mapping."""
    yaml_text, _ = split_frontmatter(text)
    if not yaml_text:
        return {}
    metadata = yaml.safe_load(yaml_text)
    return metadata if isinstance(metadata, dict) else {}


def parse_header_lines(text) -> dict:
    """
    Reads top-level `key: value` lines of the frontmatter block as strings.

    Note headers are written line by line with unquoted values, so a title
    such as `"Quoted" bug` or `@mention` is not valid YAML. This reader
    accepts any such header. The first occurrence of a key wins.
    """
    yaml_text, _ = split_frontmatter(text)
    fields = {}
    for line in yaml_text.splitlines():
        if not line or line[0].isspace():
            continue
        key, sep, value = line.partition(':')
        if not sep or (value and not value.startswith(' ')):
            continue
        fields.setdefault(key.strip(), value.strip())
    return fields
