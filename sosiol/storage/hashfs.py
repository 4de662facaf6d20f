import hashlib
import re
from pathlib import Path

_NAME_RE = re.compile(r"^(?P<hex>[0-9a-f]{64})(?P<ext>\.[a-z0-9]{1,5})?$")


class HashFS:
    """Content-addressed file storage for uploaded media.

    Files are named ``<sha256><ext>`` and stored in a sharded directory
    structure:
        root/ab/cd/abcdef1234567890....png

    The first `depth` segments of `width` hex characters each become
    subdirectories, preventing any single directory from holding too many files.
    Uploading the same bytes twice yields the same name and a single copy.
    """

    def __init__(self, root_dir: str, depth: int = 2, width: int = 2):
        self.root = Path(root_dir)
        self.depth = depth
        self.width = width
        self.root.mkdir(parents=True, exist_ok=True)

    def put(self, content: bytes, extension: str = "") -> str:
        """Store content and return its file name (hash plus extension)."""
        name = f"{hashlib.sha256(content).hexdigest()}{extension.lower()}"
        path = self._safe_path(name)
        if path is None:
            raise ValueError(f"Invalid extension: {extension!r}")
        path.parent.mkdir(parents=True, exist_ok=True)
        if not path.exists():
            path.write_bytes(content)
        return name

    def get(self, name: str) -> bytes | None:
        """Retrieve content by file name. Returns None if not found."""
        path = self._safe_path(name)
        if path is not None and path.is_file():
            return path.read_bytes()
        return None

    def _name_to_path(self, hex_hash: str, name: str) -> Path:
        parts = [
            hex_hash[i * self.width : (i + 1) * self.width]
            for i in range(self.depth)
        ]
        return self.root / Path(*parts) / name

    def _safe_path(self, name: str) -> Path | None:
        """Validate a file name and resolve it under the store root."""
        match = _NAME_RE.match(name.lower())
        if match is None:
            return None
        candidate = self._name_to_path(match.group("hex"), name.lower())
        try:
            root_resolved = self.root.resolve()
            resolved = candidate.resolve()
        except OSError:
            return None
        if root_resolved in resolved.parents:
            return resolved
        return None
