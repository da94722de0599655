import uuid
from pathlib import Path

from app.logging.logger import Log


def staged_file_path(upload_root: Path, original_name: str) -> Path:
    """Build a collision-free path: {upload_root}/{uuid4}{original suffix}"""
    suffix = Path(original_name).suffix.lower()
    return upload_root / f"{uuid.uuid4().hex}{suffix}"


class StagingArea:
    """Per-request temporary storage for uploaded images."""

    def __init__(self, upload_root: Path) -> None:
        self._upload_root = upload_root

    @property
    def upload_root(self) -> Path:
        return self._upload_root

    def stage(self, data: bytes, original_name: str) -> Path:
        """Write upload bytes to a fresh file and return its path."""
        self._upload_root.mkdir(parents=True, exist_ok=True)
        path = staged_file_path(self._upload_root, original_name)
        path.write_bytes(data)
        Log.debug(f"Staged {len(data)} bytes", path=path)
        return path

    def load(self, path: Path) -> bytes:
        """Read staged bytes.

        Raises:
            FileNotFoundError: if the upload was never staged or already released.
        """
        if not path.exists():
            raise FileNotFoundError(f"Staged upload not found: {path}")
        return path.read_bytes()

    def release(self, path: Path) -> bool:
        """Delete a staged upload. Returns False if nothing was on disk."""
        try:
            path.unlink()
        except FileNotFoundError:
            Log.warning("Staged upload already gone", path=path)
            return False
        Log.debug("Released staged upload", path=path)
        return True
