import os
from pathlib import Path
from typing import Optional

from ..core.config import settings


def check_storage_root(root: Optional[str] = None) -> tuple[bool, str]:
    """Checks that STORAGE_ROOT is a directory the worker can write uploads to."""
    root_path = Path(root or settings.STORAGE_ROOT)
    if not root_path.is_dir():
        return False, f"Storage root '{root_path}' not found or is not a directory."
    if not os.access(root_path, os.W_OK):
        return False, f"Storage root '{root_path}' is not writable."
    return True, f"Storage root '{root_path}' is accessible."
