import os
from pathlib import Path
from typing import Optional

CONFIG_DIR = Path(os.environ.get("XDG_CONFIG_HOME", "~/.config")).expanduser() / "sockets-live"

def config_path(p: Optional[str | os.PathLike]) -> Optional[Path]:
    """Locate a config file.
    Sequence:
      1) Absolute: expanduser+resolve
      2) Relative to CWD, if it exists there
      3) Relative to the user config folder (CONFIG_DIR)
    """
    if not p:
        return None
    pp = Path(p).expanduser()
    if pp.is_absolute():
        return pp.resolve()
    p1 = Path.cwd() / pp
    if p1.exists():
        return p1.resolve()
    return (CONFIG_DIR / pp).resolve()

def log_path(p: str | os.PathLike) -> Path:
    """Absolute log file path; the parent folder is created if needed."""
    pp = Path(p).expanduser()
    if not pp.is_absolute():
        pp = Path.cwd() / pp
    pp.parent.mkdir(parents=True, exist_ok=True)
    return pp.resolve()
