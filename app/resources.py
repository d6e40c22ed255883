from pathlib import Path
from typing import Final

root_path: Final[Path] = Path(".").resolve()
assets_path: Final[Path] = root_path / "assets"
config_file: Final[Path] = root_path / "config.toml"
roms_path: Final[Path] = assets_path / "roms"
