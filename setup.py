import sys
from pathlib import Path

from setuptools import setup

ROOT_DIR = Path(__file__).parent.resolve() / "app"
sys.path.insert(0, str(ROOT_DIR))

from __version__ import __version_string__  # noqa: E402

setup(
    name="PyCHIP8",
    version=__version_string__,
    description="CHIP-8 interpreter with a pygame frontend",
    python_requires=">=3.11",
    packages=["pychip8", "backend", "util"],
    py_modules=["logger", "resources", "main", "__version__"],
    package_dir={"": "app"},
    install_requires=[
        "numpy",
        "returns",
        "rich",
        "pygame-ce",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["pychip8=main:main"]},
    include_package_data=True,
    zip_safe=False,
)
