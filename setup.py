"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/espbind/espbind"
KEYWORDS = "esp-idf esp32 homekit platformio bindgen cargo build-script embedded"
HERE = os.path.dirname(os.path.abspath(__file__))

VERSION = "0.1.0"

INSTALL_REQUIRES = [
    "requests>=2.31.0",
    "tqdm>=4.66.0",
    "psutil>=5.9.0",
]

EXTRAS_REQUIRE = {
    "test": [
        "pytest>=7.4.0",
    ],
}


if __name__ == "__main__":
    setup(
        name="espbind",
        version=VERSION,
        description="Builds the ESP HomeKit SDK with PlatformIO and generates Rust bindings",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.8",
        package_dir={"": "src"},
        packages=find_packages(where="src", include=["espbind", "espbind.*"]),
        install_requires=INSTALL_REQUIRES,
        extras_require=EXTRAS_REQUIRE,
        entry_points={
            "console_scripts": [
                "espbind=espbind.cli:main",
            ],
        },
        include_package_data=True)
