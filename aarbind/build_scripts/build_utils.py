#!/usr/bin/env python3
# -- coding: utf-8 --
#
# build_utils.py
# aarbind
#
# Copyright 2024 aarbind Project Authors. All rights reserved.
# Use of this source code is governed by a MIT-style
# license that can be found at
#
# https://opensource.org/license/MIT
#
# The above copyright notice and this permission
# notice shall be included in all copies or
# substantial portions of the Software.

"""
Build utility functions shared by the Android packaging scripts.

This module provides:
- AARBIND.toml configuration loading
- Android SDK/NDK environment lookup (ANDROID_HOME, ndk-bundle)
- NDK host tag detection
- Archive writing with per-entry logging and duplicate-name checks
- Directory walking that fails on I/O errors
"""

import os
import platform
import shutil
import sys
import zipfile

if sys.version_info >= (3, 11, 0, "alpha", 7):
    import tomllib
else:
    # For Python < 3.11, try to import tomli as fallback
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None

try:
    from aarbind.utils.errors import ConfigurationError, DuplicateEntryError
except ImportError:
    from utils.errors import ConfigurationError, DuplicateEntryError

# Environment variable pointing to the Android SDK
ANDROID_HOME_ENV = "ANDROID_HOME"

# NDK location relative to ANDROID_HOME
NDK_BUNDLE_DIR = "ndk-bundle"

CONFIG_FILE_NAME = "AARBIND.toml"

# platform.machine() values mapped to NDK host architecture names
HOST_ARCH_MAP = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x86": "x86",
    "i386": "x86",
    "i686": "x86",
}

HOST_SYSTEMS = ("linux", "darwin", "windows")


def default_config():
    return {
        "PROJECT_NAME": "",
        "ANDROID_DIR": "android",
        "ANDROID_ARCHS": ["arm", "arm64", "x86", "x86_64"],
        "OUTPUT": "",
        "CLASSPATH": "",
        "PACKAGES": [],
    }


def load_aarbind_config(project_dir=None):
    """
    Load build defaults from AARBIND.toml.

    Args:
        project_dir: Directory holding AARBIND.toml (default: current directory)

    Returns:
        dict: Configuration values, defaults for anything the file omits

    Raises:
        ConfigurationError: If the file exists but cannot be parsed
    """
    project_dir = project_dir or os.getcwd()
    config_file = os.path.join(project_dir, CONFIG_FILE_NAME)
    config = default_config()
    if not os.path.isfile(config_file):
        return config

    if tomllib is None:
        raise ConfigurationError(
            f"cannot read {config_file}: install 'tomli' for Python < 3.11"
        )
    try:
        with open(config_file, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"failed to parse {config_file}: {e}") from e

    project = data.get("project", {})
    android = data.get("android", {})
    if "name" in project:
        config["PROJECT_NAME"] = str(project["name"])
    if "dir" in android:
        config["ANDROID_DIR"] = str(android["dir"])
    if "archs" in android:
        archs = android["archs"]
        if not isinstance(archs, list):
            raise ConfigurationError(f"{config_file}: android.archs must be a list")
        config["ANDROID_ARCHS"] = [str(a) for a in archs]
    if "output" in android:
        config["OUTPUT"] = str(android["output"])
    if "classpath" in android:
        config["CLASSPATH"] = str(android["classpath"])
    if "packages" in android:
        packages = android["packages"]
        if not isinstance(packages, list):
            raise ConfigurationError(f"{config_file}: android.packages must be a list")
        config["PACKAGES"] = [str(p) for p in packages]
    return config


def get_android_home():
    """
    Get the Android SDK root from ANDROID_HOME.

    Raises:
        ConfigurationError: If ANDROID_HOME is unset or empty
    """
    sdk_home = os.environ.get(ANDROID_HOME_ENV, "")
    if not sdk_home:
        raise ConfigurationError(f"${ANDROID_HOME_ENV} environment var is not set")
    return sdk_home


def get_ndk_root():
    """
    Get the absolute path of the NDK bundled in the Android SDK.

    Returns:
        str: $ANDROID_HOME/ndk-bundle

    Raises:
        ConfigurationError: If ANDROID_HOME is unset or the NDK directory is missing
    """
    sdk_home = os.environ.get(ANDROID_HOME_ENV, "")
    if not sdk_home:
        raise ConfigurationError(
            f"${ANDROID_HOME_ENV} does not point to an Android NDK. ${ANDROID_HOME_ENV} is unset."
        )
    path = os.path.abspath(os.path.join(sdk_home, NDK_BUNDLE_DIR))
    if not os.path.isdir(path):
        raise ConfigurationError(
            f"${ANDROID_HOME_ENV} does not point to an Android NDK. Missing directory at {path}."
        )
    return path


def get_ndk_host_tag(system=None, machine=None):
    """
    Get the NDK host platform tag for prebuilt toolchain paths.

    Args:
        system: Host OS name (default: platform.system())
        machine: Host CPU name (default: platform.machine())

    Returns:
        str: "windows" for 32-bit Windows, otherwise "<os>-<arch>"
             (e.g., "linux-x86_64", "darwin-x86_64")

    Raises:
        ConfigurationError: If the host OS or CPU has no prebuilt NDK toolchain
    """
    system_str = (system or platform.system()).lower()
    machine_str = (machine or platform.machine()).lower()
    if system_str not in HOST_SYSTEMS:
        raise ConfigurationError(f"Unsupported host OS: {system_str}")
    arch = HOST_ARCH_MAP.get(machine_str)
    if arch is None:
        raise ConfigurationError(f"Unsupported host architecture: {machine_str}")
    if system_str == "windows" and arch == "x86":
        return "windows"
    return f"{system_str}-{arch}"


def walk_files(root, _prefix=""):
    """
    Yield (path, relative_path) for every regular file under root.

    Entries are visited in lexical order, descending into a directory at its
    position among its siblings. Relative paths use forward slashes.
    Symlinked directories are not followed. Any I/O error is raised.
    """
    with os.scandir(root) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        rel_path = _prefix + entry.name
        if entry.is_dir(follow_symlinks=False):
            yield from walk_files(entry.path, rel_path + "/")
        elif entry.is_file():
            yield entry.path, rel_path


class DiscardWriter:
    """Write-only sink that drops everything written to it."""

    def write(self, data):
        return len(data)

    def flush(self):
        pass


class ArchiveWriter:
    """
    Zip writer that emits entries in call order and rejects duplicate names.

    Each created entry is logged to stderr as "<tag>: <name>" in verbose mode.
    """

    def __init__(self, fileobj, tag, verbose=False):
        self._zip = zipfile.ZipFile(fileobj, "w", zipfile.ZIP_DEFLATED)
        self._tag = tag
        self._verbose = verbose
        self._names = []
        self._seen = set()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    @property
    def names(self):
        return list(self._names)

    def _register(self, name):
        if name in self._seen:
            raise DuplicateEntryError(f"{self._tag}: duplicate entry {name}")
        self._seen.add(name)
        self._names.append(name)
        if self._verbose:
            print(f"{self._tag}: {name}", file=sys.stderr)

    def create(self, name):
        """Open a new entry for writing; use it as a context manager."""
        self._register(name)
        return self._zip.open(name, "w")

    def writestr(self, name, data):
        self._register(name)
        self._zip.writestr(name, data)

    def write_file(self, name, path):
        """Copy the bytes of path into a new entry."""
        with open(path, "rb") as src:
            with self.create(name) as dst:
                shutil.copyfileobj(src, dst)

    def close(self):
        self._zip.close()
