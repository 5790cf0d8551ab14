#!/usr/bin/env python3
# -- coding: utf-8 --
#
# build_aar.py
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
Android library (AAR) assembly.

AAR is the binary distribution format of an Android Library Project: a ZIP
archive with the extension .aar. These entries sit at the root of the archive:

    AndroidManifest.xml (mandatory)
    classes.jar (mandatory)
    assets/ (optional)
    jni/<abi>/libaarbind.so
    R.txt (mandatory)
    res/ (mandatory)
    libs/*.jar (optional, not relevant)
    proguard.txt (optional)
    lint.jar (optional, not relevant)
    aidl (optional, not relevant)

Entries are written in the order above, except proguard.txt which follows
the manifest. javac is required to build classes.jar.
"""

import os
import stat
from dataclasses import dataclass

try:
    from aarbind.build_scripts.android_platform import MIN_ANDROID_API
    from aarbind.build_scripts.android_toolchain import get_android_abi
    from aarbind.build_scripts.build_jar import build_jar
    from aarbind.build_scripts.build_utils import ArchiveWriter, DiscardWriter, walk_files
    from aarbind.utils.context.mode import ExecutionMode
    from aarbind.utils.errors import AssetConflictError, ConfigurationError
except ImportError:
    from android_platform import MIN_ANDROID_API
    from android_toolchain import get_android_abi
    from build_jar import build_jar
    from build_utils import ArchiveWriter, DiscardWriter, walk_files
    from utils.context.mode import ExecutionMode
    from utils.errors import AssetConflictError, ConfigurationError

JNI_LIB_NAME = "libaarbind.so"

MANIFEST_PACKAGE_FMT = "aarbind.{name}.jni"

MANIFEST_FMT = (
    '<manifest xmlns:android="http://schemas.android.com/apk/res/android" package="{package}">\n'
    '<uses-sdk android:minSdkVersion="{min_sdk}"/></manifest>'
)

PROGUARD_RULES = "-keep class aarbind.** { *; }\n"

# Layout of the android project directory
JAVA_SRC_DIR = os.path.join("src", "main", "java")
JNI_LIBS_DIR = os.path.join("src", "main", "jniLibs")


@dataclass(frozen=True)
class BindPackage:
    """A package contributing to the AAR.

    name is used for the manifest package id (first package only),
    import_path identifies the package in conflict errors, and dir is
    searched for an assets/ subdirectory.
    """

    name: str
    import_path: str
    dir: str


def package_from_dir(path):
    """Describe a package directory, naming it after its last path element."""
    path = os.path.normpath(path)
    return BindPackage(name=os.path.basename(os.path.abspath(path)), import_path=path, dir=path)


def manifest_package(name):
    return MANIFEST_PACKAGE_FMT.format(name=name)


def default_jni_lib_paths(android_dir, archs):
    """Map each arch to <android_dir>/src/main/jniLibs/<abi>/libaarbind.so."""
    return {
        arch: os.path.join(android_dir, JNI_LIBS_DIR, get_android_abi(arch), JNI_LIB_NAME)
        for arch in archs
    }


def _assets_dir(pkg):
    assets_dir = os.path.join(pkg.dir, "assets")
    try:
        st = os.stat(assets_dir)
    except FileNotFoundError:
        return None
    if not stat.S_ISDIR(st.st_mode):
        return None
    return assets_dir


def write_assets(aarw, packages):
    """
    Copy every package's assets/ tree into aarw under assets/.

    Returns:
        dict: Asset entry name to the import path of the package that added it

    Raises:
        AssetConflictError: If two packages contribute the same asset path
    """
    files = {}
    for pkg in packages:
        assets_dir = _assets_dir(pkg)
        if assets_dir is None:
            continue
        for path, rel_path in walk_files(assets_dir):
            name = "assets/" + rel_path
            orig = files.get(name)
            if orig is not None:
                raise AssetConflictError(name, pkg.import_path, orig)
            files[name] = pkg.import_path
            aarw.write_file(name, path)
    return files


def build_aar(
    aar_path,
    android_dir,
    packages,
    archs,
    tmpdir,
    mode=ExecutionMode.REAL,
    verbose=False,
    jni_libs=None,
    classpath=None,
    r_txt=None,
):
    """
    Assemble an AAR from the compiled binding.

    Args:
        aar_path: Output file; may be None in plan mode
        android_dir: Android project dir holding src/main/java and src/main/jniLibs
        packages: BindPackage list; the first one names the manifest package
        archs: Target architectures (arm, arm64, x86, x86_64)
        tmpdir: Scratch directory for javac output
        mode: ExecutionMode.PLAN writes nothing and leaves native entries empty
        verbose: Log each entry to stderr
        jni_libs: Optional arch -> shared library path mapping
            (default: android_dir/src/main/jniLibs/<abi>/libaarbind.so)
        classpath: Extra javac classpath
        r_txt: Optional R.txt content

    Raises:
        ConfigurationError: For an empty package list or an unknown arch
        AssetConflictError: If two packages ship the same asset
        CommandError: If javac fails
        OSError: On any filesystem error; the partial output is left in place
    """
    if not packages:
        raise ConfigurationError("build_aar(): no packages to bind")
    for arch in archs:
        if not get_android_abi(arch):
            raise ConfigurationError(f"build_aar(): Unknown arch {arch}")
    if not mode.is_plan and not aar_path:
        raise ConfigurationError("build_aar(): no output path")
    if jni_libs is None:
        jni_libs = default_jni_lib_paths(android_dir, archs)

    if mode.is_plan:
        _write_aar(DiscardWriter(), android_dir, packages, archs, tmpdir, mode,
                   verbose, jni_libs, classpath, r_txt)
        return
    with open(aar_path, "wb") as f:
        _write_aar(f, android_dir, packages, archs, tmpdir, mode,
                   verbose, jni_libs, classpath, r_txt)


def _write_aar(out, android_dir, packages, archs, tmpdir, mode, verbose, jni_libs, classpath, r_txt):
    with ArchiveWriter(out, "aar", verbose) as aarw:
        aarw.writestr(
            "AndroidManifest.xml",
            MANIFEST_FMT.format(package=manifest_package(packages[0].name), min_sdk=MIN_ANDROID_API),
        )
        aarw.writestr("proguard.txt", PROGUARD_RULES)

        with aarw.create("classes.jar") as w:
            src = os.path.join(android_dir, JAVA_SRC_DIR)
            build_jar(w, src, tmpdir, mode=mode, verbose=verbose, classpath=classpath)

        write_assets(aarw, packages)

        for arch in archs:
            name = f"jni/{get_android_abi(arch)}/{JNI_LIB_NAME}"
            if mode.is_plan:
                aarw.writestr(name, b"")
                continue
            lib_path = jni_libs.get(arch)
            if lib_path is None:
                raise ConfigurationError(f"build_aar(): no native library given for arch {arch}")
            aarw.write_file(name, lib_path)

        aarw.writestr("R.txt", r_txt or b"")
        aarw.writestr("res/", b"")
