#!/usr/bin/env python3
# -- coding: utf-8 --
#
# build_jar.py
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
classes.jar builder.

Compiles the Java sources of the binding with javac against the SDK's
android.jar and packs the resulting class files into a jar. Only javac is
required; the jar itself is written with zipfile.
"""

import os
import shutil

try:
    from aarbind.build_scripts.android_platform import boot_classpath
    from aarbind.build_scripts.build_utils import ArchiveWriter, walk_files
    from aarbind.utils.cmd.cmd_util import run_cmd
    from aarbind.utils.context.mode import ExecutionMode
except ImportError:
    from android_platform import boot_classpath
    from build_utils import ArchiveWriter, walk_files
    from utils.cmd.cmd_util import run_cmd
    from utils.context.mode import ExecutionMode

JAVAC_TARGET_VERSION = "1.7"

JAVAC_OUTPUT_DIR = "javac-output"

JAR_MANIFEST_NAME = "META-INF/MANIFEST.MF"

JAR_MANIFEST_HEADER = """Manifest-Version: 1.0
Created-By: 1.0 (aarbind)

"""


def collect_java_sources(src_dir):
    """List every .java file under src_dir, relative to src_dir."""
    return [
        rel_path.replace("/", os.sep)
        for _, rel_path in walk_files(src_dir)
        if rel_path.endswith(".java")
    ]


def javac_command(dst, boot_jar, src_files, classpath=None):
    args = [
        "javac",
        "-d", dst,
        "-source", JAVAC_TARGET_VERSION,
        "-target", JAVAC_TARGET_VERSION,
        "-bootclasspath", boot_jar,
    ]
    if classpath:
        args += ["-classpath", classpath]
    return args + list(src_files)


def build_jar(w, src_dir, tmpdir, mode=ExecutionMode.REAL, verbose=False, classpath=None):
    """
    Compile src_dir with javac and write classes.jar into w.

    Args:
        w: Writable binary stream receiving the jar
        src_dir: Root of the Java source tree
        tmpdir: Scratch directory; class files go to <tmpdir>/javac-output
        mode: ExecutionMode.PLAN prints the javac command and writes nothing
        verbose: Log each jar entry to stderr
        classpath: Extra javac classpath

    Raises:
        CommandError: If javac cannot start or fails
        ConfigurationError, PlatformNotFoundError: If no SDK platform is usable
        OSError: On any filesystem error
    """
    if mode.is_plan:
        src_files = ["*.java"]
    else:
        src_files = collect_java_sources(src_dir)

    dst = os.path.join(tmpdir, JAVAC_OUTPUT_DIR)
    if not mode.is_plan:
        # drop class files left by an earlier compile in the same work dir
        if os.path.isdir(dst):
            shutil.rmtree(dst)
        os.makedirs(dst, mode=0o700)

    boot_jar = boot_classpath()
    run_cmd(
        javac_command(dst, boot_jar, src_files, classpath),
        cwd=src_dir,
        mode=mode,
        verbose=verbose,
    )
    if mode.is_plan:
        return

    with ArchiveWriter(w, "jar", verbose) as jarw:
        jarw.writestr(JAR_MANIFEST_NAME, JAR_MANIFEST_HEADER)
        for path, rel_path in walk_files(dst):
            jarw.write_file(rel_path, path)
