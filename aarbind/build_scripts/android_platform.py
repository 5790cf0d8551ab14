#!/usr/bin/env python3
# -- coding: utf-8 --
#
# android_platform.py
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

"""Android SDK platform lookup under ANDROID_HOME/platforms."""

import os
import re

try:
    from aarbind.build_scripts.build_utils import get_android_home
    from aarbind.utils.errors import PlatformNotFoundError
except ImportError:
    from build_utils import get_android_home
    from utils.errors import PlatformNotFoundError

# Minimum Android API level of produced libraries
MIN_ANDROID_API = 15

ANDROID_JAR = "android.jar"

PLATFORM_DIR_PATTERN = re.compile(r"android-([0-9]+)")


def locate_platform(sdk_root=None, min_api=MIN_ANDROID_API):
    """
    Find the newest SDK platform directory usable as a compile target.

    A directory qualifies when it is named android-<N> with N >= min_api and
    contains android.jar. If several qualify, the highest N wins.

    Args:
        sdk_root: Android SDK root (default: $ANDROID_HOME)
        min_api: Minimum accepted API level

    Returns:
        str: Path to the platform directory

    Raises:
        ConfigurationError: If sdk_root is not given and ANDROID_HOME is unset
        PlatformNotFoundError: If the platforms directory cannot be listed or
            no platform qualifies
    """
    if sdk_root is None:
        sdk_root = get_android_home()
    platforms_dir = os.path.join(sdk_root, "platforms")
    try:
        names = os.listdir(platforms_dir)
    except OSError as e:
        raise PlatformNotFoundError(
            f"failed to find android SDK platform (min API level: {min_api}): {e}"
        ) from e

    api_path = None
    api_ver = -1
    for name in names:
        m = PLATFORM_DIR_PATTERN.fullmatch(name)
        if not m:
            continue
        n = int(m.group(1))
        if n < min_api:
            continue
        path = os.path.join(platforms_dir, name)
        if not os.path.isdir(path):
            continue
        if os.path.isfile(os.path.join(path, ANDROID_JAR)) and n > api_ver:
            api_path = path
            api_ver = n
    if api_path is None:
        raise PlatformNotFoundError(
            f"failed to find android SDK platform (min API level: {min_api}) in {platforms_dir}"
        )
    return api_path


def boot_classpath(sdk_root=None):
    """Return the android.jar javac compiles against."""
    return os.path.join(locate_platform(sdk_root), ANDROID_JAR)
