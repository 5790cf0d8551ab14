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

"""Build scripts for Android library packaging."""

__all__ = [
    "android_platform",
    "android_toolchain",
    "build_aar",
    "build_jar",
    "build_utils",
]
