#!/usr/bin/env python3
# -- coding: utf-8 --
#
# android_toolchain.py
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
Android NDK clang toolchain resolution.

Emulates the flags of the clang wrapper scripts generated by the NDK's
make_standalone_toolchain.py, without generating a standalone toolchain.
Supported architectures: arm, arm64, x86, x86_64.
"""

import os
import types
from dataclasses import dataclass

try:
    from aarbind.build_scripts.build_utils import get_ndk_host_tag, get_ndk_root
    from aarbind.utils.errors import ConfigurationError
except ImportError:
    from build_utils import get_ndk_host_tag, get_ndk_root
    from utils.errors import ConfigurationError


@dataclass(frozen=True)
class ToolchainDescriptor:
    """Static NDK metadata for one target architecture."""

    arch: str
    platform: str
    gcc: str
    tool_prefix: str
    clang_target: str


ANDROID_TOOLCHAINS = types.MappingProxyType({
    "arm": ToolchainDescriptor(
        arch="arm",
        platform="android-15",
        gcc="arm-linux-androideabi-4.9",
        tool_prefix="arm-linux-androideabi",
        clang_target="armv7a-none-linux-androideabi",
    ),
    "arm64": ToolchainDescriptor(
        arch="arm64",
        platform="android-21",
        gcc="aarch64-linux-android-4.9",
        tool_prefix="aarch64-linux-android",
        clang_target="aarch64-none-linux-android",
    ),
    "x86": ToolchainDescriptor(
        arch="x86",
        platform="android-15",
        gcc="x86-4.9",
        tool_prefix="i686-linux-android",
        clang_target="i686-none-linux-android",
    ),
    "x86_64": ToolchainDescriptor(
        arch="x86_64",
        platform="android-21",
        gcc="x86_64-4.9",
        tool_prefix="x86_64-linux-android",
        clang_target="x86_64-none-linux-android",
    ),
})

ANDROID_ABIS = types.MappingProxyType({
    "arm": "armeabi-v7a",
    "arm64": "arm64-v8a",
    "x86": "x86",
    "x86_64": "x86_64",
})


def get_android_abi(arch):
    """
    Map a target architecture to its Android ABI directory name.

    Returns:
        str: "armeabi-v7a", "arm64-v8a", "x86" or "x86_64"; "" for anything else
    """
    return ANDROID_ABIS.get(arch, "")


def parse_archs(archs):
    """
    Normalize a comma-separated string or list of architectures.

    Blank items and repeats are dropped, order is kept.

    Raises:
        ConfigurationError: If an architecture is not supported or none is given
    """
    if isinstance(archs, str):
        archs = archs.split(",")
    result = []
    for arch in archs:
        arch = arch.strip()
        if not arch or arch in result:
            continue
        if arch not in ANDROID_TOOLCHAINS:
            raise ConfigurationError(
                f"unsupported arch {arch}, expected one of {', '.join(ANDROID_TOOLCHAINS)}"
            )
        result.append(arch)
    if not result:
        raise ConfigurationError("no target architecture given")
    return result


@dataclass(frozen=True)
class ResolvedToolchain:
    """A toolchain descriptor bound to an NDK installation and host."""

    descriptor: ToolchainDescriptor
    ndk_root: str
    host_tag: str

    @property
    def arch(self):
        return self.descriptor.arch

    def gcc_toolchain_path(self):
        return os.path.join(
            self.ndk_root, "toolchains", self.descriptor.gcc, "prebuilt", self.host_tag
        )

    def _llvm_bin(self, tool):
        return os.path.join(
            self.ndk_root, "toolchains", "llvm", "prebuilt", self.host_tag, "bin", tool
        )

    def clang_path(self):
        return self._llvm_bin("clang")

    def clangpp_path(self):
        return self._llvm_bin("clang++")

    def sysroot(self):
        return os.path.join(
            self.ndk_root, "platforms", self.descriptor.platform, "arch-" + self.descriptor.arch
        )

    def flags(self):
        return (
            f"-target {self.descriptor.clang_target} "
            f"--sysroot {self.sysroot()} "
            f"-gcc-toolchain {self.gcc_toolchain_path()}"
        )

    def ldflags(self):
        return f"{self.flags()} -L{self.sysroot()}/usr/lib"


def resolve_toolchain(arch):
    """
    Resolve the NDK clang toolchain for a target architecture.

    Args:
        arch: Target architecture (arm, arm64, x86, x86_64)

    Returns:
        ResolvedToolchain

    Raises:
        ConfigurationError: If arch is unknown, ANDROID_HOME does not point to
            an NDK, or the host has no prebuilt toolchain
    """
    descriptor = ANDROID_TOOLCHAINS.get(arch)
    if descriptor is None:
        raise ConfigurationError(f"resolve_toolchain(): Unknown arch {arch}")
    ndk_root = get_ndk_root()
    host_tag = get_ndk_host_tag()
    return ResolvedToolchain(descriptor=descriptor, ndk_root=ndk_root, host_tag=host_tag)


def android_env(arch):
    """
    Build the cross-compilation environment for a target architecture.

    Returns:
        dict: CC, CXX, CFLAGS, CPPFLAGS, CXXFLAGS, LDFLAGS and ANDROID_ABI,
              ready to be layered over os.environ for a native build
    """
    tc = resolve_toolchain(arch)
    flags = tc.flags()
    return {
        "ANDROID_ABI": get_android_abi(arch),
        "CC": tc.clang_path(),
        "CXX": tc.clangpp_path(),
        "CFLAGS": flags,
        "CPPFLAGS": flags,
        "CXXFLAGS": flags,
        "LDFLAGS": tc.ldflags(),
    }
