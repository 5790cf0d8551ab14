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

"""Exceptions raised by aarbind build steps."""


class AarBindError(RuntimeError):
    """Base class of every error raised by aarbind."""


class ConfigurationError(AarBindError):
    """Raised for a missing environment variable, SDK/NDK directory, or an
    unsupported host or target architecture."""


class PlatformNotFoundError(AarBindError):
    """Raised when no SDK platform satisfies the minimum API level."""


class AssetConflictError(AarBindError):
    """Raised when two packages contribute the same asset path."""

    def __init__(self, name, package, orig_package):
        super().__init__(
            f"package {package} asset name conflict: {name} already added from package {orig_package}"
        )
        self.name = name
        self.package = package
        self.orig_package = orig_package


class DuplicateEntryError(AarBindError):
    """Raised when the same entry name is written twice to one archive."""


class CommandError(AarBindError):
    """Raised when an external command cannot start or exits non-zero."""

    def __init__(self, command, returncode=None, output=""):
        cmd_str = " ".join(command)
        if returncode is None:
            msg = f"failed to run [{cmd_str}]: {output}"
        else:
            msg = f"[{cmd_str}] exited with code {returncode}"
            if output:
                msg = f"{msg}\n{output}"
        super().__init__(msg)
        self.command = list(command)
        self.returncode = returncode
        self.output = output


__all__ = [
    "AarBindError",
    "AssetConflictError",
    "CommandError",
    "ConfigurationError",
    "DuplicateEntryError",
    "PlatformNotFoundError",
]
