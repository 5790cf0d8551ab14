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

import os
import sys
import argparse
import shutil

# setup path
# >>>>>>>>>>>>>>
SCRIPT_PATH = os.path.split(os.path.realpath(__file__))[0]
PROJECT_ROOT_PATH = os.path.dirname(SCRIPT_PATH)
sys.path.append(SCRIPT_PATH)
sys.path.append(PROJECT_ROOT_PATH)
PACKAGE_NAME = os.path.basename(SCRIPT_PATH)
# <<<<<<<<<<<<<
# import this project modules
try:
    from aarbind.utils.context.namespace import CliNameSpace
    from aarbind.utils.context.context import CliContext
    from aarbind.utils.context.command import CliCommand
    from aarbind.utils.cmd.cmd_util import exec_command
    from aarbind.utils.errors import AarBindError
    from aarbind.build_scripts.android_platform import locate_platform, MIN_ANDROID_API
    from aarbind.build_scripts.android_toolchain import ANDROID_TOOLCHAINS, resolve_toolchain
    from aarbind.build_scripts.build_utils import get_android_home, get_ndk_host_tag, get_ndk_root
except ImportError:
    from utils.context.namespace import CliNameSpace
    from utils.context.context import CliContext
    from utils.context.command import CliCommand
    from utils.cmd.cmd_util import exec_command
    from utils.errors import AarBindError
    from build_scripts.android_platform import locate_platform, MIN_ANDROID_API
    from build_scripts.android_toolchain import ANDROID_TOOLCHAINS, resolve_toolchain
    from build_scripts.build_utils import get_android_home, get_ndk_host_tag, get_ndk_root


class Check(CliCommand):
    def description(self) -> str:
        return """
        This is a subcommand to check the Android build environment.

        Checks ANDROID_HOME, the NDK bundle, the host toolchain tag, the
        clang toolchain of every architecture, the SDK platform used as
        boot classpath, and javac.

        Examples:
            aarbind check
            aarbind check --verbose
        """

    def cli(self) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="aarbind check",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        parser.add_argument(
            "--verbose",
            action="store_true",
            help="Show detailed information",
        )
        module_name = os.path.splitext(os.path.basename(__file__))[0]
        input_argv = sys.argv[2:] if sys.argv[1:2] == [module_name] else sys.argv[1:]
        args, unknown = parser.parse_known_args(input_argv, namespace=CliNameSpace())
        return args

    def exec(self, context: CliContext, args: CliNameSpace):
        print("🔍 Checking android build environment...")
        checker = EnvironmentChecker(verbose=args.verbose)
        checker.check_all()
        checker.print_summary()
        if not checker.is_ready():
            sys.exit(1)


class EnvironmentChecker:
    def __init__(self, verbose=False):
        self.verbose = verbose
        self.results = {}
        self.errors = []

    def print_ok(self, msg):
        """Print success message"""
        print(f"  ✅ {msg}")

    def print_error(self, msg):
        """Print error message"""
        print(f"  ❌ {msg}")
        self.errors.append(msg)

    def print_info(self, msg):
        """Print info message"""
        print(f"  ℹ️  {msg}")

    def print_section(self, title):
        """Print section header"""
        print(f"\n{'='*60}")
        print(f"  {title}")
        print(f"{'='*60}")

    def _check(self, key, label, func, fmt=str):
        try:
            value = func()
        except AarBindError as e:
            self.print_error(f"{label}: {e}")
            self.results[key] = False
            return None
        self.print_ok(f"{label}: {fmt(value)}")
        self.results[key] = True
        return value

    def check_sdk(self):
        self.print_section("Android SDK")
        if self._check("android_home", "ANDROID_HOME", get_android_home) is None:
            self.print_info("Set ANDROID_HOME to your Android SDK path")
        self._check(
            "platform",
            f"SDK platform (min API level {MIN_ANDROID_API})",
            locate_platform,
        )

    def check_ndk(self):
        self.print_section("Android NDK")
        self._check("ndk_root", "NDK", get_ndk_root)
        self._check("host_tag", "Host tag", get_ndk_host_tag)
        for arch in ANDROID_TOOLCHAINS:
            tc = self._check(f"toolchain_{arch}", f"{arch} toolchain", lambda a=arch: resolve_toolchain(a),
                             fmt=lambda t: t.descriptor.clang_target)
            if tc and self.verbose:
                if not os.path.isfile(tc.clang_path()):
                    self.print_info(f"clang not found at {tc.clang_path()}")
                self.print_info(f"sysroot: {tc.sysroot()}")

    def check_javac(self):
        self.print_section("Java")
        javac = shutil.which("javac")
        if javac is None:
            self.print_error("javac: Not found in PATH")
            self.results["javac"] = False
            return
        version = ""
        try:
            err_code, err_msg = exec_command(["javac", "-version"])
            if err_code == 0:
                version = err_msg.strip().split("\n")[0]
        except OSError as e:
            self.print_info(f"javac -version failed: {e}")
        self.print_ok(f"javac: {javac} {version}".rstrip())
        self.results["javac"] = True

    def check_all(self):
        self.check_sdk()
        self.check_ndk()
        self.check_javac()

    def is_ready(self):
        return bool(self.results) and all(self.results.values())

    def print_summary(self):
        """Print summary of check results"""
        self.print_section("Summary")
        if self.verbose:
            for check, result in self.results.items():
                symbol = "✅" if result else "❌"
                print(f"    {symbol} {check}")
        if self.is_ready():
            print("  ANDROID: ✅ READY")
        else:
            print("  ANDROID: ❌ NOT READY")
            print(f"\n  Total Errors: {len(self.errors)}")
        print(f"{'='*60}\n")
