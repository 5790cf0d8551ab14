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
import json
import shlex
import argparse

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
    from aarbind.utils.errors import AarBindError
    from aarbind.build_scripts.android_toolchain import android_env, parse_archs
except ImportError:
    from utils.context.namespace import CliNameSpace
    from utils.context.context import CliContext
    from utils.context.command import CliCommand
    from utils.errors import AarBindError
    from build_scripts.android_toolchain import android_env, parse_archs


class Env(CliCommand):
    def description(self) -> str:
        return """
        This is a subcommand to print the NDK cross-compilation environment.

        Prints CC, CXX, CFLAGS, CPPFLAGS, CXXFLAGS, LDFLAGS and ANDROID_ABI
        as shell exports, ready to eval before building native code.

        Examples:
            aarbind env --arch arm64
            eval "$(aarbind env --arch arm)"
            aarbind env --arch arm,x86_64 --json
        """

    def cli(self) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="aarbind env",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        parser.add_argument(
            "--arch",
            type=str,
            default="arm64",
            help="Comma-separated architectures: arm,arm64,x86,x86_64 (default: arm64)",
        )
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print a JSON object keyed by arch instead of shell exports",
        )
        module_name = os.path.splitext(os.path.basename(__file__))[0]
        input_argv = sys.argv[2:] if sys.argv[1:2] == [module_name] else sys.argv[1:]
        args, unknown = parser.parse_known_args(input_argv, namespace=CliNameSpace())
        return args

    def exec(self, context: CliContext, args: CliNameSpace):
        try:
            archs = parse_archs(args.arch)
            envs = {arch: android_env(arch) for arch in archs}
        except AarBindError as e:
            print(f"ERROR: {e}")
            sys.exit(1)

        if args.json:
            print(json.dumps(envs, indent=2))
            return
        for arch, env in envs.items():
            if len(envs) > 1:
                print(f"# {arch}")
            for key, value in env.items():
                print(f"export {key}={shlex.quote(value)}")
