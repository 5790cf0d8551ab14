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
import importlib
import argparse

# setup path
# >>>>>>>>>>>>>>
SCRIPT_PATH = os.path.split(os.path.realpath(__file__))[0]
PROJECT_ROOT_PATH = os.path.dirname(SCRIPT_PATH)
sys.path.append(SCRIPT_PATH)
sys.path.append(PROJECT_ROOT_PATH)
PACKAGE_NAME = os.path.basename(SCRIPT_PATH)
# <<<<<<<<<<<<<<
# import this project modules
try:
    from aarbind.utils.context.namespace import CliNameSpace
    from aarbind.utils.context.context import CliContext
    from aarbind.utils.context.command import CliCommand
except ImportError:
    from utils.context.namespace import CliNameSpace
    from utils.context.context import CliContext
    from utils.context.command import CliCommand


# Root Class for Command Line Interface
class Cli(CliCommand):
    def description(self) -> str:
        return """AARBIND - Android library packaging for JNI bindings

Packages compiled bindings (Java sources, native libraries, assets) into an
Android library archive (.aar) and resolves the Android NDK toolchain used to
cross-compile the native side.

USAGE:
    aarbind <command> [options]

COMMANDS:
    bind        Build an .aar from an android project dir and packages
    env         Print the NDK cross-compilation environment for an arch
    check       Check ANDROID_HOME, NDK, SDK platform and javac

EXAMPLES:
    aarbind check
    aarbind env --arch arm64
    aarbind bind -o hello.aar --android-dir build/android ./hello
    aarbind bind -n -v ./hello       # print what would be done

For more information on a specific command:
    aarbind <command> --help
        """

    def get_command_list(self) -> list:
        arr = []
        for command in os.listdir(os.path.join(SCRIPT_PATH, "commands")):
            if not command.startswith("_") and command.endswith(".py"):
                arr.append(os.path.splitext(os.path.basename(command))[0])
        return sorted(arr)

    def _parser(self, add_help=True, optional=False):
        parser = argparse.ArgumentParser(
            prog="aarbind",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
            add_help=add_help,
        )
        parser.add_argument(
            "subcommand",
            metavar=f"{self.get_command_list()}",
            type=str,
            nargs="?" if optional else None,
            choices=self.get_command_list(),
        )
        return parser

    def cli(self) -> CliNameSpace:
        # Help for the root command only; `aarbind bind --help` goes to bind
        if len(sys.argv) == 2 and sys.argv[1] in ["--help", "-h"]:
            self._parser().print_help()
            sys.exit(0)

        # parse only known args - this will NOT consume subcommand options
        args, unknown = self._parser(add_help=False, optional=True).parse_known_args(
            sys.argv[1:2], namespace=CliNameSpace()
        )
        return args

    def exec(self, context: CliContext, args: CliNameSpace):
        if not args.subcommand:
            print("ERROR: No command specified\n")
            self._parser().print_help()
            sys.exit(1)

        module_name = f"commands.{args.subcommand}"
        class_name = args.subcommand.capitalize()
        try:
            module = importlib.import_module(f"{PACKAGE_NAME}.{module_name}")
        except ImportError:
            module = importlib.import_module(module_name)
        klass = getattr(module, class_name)
        sub_cmd = klass()
        sub_cmd.exec(context, sub_cmd.cli())


def main():
    cmd = Cli()
    cmd.exec(CliContext(), cmd.cli())


if __name__ == "__main__":
    main()
