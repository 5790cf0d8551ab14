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
import time
import argparse
import tempfile

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
    from aarbind.utils.context.mode import ExecutionMode
    from aarbind.utils.errors import AarBindError, ConfigurationError
    from aarbind.build_scripts.android_toolchain import parse_archs
    from aarbind.build_scripts.build_aar import build_aar, package_from_dir, BindPackage
    from aarbind.build_scripts.build_utils import load_aarbind_config
except ImportError:
    from utils.context.namespace import CliNameSpace
    from utils.context.context import CliContext
    from utils.context.command import CliCommand
    from utils.context.mode import ExecutionMode
    from utils.errors import AarBindError, ConfigurationError
    from build_scripts.android_toolchain import parse_archs
    from build_scripts.build_aar import build_aar, package_from_dir, BindPackage
    from build_scripts.build_utils import load_aarbind_config

# Scratch directory shown in plan mode when --work is not given
PLAN_WORK_DIR = "$WORK"


class Bind(CliCommand):
    def description(self) -> str:
        return """
        This is a subcommand to assemble an Android library (.aar).

        The android project dir must contain the generated Java sources in
        src/main/java and the native libraries in src/main/jniLibs/<abi>/.
        Each package dir may contain an assets/ directory; assets of all
        packages are merged and must not collide.

        Defaults are read from AARBIND.toml in the current directory.

        Examples:
            aarbind bind -o hello.aar --android-dir build/android ./hello
            aarbind bind --arch arm64,x86_64 ./hello ./hello/extra
            aarbind bind -n -v ./hello      # print the plan, write nothing
        """

    def cli(self) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="aarbind bind",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        parser.add_argument(
            "packages",
            nargs="*",
            help="Package directories contributing assets; the first names the AAR",
        )
        parser.add_argument(
            "-o", "--output",
            type=str,
            help="Output .aar path (default: <name>.aar)",
        )
        parser.add_argument(
            "--android-dir",
            type=str,
            help="Android project dir with src/main/java and src/main/jniLibs (default: android)",
        )
        parser.add_argument(
            "--arch",
            type=str,
            help="Comma-separated architectures: arm,arm64,x86,x86_64 (default: all)",
        )
        parser.add_argument(
            "--name",
            type=str,
            help="Package name used in the manifest (default: first package dir name)",
        )
        parser.add_argument(
            "--classpath",
            type=str,
            help="Extra javac classpath",
        )
        parser.add_argument(
            "--work",
            type=str,
            help="Scratch directory to use and keep (default: a temporary directory)",
        )
        parser.add_argument(
            "-n", "--dry-run",
            action="store_true",
            help="Print the commands but do not run them or write output",
        )
        parser.add_argument(
            "-v", "--verbose",
            action="store_true",
            help="Print each archive entry and command",
        )
        module_name = os.path.splitext(os.path.basename(__file__))[0]
        input_argv = sys.argv[2:] if sys.argv[1:2] == [module_name] else sys.argv[1:]
        args, unknown = parser.parse_known_args(input_argv, namespace=CliNameSpace())
        return args

    def get_packages(self, args, config):
        dirs = args.packages or config["PACKAGES"]
        if not dirs:
            raise ConfigurationError("no package directories given")
        packages = [package_from_dir(d) for d in dirs]
        name = args.name or config["PROJECT_NAME"]
        if name:
            first = packages[0]
            packages[0] = BindPackage(name=name, import_path=first.import_path, dir=first.dir)
        return packages

    def exec(self, context: CliContext, args: CliNameSpace):
        mode = ExecutionMode.from_dry_run(args.dry_run)
        before_time = time.time()
        try:
            config = load_aarbind_config(context.project_dir)
            archs = parse_archs(args.arch or config["ANDROID_ARCHS"])
            packages = self.get_packages(args, config)
            android_dir = args.android_dir or config["ANDROID_DIR"]
            output = args.output or config["OUTPUT"] or f"{packages[0].name}.aar"
            classpath = args.classpath or config["CLASSPATH"] or None

            print(f"==================Build AAR: {output}, archs: {archs}==================")
            if args.work:
                if not mode.is_plan:
                    os.makedirs(args.work, exist_ok=True)
                self.bind(output, android_dir, packages, archs, args.work, mode, args.verbose, classpath)
            elif mode.is_plan:
                self.bind(output, android_dir, packages, archs, PLAN_WORK_DIR, mode, args.verbose, classpath)
            else:
                with tempfile.TemporaryDirectory(prefix="aarbind-work-") as work:
                    self.bind(output, android_dir, packages, archs, work, mode, args.verbose, classpath)
        except (AarBindError, OSError) as e:
            print(f"ERROR: {e}")
            sys.exit(1)

        if mode.is_plan:
            print("[DRY-RUN] nothing written")
        else:
            size = os.path.getsize(output) / 1024
            print(f"[SUCCESS] {output} ({size:.1f} KB)")
        print(f"use time: {int(time.time() - before_time)}")

    def bind(self, output, android_dir, packages, archs, work, mode, verbose, classpath):
        if verbose:
            print(f"WORK={work}", file=sys.stderr)
        build_aar(
            None if mode.is_plan else output,
            android_dir,
            packages,
            archs,
            work,
            mode=mode,
            verbose=verbose,
            classpath=classpath,
        )
