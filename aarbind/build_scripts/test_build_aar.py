#!/usr/bin/env python3
"""
Tests for classes.jar and AAR assembly.

javac is replaced by a fake that drops class files into the -d directory.

Run with: python3 -m pytest test_build_aar.py
"""

import io
import os
import tempfile
import unittest
import zipfile
from contextlib import redirect_stderr
from unittest.mock import patch

from aarbind.build_scripts.build_aar import (
    BindPackage,
    build_aar,
    default_jni_lib_paths,
    package_from_dir,
)
from aarbind.build_scripts.build_jar import JAR_MANIFEST_HEADER, build_jar, collect_java_sources
from aarbind.utils.cmd.cmd_util import CommandResult, run_cmd
from aarbind.utils.context.mode import ExecutionMode
from aarbind.utils.errors import AssetConflictError, CommandError, ConfigurationError

CLASS_BYTES = b"\xca\xfe\xba\xbe fake class"


def fake_javac(command, cwd=None, env=None, mode=ExecutionMode.REAL, verbose=False):
    if mode.is_plan:
        return CommandResult(0)
    dst = command[command.index("-d") + 1]
    pkg_dir = os.path.join(dst, "com", "example")
    os.makedirs(pkg_dir, exist_ok=True)
    with open(os.path.join(pkg_dir, "Hello.class"), "wb") as f:
        f.write(CLASS_BYTES)
    return CommandResult(0)


def write_file(path, data=b""):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)


class AndroidProjectTestCase(unittest.TestCase):
    """Lay out an SDK, an android project dir and a scratch dir."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        root = self.tmp.name
        self.sdk = os.path.join(root, "sdk")
        self.platform = os.path.join(self.sdk, "platforms", "android-21")
        write_file(os.path.join(self.platform, "android.jar"), b"PK")
        self.android_dir = os.path.join(root, "android")
        self.src = os.path.join(self.android_dir, "src", "main", "java")
        write_file(os.path.join(self.src, "com", "example", "Hello.java"), b"class Hello {}")
        self.work = os.path.join(root, "work")
        os.makedirs(self.work)
        self.out = os.path.join(root, "out")
        os.makedirs(self.out)
        self.root = root

        self.env = patch.dict(os.environ, {"ANDROID_HOME": self.sdk})
        self.env.start()
        self.javac = patch("aarbind.build_scripts.build_jar.run_cmd", side_effect=fake_javac)
        self.run_cmd = self.javac.start()

    def tearDown(self):
        self.javac.stop()
        self.env.stop()
        self.tmp.cleanup()

    def make_package(self, name, assets=None):
        pkg_dir = os.path.join(self.root, "pkgs", name)
        os.makedirs(pkg_dir, exist_ok=True)
        for rel_path, data in (assets or {}).items():
            write_file(os.path.join(pkg_dir, "assets", *rel_path.split("/")), data)
        return BindPackage(name=name, import_path=f"example.com/{name}", dir=pkg_dir)

    def make_jni_libs(self, archs):
        libs = default_jni_lib_paths(self.android_dir, archs)
        for arch, path in libs.items():
            write_file(path, f"ELF {arch}".encode())
        return libs


class TestBuildJar(AndroidProjectTestCase):
    """Test classes.jar creation."""

    def test_collect_java_sources(self):
        write_file(os.path.join(self.src, "com", "example", "sub", "World.java"))
        write_file(os.path.join(self.src, "README.txt"))
        self.assertEqual(
            collect_java_sources(self.src),
            [
                os.path.join("com", "example", "Hello.java"),
                os.path.join("com", "example", "sub", "World.java"),
            ],
        )

    def test_javac_invocation(self):
        build_jar(io.BytesIO(), self.src, self.work, classpath="/opt/extra.jar")
        command = self.run_cmd.call_args[0][0]
        kwargs = self.run_cmd.call_args[1]
        self.assertEqual(kwargs["cwd"], self.src)
        self.assertEqual(command[0], "javac")
        self.assertEqual(command[command.index("-d") + 1], os.path.join(self.work, "javac-output"))
        self.assertEqual(command[command.index("-source") + 1], "1.7")
        self.assertEqual(command[command.index("-target") + 1], "1.7")
        self.assertEqual(
            command[command.index("-bootclasspath") + 1],
            os.path.join(self.platform, "android.jar"),
        )
        self.assertEqual(command[command.index("-classpath") + 1], "/opt/extra.jar")
        self.assertEqual(command[-1], os.path.join("com", "example", "Hello.java"))

    def test_no_classpath_flag_by_default(self):
        build_jar(io.BytesIO(), self.src, self.work)
        self.assertNotIn("-classpath", self.run_cmd.call_args[0][0])

    def test_manifest_first(self):
        buf = io.BytesIO()
        build_jar(buf, self.src, self.work)
        with zipfile.ZipFile(io.BytesIO(buf.getvalue())) as jar:
            self.assertEqual(jar.namelist(), ["META-INF/MANIFEST.MF", "com/example/Hello.class"])
            self.assertEqual(jar.read("META-INF/MANIFEST.MF").decode(), JAR_MANIFEST_HEADER)
            self.assertEqual(jar.read("com/example/Hello.class"), CLASS_BYTES)
        self.assertTrue(JAR_MANIFEST_HEADER.startswith("Manifest-Version: 1.0\nCreated-By: "))
        self.assertTrue(JAR_MANIFEST_HEADER.endswith("\n\n"))

    def test_plan_mode(self):
        buf = io.BytesIO()
        build_jar(buf, self.src, self.work, mode=ExecutionMode.PLAN)
        command = self.run_cmd.call_args[0][0]
        self.assertEqual(command[-1], "*.java")
        self.assertIs(self.run_cmd.call_args[1]["mode"], ExecutionMode.PLAN)
        self.assertEqual(buf.getvalue(), b"")
        self.assertFalse(os.path.exists(os.path.join(self.work, "javac-output")))

    def test_reused_work_dir_drops_stale_classes(self):
        def compile_one(class_name):
            def javac(command, cwd=None, env=None, mode=ExecutionMode.REAL, verbose=False):
                dst = command[command.index("-d") + 1]
                write_file(os.path.join(dst, class_name), CLASS_BYTES)
                return CommandResult(0)
            return javac

        self.run_cmd.side_effect = compile_one("Old.class")
        build_jar(io.BytesIO(), self.src, self.work)

        self.run_cmd.side_effect = compile_one("New.class")
        buf = io.BytesIO()
        build_jar(buf, self.src, self.work)
        with zipfile.ZipFile(io.BytesIO(buf.getvalue())) as jar:
            self.assertEqual(jar.namelist(), ["META-INF/MANIFEST.MF", "New.class"])

    def test_javac_failure(self):
        self.run_cmd.side_effect = CommandError(["javac"], 1, "Hello.java:1: error")
        buf = io.BytesIO()
        with self.assertRaises(CommandError) as context:
            build_jar(buf, self.src, self.work)
        self.assertEqual(context.exception.returncode, 1)
        self.assertEqual(buf.getvalue(), b"")


class TestBuildAar(AndroidProjectTestCase):
    """Test AAR assembly."""

    def read_aar(self, path):
        with zipfile.ZipFile(path) as aar:
            return aar.namelist(), {name: aar.read(name) for name in aar.namelist()}

    def test_entries(self):
        archs = ["arm", "arm64"]
        libs = self.make_jni_libs(archs)
        pkg_a = self.make_package("hello", {"x.png": b"x", "fonts/a.ttf": b"font"})
        pkg_b = self.make_package("extra", {"y.png": b"y"})
        aar_path = os.path.join(self.out, "hello.aar")

        build_aar(aar_path, self.android_dir, [pkg_a, pkg_b], archs, self.work)

        names, data = self.read_aar(aar_path)
        self.assertEqual(
            names,
            [
                "AndroidManifest.xml",
                "proguard.txt",
                "classes.jar",
                "assets/fonts/a.ttf",
                "assets/x.png",
                "assets/y.png",
                "jni/armeabi-v7a/libaarbind.so",
                "jni/arm64-v8a/libaarbind.so",
                "R.txt",
                "res/",
            ],
        )
        self.assertEqual(len(names), len(set(names)))
        manifest = data["AndroidManifest.xml"].decode()
        self.assertIn('package="aarbind.hello.jni"', manifest)
        self.assertIn('<uses-sdk android:minSdkVersion="15"/></manifest>', manifest)
        self.assertEqual(data["proguard.txt"], b"-keep class aarbind.** { *; }\n")
        self.assertEqual(data["assets/x.png"], b"x")
        self.assertEqual(data["assets/y.png"], b"y")
        with open(libs["arm64"], "rb") as f:
            self.assertEqual(data["jni/arm64-v8a/libaarbind.so"], f.read())
        self.assertEqual(data["R.txt"], b"")
        with zipfile.ZipFile(io.BytesIO(data["classes.jar"])) as jar:
            self.assertEqual(jar.namelist()[0], "META-INF/MANIFEST.MF")
            self.assertIn("com/example/Hello.class", jar.namelist())

    def test_asset_conflict(self):
        archs = ["arm"]
        self.make_jni_libs(archs)
        pkg_a = self.make_package("a", {"x.png": b"a"})
        pkg_b = self.make_package("b", {"x.png": b"b"})
        aar_path = os.path.join(self.out, "a.aar")

        with self.assertRaises(AssetConflictError) as context:
            build_aar(aar_path, self.android_dir, [pkg_a, pkg_b], archs, self.work)
        msg = str(context.exception)
        self.assertIn("assets/x.png", msg)
        self.assertIn("example.com/a", msg)
        self.assertIn("example.com/b", msg)
        self.assertEqual(context.exception.package, "example.com/b")
        self.assertEqual(context.exception.orig_package, "example.com/a")
        # partial output is left for inspection
        self.assertTrue(os.path.exists(aar_path))

    def test_packages_without_assets(self):
        archs = ["x86_64"]
        self.make_jni_libs(archs)
        pkg = self.make_package("plain")
        write_file(os.path.join(self.root, "other", "assets"), b"not a dir")
        other = BindPackage(name="other", import_path="other", dir=os.path.join(self.root, "other"))
        aar_path = os.path.join(self.out, "plain.aar")

        build_aar(aar_path, self.android_dir, [pkg, other], archs, self.work)

        names, _ = self.read_aar(aar_path)
        self.assertFalse(any(name.startswith("assets/") for name in names))
        self.assertIn("jni/x86_64/libaarbind.so", names)

    def test_custom_jni_libs_and_r_txt(self):
        lib = os.path.join(self.root, "prebuilt", "libx86.so")
        write_file(lib, b"x86 lib")
        pkg = self.make_package("hello")
        aar_path = os.path.join(self.out, "hello.aar")

        build_aar(aar_path, self.android_dir, [pkg], ["x86"], self.work,
                  jni_libs={"x86": lib}, r_txt=b"int string app_name 0x7f010000\n")

        _, data = self.read_aar(aar_path)
        self.assertEqual(data["jni/x86/libaarbind.so"], b"x86 lib")
        self.assertEqual(data["R.txt"], b"int string app_name 0x7f010000\n")

    def test_missing_jni_lib(self):
        pkg = self.make_package("hello")
        aar_path = os.path.join(self.out, "hello.aar")
        with self.assertRaises(FileNotFoundError):
            build_aar(aar_path, self.android_dir, [pkg], ["arm"], self.work)
        self.assertTrue(os.path.exists(aar_path))

    def test_unknown_arch_rejected_before_output(self):
        pkg = self.make_package("hello")
        aar_path = os.path.join(self.out, "hello.aar")
        with self.assertRaises(ConfigurationError):
            build_aar(aar_path, self.android_dir, [pkg], ["arm", "mips"], self.work)
        self.assertFalse(os.path.exists(aar_path))

    def test_no_packages(self):
        with self.assertRaises(ConfigurationError):
            build_aar(os.path.join(self.out, "x.aar"), self.android_dir, [], ["arm"], self.work)

    def test_javac_failure_aborts(self):
        self.run_cmd.side_effect = CommandError(["javac"], 2, "")
        pkg = self.make_package("hello")
        with self.assertRaises(CommandError):
            build_aar(os.path.join(self.out, "hello.aar"), self.android_dir, [pkg], ["arm"], self.work)

    def test_plan_mode_writes_nothing(self):
        self.run_cmd.side_effect = run_cmd
        pkg = self.make_package("hello", {"x.png": b"x"})
        work = os.path.join(self.root, "plan-work")
        before = sorted(os.listdir(self.root))
        stderr = io.StringIO()

        with patch("aarbind.utils.cmd.cmd_util.exec_command") as exec_command:
            with redirect_stderr(stderr):
                build_aar(None, self.android_dir, [pkg], ["arm", "arm64"], work,
                          mode=ExecutionMode.PLAN, verbose=True)
        exec_command.assert_not_called()

        self.assertEqual(sorted(os.listdir(self.root)), before)
        self.assertEqual(os.listdir(self.out), [])
        log = stderr.getvalue()
        self.assertIn(f"cd {self.src}", log)
        self.assertIn("javac", log)
        self.assertIn("*.java", log)
        self.assertIn("aar: AndroidManifest.xml", log)
        self.assertIn("aar: jni/arm64-v8a/libaarbind.so", log)
        self.assertNotIn("jar: META-INF/MANIFEST.MF", log)

    def test_verbose_logs_entries(self):
        self.make_jni_libs(["arm"])
        pkg = self.make_package("hello")
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            build_aar(os.path.join(self.out, "hello.aar"), self.android_dir, [pkg], ["arm"],
                      self.work, verbose=True)
        log = stderr.getvalue().splitlines()
        self.assertIn("aar: classes.jar", log)
        self.assertIn("jar: META-INF/MANIFEST.MF", log)
        self.assertIn("aar: res/", log)


class TestPackageFromDir(unittest.TestCase):
    """Test package description from a directory."""

    def test_name_is_last_element(self):
        pkg = package_from_dir(os.path.join("src", "hello", ""))
        self.assertEqual(pkg.name, "hello")
        self.assertEqual(pkg.dir, os.path.join("src", "hello"))
        self.assertEqual(pkg.import_path, os.path.join("src", "hello"))


if __name__ == "__main__":
    unittest.main()
