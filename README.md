# fynetools

Building blocks for tooling that compiles and packages Fyne applications,
with a focus on mobile targets. It has no dependencies outside the
standard library.

## Modules

- `fynetools.shell`: prepare a program to run with the environment of the
  user's login shell. `command_in_shell(cmd, *args)` returns a
  `ShellCommand` whose `run(**kwargs)` passes its keyword arguments on to
  `subprocess.run`. On macOS the program is first looked up with `which`
  through the user's shell (`darwin_shell()`); on Linux and the BSDs the
  environment comes from `$SHELL` (`unix_shell()`, falling back to
  `/bin/sh`). Arguments containing a space are quoted with `quote_args`
  and `quote_string`.
- `fynetools.files`: `exists`, `copy_file` (mode 0644), `copy_exe_file`
  (mode 0755), `ensure_sub_dir`, `ensure_abs_path` and
  `make_path_relative_to`.
- `fynetools.platforms`: `is_android`, `is_ios` and `is_mobile` recognise
  target names; `require_android_sdk` raises `AndroidSDKError` when
  `ANDROID_HOME` is unset; `android_build_tools_path` returns the SDK's
  `build-tools` directory, descending into a version subdirectory when
  there is one.
- `fynetools.quoted`: `split_quoted_fields` splits a string on whitespace,
  allowing `'...'` or `"..."` around fields, and raises `ValueError` on an
  unterminated quote. `StringsFlag` holds the fields of one flag value.
- `fynetools.manifest`: `manifest_lib_name` reads the
  `android.app.lib_name` meta-data of the native activity from an
  `AndroidManifest.xml`, raising `ManifestError` when the manifest does
  not declare one.
- `fynetools.apk`: `ApkWriter` writes an uncompressed ZIP archive with each
  entry's data 4-byte aligned, and on `close()` adds
  `META-INF/MANIFEST.MF`, `META-INF/CERT.SF` and `META-INF/CERT.RSA`.
  Errors are raised as `ApkError`.
- `fynetools.toolchain`: locate the Android NDK (`ndk_root`) and Xcode
  compilers (`env_clang`, `xcode_available`), describe NDK toolchains
  (`NdkToolchain`, `ndk_toolchain`), and prepare cross-compilation
  environments with `BuildEnvironment` (`init_build`, `init_env`). Commands
  are run or, on a dry run, only printed, according to `BuildSettings`
  (`run_cmd`, `mkdir`, `remove_all`). Also `environ`, `go_env`,
  `parse_go_version`, `arch_clang` and `arch_ndk`. Failures are raised as
  `ToolchainError`.

## Installing

    pip install fynetools

## Examples

Check which targets are mobile:

    from fynetools.platforms import is_mobile, is_android

    is_mobile("ios")          # True
    is_android("android/arm") # True
    is_mobile("linux")        # False

Split quoted fields the way build flags are read:

    from fynetools.quoted import split_quoted_fields

    split_quoted_fields("-a 'b c' \"d\"")   # ['-a', 'b c', 'd']

Find the library name an Android manifest declares:

    from fynetools.manifest import manifest_lib_name

    with open("AndroidManifest.xml", "rb") as fh:
        print(manifest_lib_name(fh.read()))

Run a tool using the user's shell environment:

    from fynetools.shell import command_in_shell

    result = command_in_shell("go", "version").run(capture_output=True, text=True)
    print(result.stdout)

Write an APK. The `sign` callable receives the bytes of `META-INF/CERT.SF`
and returns the bytes to store as `META-INF/CERT.RSA`:

    from fynetools.apk import ApkWriter

    def sign(cert_sf: bytes) -> bytes:
        ...  # produce a signature block with your own key

    with open("app.apk", "wb") as fh, ApkWriter(fh, sign) as apk:
        apk.create("classes.dex").write(dex_bytes)
        apk.create("lib/arm64-v8a/libapp.so").write(lib_bytes)

Look at toolchain details and print commands without running them:

    import sys
    from fynetools.toolchain import BuildSettings, environ, ndk_toolchain, run_cmd

    ndk_toolchain("arm64").clang_prefix(19)   # 'aarch64-linux-android21'
    environ(["GOOS=android"], base=["PATH=/bin"], goos="linux")
    # ['PATH=/bin', 'GOOS=android']

    settings = BuildSettings(dry_run=True, output=sys.stdout)
    run_cmd(["go", "build"], settings, cwd="app", env=["GOOS=android"])
    # prints: PWD=app GOOS=android go build

## What this package does not do

- It provides no command-line program; everything is used from Python.
- It does not compile, package or release applications itself: it finds
  compilers and prepares their environments, but the build steps that use
  them are left to the caller.
- `ApkWriter` does not create signatures; the caller supplies the function
  that produces the `CERT.RSA` signature block.

## Running the tests

    pip install -e ".[test]"
    pytest