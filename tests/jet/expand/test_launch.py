import os
import stat

import pytest

from jet.core.errors import LaunchGenerationError
from jet.description.model import LaunchOptions
from jet.expand.launch import renderLaunchScript, writeLaunchScript
from jet.manifest.model import LaunchEntry, LaunchPlatform


def _entry(platform: LaunchPlatform, **options) -> LaunchEntry:
    path = "run.sh" if platform is LaunchPlatform.SH else "run.bat"
    return LaunchEntry(path=path, platform=platform, options=LaunchOptions(**options))


def test_sh_script_substitutes_every_option():
    text = renderLaunchScript(_entry(
        LaunchPlatform.SH, javaMem="6G", javaGcOpts="-XX:+UseZGC", javaExtraOpts=("-Da=1", "-Db=2"), serverJar="fabric.jar",
    ))
    assert text.startswith("#!/bin/sh\n")
    assert 'exec java -Xms6G -Xmx6G -XX:+UseZGC -Da=1 -Db=2 -jar "fabric.jar" nogui "$@"' in text
    assert "$$" not in text


def test_empty_options_leave_no_gaps():
    text = renderLaunchScript(_entry(LaunchPlatform.SH, javaGcOpts=""))
    assert "-Xmx4G -jar" in text
    assert "  " not in text


def test_bat_script_uses_crlf():
    text = renderLaunchScript(_entry(LaunchPlatform.BAT, javaGcOpts="", serverJar="server.jar"))
    assert text.startswith("@echo off\r\n")
    assert "\n" not in text.replace("\r\n", "")
    assert 'java -Xms4G -Xmx4G -jar "server.jar" nogui %*' in text


def test_line_breaks_in_options_are_rejected():
    with pytest.raises(LaunchGenerationError) as excinfo:
        renderLaunchScript(_entry(LaunchPlatform.SH, javaExtraOpts=("-Da=1\nrm -rf /",)))
    assert excinfo.value.path == "run.sh"
    assert excinfo.value.kind == "launch"


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_sh_script_is_executable_and_bat_is_not(tmp_path):
    sh = writeLaunchScript(tmp_path, tmp_path / "run.sh", _entry(LaunchPlatform.SH))
    bat = writeLaunchScript(tmp_path, tmp_path / "run.bat", _entry(LaunchPlatform.BAT))
    assert stat.S_IMODE(sh.stat().st_mode) == 0o755
    assert stat.S_IMODE(bat.stat().st_mode) == 0o644


def test_regenerated_script_replaces_the_old_one(tmp_path):
    target = tmp_path / "run.sh"
    target.write_text("stale")
    writeLaunchScript(tmp_path, target, _entry(LaunchPlatform.SH, javaMem="2G"))
    assert "-Xmx2G" in target.read_text()
