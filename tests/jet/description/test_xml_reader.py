import pytest

from jet.core.errors import DescriptionError
from jet.description.model import (
    DEFAULT_GC_PRESET,
    GC_PRESETS,
    DirectoryDecl,
    FabricServerDecl,
    FileDecl,
    ModrinthDecl,
    RemoteDecl,
    RunScriptDecl,
    ScriptType,
)
from jet.description.xml_reader import loadBuildDescription, readBuildDescription

FULL = b"""<?xml version="1.0"?>
<jet>
    <project>
        <name>survival</name>
        <description>Friends server</description>
        <version>3</version>
        <author>ana</author>
        <author>bo</author>
    </project>
    <file name="eula.txt"/>
    <directory name="mods">
        <modrinth project="lithium" version="mc1.20.1-0.11.2"/>
        <remote name="extra.jar" url="https://cdn.example/extra.jar" sha512="abc" size="42"/>
    </directory>
    <run-script name="run.%" type="both">
        <memory max="6G"/>
        <use-gc preset="aikar"/>
        <java-arg>-Dfile.encoding=UTF-8</java-arg>
    </run-script>
</jet>
"""


def test_reads_full_description():
    description = readBuildDescription(FULL)

    assert description.project.name == "survival"
    assert description.project.description == "Friends server"
    assert description.project.authors == ("ana", "bo")

    eula, mods, script = description.contents
    assert eula == FileDecl(name="eula.txt")
    assert isinstance(mods, DirectoryDecl)
    assert mods.contents[0] == ModrinthDecl(project="lithium", version="mc1.20.1-0.11.2")
    assert mods.contents[1] == RemoteDecl(name="extra.jar", url="https://cdn.example/extra.jar", sha512="abc", size=42)

    assert isinstance(script, RunScriptDecl)
    assert script.scriptType is ScriptType.BOTH
    assert script.options.javaMem == "6G"
    assert script.options.javaGcOpts == GC_PRESETS["aikar"]
    assert script.options.javaExtraOpts == ("-Dfile.encoding=UTF-8",)


def test_reads_fabric_server():
    description = readBuildDescription(
        b"<jet><project><name>x</name></project>"
        b'<fabric-server minecraft="1.20.1" loader="0.14.21" installer="0.11.2"/></jet>'
    )
    assert description.contents == (FabricServerDecl(minecraft="1.20.1", loader="0.14.21", installer="0.11.2"),)


def test_fabric_server_requires_every_version():
    with pytest.raises(DescriptionError, match="installer"):
        readBuildDescription(
            b'<jet><project><name>x</name></project><fabric-server minecraft="1.20.1" loader="0.14.21"/></jet>'
        )


def test_run_script_defaults():
    description = readBuildDescription(b'<jet><project><name>x</name></project><run-script name="run.%"/></jet>')
    script = description.contents[0]
    assert script.scriptType is ScriptType.BOTH
    assert script.options.javaMem == "4G"
    assert script.options.javaGcOpts == GC_PRESETS[DEFAULT_GC_PRESET]
    assert script.options.serverJar == "server.jar"


def test_unknown_gc_preset_falls_back_to_default(caplog):
    description = readBuildDescription(
        b'<jet><project><name>x</name></project><run-script name="r.sh" type="bash"><use-gc preset="nope"/></run-script></jet>'
    )
    assert description.contents[0].options.javaGcOpts == GC_PRESETS[DEFAULT_GC_PRESET]
    assert "nope" in caplog.text


@pytest.mark.parametrize(
    "body, message",
    [
        (b"<jet><file name='a'/></jet>", "no <project>"),
        (b"<jet><project><name>x</name></project><project><name>y</name></project></jet>", "more than one"),
        (b"<jet><project><name>x</name></project><symlink/></jet>", "Unknown element"),
        (b"<jet><project><name>x</name></project><file name='a' mode='755'/></jet>", "unknown attribute"),
        (b"<jet><project><name>x</name></project><remote name='a' url='u'/></jet>", "sha512"),
        (b"<jet><project><name>x</name></project><remote name='a' url='u' sha512='h' size='big'/></jet>", "integer"),
        (b"<jet><project><name>x</name></project><run-script name='r' type='fish'/></jet>", "unknown type"),
        (b"<jet><project><description>no name</description></project></jet>", "<name>"),
        (b"<jet><project>", "well-formed"),
    ],
)
def test_invalid_descriptions_raise(body, message):
    with pytest.raises(DescriptionError, match=message):
        readBuildDescription(body)


def test_load_returns_raw_bytes_verbatim(tmp_path):
    path = tmp_path / "jetfuel.xml"
    path.write_bytes(FULL)
    description, raw = loadBuildDescription(path)
    assert raw == FULL
    assert description.project.name == "survival"


def test_load_missing_file_is_a_description_error(tmp_path):
    with pytest.raises(DescriptionError, match="Failed to read"):
        loadBuildDescription(tmp_path / "missing.xml")
