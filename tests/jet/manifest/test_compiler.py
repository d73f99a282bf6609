import pytest

from jet.core.errors import CompileError
from jet.core.hashing import sha512Hex
from jet.description.model import BuildDescription, FabricServerDecl, ModrinthDecl, ProjectInfo
from jet.description.xml_reader import readBuildDescription
from jet.manifest.compiler import compileManifest, compileWithSources
from jet.manifest.model import LaunchPlatform

HASH_A = sha512Hex(b"a")
HASH_B = sha512Hex(b"b")


def _xml(body: str) -> bytes:
    return f"<jet><project><name>demo</name></project>{body}</jet>".encode()


def test_compiles_every_declaration_kind(tmp_path):
    (tmp_path / "readme.txt").write_bytes(b"hello, jet!\n")
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "server-template.properties").write_bytes(b"motd=hi\n")
    description = readBuildDescription(_xml(f"""
        <file name="readme.txt"/>
        <directory name="config">
            <file name="server.properties" from="server-template.properties"/>
        </directory>
        <directory name="libs">
            <remote name="big.jar" url="https://cdn.example/big.jar" sha512="{HASH_A}" size="1"/>
        </directory>
        <run-script name="run.%" type="both"/>
    """))

    compiled = compileWithSources(description, tmp_path)
    manifest = compiled.manifest

    assert [entry.path for entry in manifest.inline] == ["readme.txt", "config/server.properties"]
    assert manifest.inline[0].size == 12
    assert manifest.inline[0].sha512 == sha512Hex(b"hello, jet!\n")
    assert compiled.inlineSources["config/server.properties"] == tmp_path / "config" / "server-template.properties"
    assert [(entry.path, entry.size) for entry in manifest.remote] == [("libs/big.jar", 1)]
    assert [(entry.path, entry.platform) for entry in manifest.launch] == [
        ("run.sh", LaunchPlatform.SH),
        ("run.bat", LaunchPlatform.BAT),
    ]


def test_same_input_compiles_to_equal_manifests(tmp_path):
    (tmp_path / "a.txt").write_bytes(b"a")
    description = readBuildDescription(_xml('<file name="a.txt"/>'))
    assert compileManifest(description, tmp_path) == compileManifest(description, tmp_path)


def test_sha512_prefix_and_case_are_normalized(tmp_path):
    description = readBuildDescription(_xml(f'<remote name="x.jar" url="https://x" sha512="sha512:{HASH_A.upper()}"/>'))
    assert compileManifest(description, tmp_path).remote[0].sha512 == HASH_A


@pytest.mark.parametrize("name", ["../evil.txt", "/etc/passwd", "a/../../b", "@manifest", "C:/windows.txt"])
def test_unsafe_destination_paths_are_rejected(tmp_path, name):
    description = readBuildDescription(_xml(f'<remote name="{name}" url="https://x" sha512="{HASH_A}"/>'))
    with pytest.raises(CompileError):
        compileManifest(description, tmp_path)


def test_duplicate_paths_across_kinds_are_rejected(tmp_path):
    (tmp_path / "x.jar").write_bytes(b"b")
    description = readBuildDescription(_xml(f"""
        <file name="x.jar"/>
        <remote name="x.jar" url="https://x" sha512="{HASH_B}"/>
    """))
    with pytest.raises(CompileError, match="duplicate"):
        compileManifest(description, tmp_path)


def test_duplicate_via_directory_nesting_is_rejected(tmp_path):
    description = readBuildDescription(_xml(f"""
        <remote name="libs/a.jar" url="https://x/1" sha512="{HASH_A}"/>
        <directory name="libs"><remote name="a.jar" url="https://x/2" sha512="{HASH_B}"/></directory>
    """))
    with pytest.raises(CompileError, match="duplicate"):
        compileManifest(description, tmp_path)


def test_missing_inline_source_is_a_compile_error(tmp_path):
    description = readBuildDescription(_xml('<file name="absent.txt"/>'))
    with pytest.raises(CompileError, match="absent.txt"):
        compileManifest(description, tmp_path)


def test_unresolved_modrinth_is_a_compile_error(tmp_path):
    description = BuildDescription(
        project=ProjectInfo(name="demo"),
        contents=(ModrinthDecl(project="lithium", version="mc1.20.1-0.11.2"),),
    )
    with pytest.raises(CompileError, match="not resolved"):
        compileManifest(description, tmp_path)


def test_unresolved_fabric_server_is_a_compile_error(tmp_path):
    description = BuildDescription(
        project=ProjectInfo(name="demo"),
        contents=(FabricServerDecl(minecraft="1.20.1", loader="0.14.21", installer="0.11.2"),),
    )
    with pytest.raises(CompileError, match="fabric-server.1.20.1.0.14.21.0.11.2.jar"):
        compileManifest(description, tmp_path)


def test_single_platform_scripts_keep_their_name(tmp_path):
    description = readBuildDescription(_xml("""
        <run-script name="start.sh" type="bash"/>
        <run-script name="start.bat" type="batch"/>
    """))
    manifest = compileManifest(description, tmp_path)
    assert [(entry.path, entry.platform) for entry in manifest.launch] == [
        ("start.sh", LaunchPlatform.SH),
        ("start.bat", LaunchPlatform.BAT),
    ]
