# jet/description/xml_reader.py
from __future__ import annotations
import logging
import xml.etree.ElementTree as ET
from pathlib import Path

from pydantic import ValidationError

from jet.core.errors import DescriptionError
from .model import (
    BuildDescription,
    DirectoryDecl,
    FabricServerDecl,
    FileDecl,
    LaunchOptions,
    ModrinthDecl,
    ProjectInfo,
    RemoteDecl,
    RunScriptDecl,
    ScriptType,
    gcPresetOptions,
)

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_DESCRIPTION_NAME", "readBuildDescription", "loadBuildDescription"]

DEFAULT_DESCRIPTION_NAME = "jetfuel.xml"

_ALLOWED_ATTRS: dict[str, set[str]] = {
    "directory": {"name"},
    "file": {"name", "from"},
    "remote": {"name", "url", "sha512", "size"},
    "modrinth": {"project", "version"},
    "fabric-server": {"minecraft", "loader", "installer"},
    "run-script": {"name", "type"},
}



def _checkAttrs(elem: ET.Element) -> None:
    allowed = _ALLOWED_ATTRS.get(elem.tag, set())
    unknown = sorted(set(elem.attrib) - allowed)
    if unknown:
        raise DescriptionError(f"<{elem.tag}>: unknown attribute(s) {', '.join(unknown)}")



def _required(elem: ET.Element, attr: str) -> str:
    value = elem.get(attr)
    if value is None or not value.strip():
        raise DescriptionError(f"<{elem.tag}> requires attribute '{attr}'")
    return value.strip()



def _readProject(elem: ET.Element) -> ProjectInfo:
    fields: dict[str, str] = {}
    authors: list[str] = []
    for child in elem:
        text = (child.text or "").strip()
        if child.tag == "author":
            authors.append(text)
        elif child.tag in ("name", "description", "version"):
            fields[child.tag] = text
        else:
            raise DescriptionError(f"<project>: unknown element <{child.tag}>")
    if not fields.get("name"):
        raise DescriptionError("<project> requires a <name>")
    return ProjectInfo(authors=tuple(authors), **fields)



def _readRunScript(elem: ET.Element) -> RunScriptDecl:
    rawType = (elem.get("type") or ScriptType.BOTH.value).strip()
    try:
        scriptType = ScriptType(rawType)
    except ValueError:
        raise DescriptionError(f"<run-script>: unknown type '{rawType}' (expected bash, batch or both)") from None

    opts: dict[str, object] = {}
    extra: list[str] = []
    for child in elem:
        if child.tag == "memory":
            opts["javaMem"] = _required(child, "max")
        elif child.tag == "use-gc":
            opts["javaGcOpts"] = gcPresetOptions(_required(child, "preset"))
        elif child.tag == "java-arg":
            extra.append((child.text or "").strip())
        else:
            raise DescriptionError(f"<run-script>: unknown option <{child.tag}>")
    opts["javaExtraOpts"] = tuple(arg for arg in extra if arg)

    return RunScriptDecl(name=_required(elem, "name"), scriptType=scriptType, options=LaunchOptions(**opts))



def _readDecl(elem: ET.Element):
    _checkAttrs(elem)
    tag = elem.tag
    if tag == "directory":
        return DirectoryDecl(name=_required(elem, "name"), contents=tuple(_readDecl(child) for child in elem))
    if tag == "file":
        return FileDecl(name=_required(elem, "name"), source=elem.get("from"))
    if tag == "remote":
        size = elem.get("size")
        try:
            sizeValue = int(size) if size is not None else None
        except ValueError:
            raise DescriptionError(f"<remote name='{elem.get('name')}'>: size must be an integer, got '{size}'") from None
        return RemoteDecl(
            name=_required(elem, "name"),
            url=_required(elem, "url"),
            sha512=_required(elem, "sha512"),
            size=sizeValue,
        )
    if tag == "modrinth":
        return ModrinthDecl(project=_required(elem, "project"), version=_required(elem, "version"))
    if tag == "fabric-server":
        return FabricServerDecl(
            minecraft=_required(elem, "minecraft"),
            loader=_required(elem, "loader"),
            installer=_required(elem, "installer"),
        )
    if tag == "run-script":
        return _readRunScript(elem)
    raise DescriptionError(f"Unknown element <{tag}>")



def readBuildDescription(data: bytes | str) -> BuildDescription:
    """
    Parses jetfuel.xml content into a BuildDescription.

    The root element name is not checked; it must contain exactly one <project>.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as err:
        raise DescriptionError(f"Build description is not well-formed XML: {err}") from err

    project: ProjectInfo | None = None
    contents = []
    try:
        for child in root:
            if child.tag == "project":
                if project is not None:
                    raise DescriptionError("Build description has more than one <project>")
                project = _readProject(child)
            else:
                contents.append(_readDecl(child))
    except ValidationError as err:
        raise DescriptionError(f"Invalid build description: {err}") from err

    if project is None:
        raise DescriptionError("Build description has no <project>")

    description = BuildDescription(project=project, contents=tuple(contents))
    logger.debug("Read build description '%s' (%d top-level declarations)", project.name, len(contents))
    return description



def loadBuildDescription(path: str | Path) -> tuple[BuildDescription, bytes]:
    """Returns the parsed description plus the raw bytes (stored verbatim in archives)."""
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as err:
        raise DescriptionError(f"Failed to read build description '{path}': {err}") from err
    return readBuildDescription(raw), raw
