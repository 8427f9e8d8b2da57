"""Patch ``next.config.*`` so the static export can be served by Shuttle.

The backend serves the files produced by ``next export`` from
``backend/static``, which only works if Next.js is told not to use its image
optimisation server and to emit ``<route>/index.html`` files.  The generated
config is edited so that its exported object looks like::

    const nextConfig = {
      ...,
      images: {
        ...,
        unoptimized: true,
      },
      trailingSlash: true,
    }

The source is parsed with tree-sitter and the wanted changes are recorded
as byte-range edits, which are then spliced into the original text.  Bytes
outside the edits are never touched, and a file that already satisfies the
requirements produces no edits, so patching is idempotent.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from tree_sitter import Node
from tree_sitter_language_pack import get_parser

from create_shuttle_app.errors import ScaffoldError
from create_shuttle_app.scaffolder.templates import TemplateRenderer
from create_shuttle_app.utils import print_warning

CONFIG_FILENAMES = ("next.config.js", "next.config.mjs", "next.config.cjs", "next.config.ts")
CONFIG_IDENTIFIER = b"nextConfig"
DEFAULT_INDENT = "  "

_DECLARATIONS = {"lexical_declaration", "variable_declaration"}
_WRAPPERS = {"parenthesized_expression", "as_expression", "satisfies_expression"}


@dataclass(frozen=True)
class RequiredProperty:
    """A property the config object must contain.

    ``value`` is either literal source text or a mapping of nested required
    properties.  An existing property is only rewritten when ``overwrite``
    is set and its value differs.
    """

    value: Union[str, dict[str, "RequiredProperty"]]
    overwrite: bool = False


REQUIRED_PROPERTIES: dict[str, RequiredProperty] = {
    "images": RequiredProperty({"unoptimized": RequiredProperty("true", overwrite=True)}),
    "trailingSlash": RequiredProperty("true"),
}


@dataclass
class Edit:
    """Replace ``source[start:end]`` with ``text``."""

    start: int
    end: int
    text: str


# ---------------------------------------------------------------------------
# Tree helpers
# ---------------------------------------------------------------------------


def _unwrap(node: Node | None) -> Node | None:
    """Strip parentheses and TypeScript ``as`` / ``satisfies`` around an expression."""
    while node is not None and node.type in _WRAPPERS:
        node = node.named_children[0] if node.named_children else None
    return node


def _text(node: Node) -> str:
    return (node.text or b"").decode("utf-8")


def _property_name(member: Node) -> str | None:
    """Name of an object member, for identifier and string keys only."""
    if member.type == "shorthand_property_identifier":
        return _text(member)
    if member.type != "pair":
        return None

    key = member.child_by_field_name("key")
    if key is None:
        return None
    if key.type == "property_identifier":
        return _text(key)
    if key.type == "string":
        return _text(key)[1:-1]
    return None


def _module_exports_object(statement: Node) -> Node | None:
    expression = statement.named_children[0] if statement.named_children else None
    if expression is None or expression.type != "assignment_expression":
        return None
    left = expression.child_by_field_name("left")
    right = _unwrap(expression.child_by_field_name("right"))
    if left is None or left.text != b"module.exports":
        return None
    if right is None or right.type != "object":
        return None
    return right


def find_config_object(root: Node) -> Node | None:
    """Locate the object literal the config file exports.

    The ``nextConfig`` declaration generated by create-next-app wins; a
    literal assigned directly to ``module.exports`` or ``export default`` is
    used otherwise.
    """
    fallback: Node | None = None

    for statement in root.named_children:
        declaration: Node | None = statement

        if statement.type == "export_statement":
            value = _unwrap(statement.child_by_field_name("value"))
            if fallback is None and value is not None and value.type == "object":
                fallback = value
            declaration = statement.child_by_field_name("declaration")
        elif statement.type == "expression_statement":
            if fallback is None:
                fallback = _module_exports_object(statement)
            continue

        if declaration is None or declaration.type not in _DECLARATIONS:
            continue

        for declarator in declaration.named_children:
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            if name is None or name.text != CONFIG_IDENTIFIER:
                continue
            value = _unwrap(declarator.child_by_field_name("value"))
            if value is not None and value.type == "object":
                return value

    return fallback


# ---------------------------------------------------------------------------
# Edit recording
# ---------------------------------------------------------------------------


def _render_value(
    value: str | dict[str, RequiredProperty],
    indent: str,
    unit: str,
    multiline: bool,
    newline: str = "\n",
) -> str:
    if isinstance(value, str):
        return value

    entries = [
        f"{key}: {_render_value(prop.value, indent + unit, unit, multiline, newline)}"
        for key, prop in value.items()
    ]
    if not multiline:
        return "{ " + ", ".join(entries) + " }"

    inner = indent + unit
    return "{" + newline + "".join(f"{inner}{entry},{newline}" for entry in entries) + indent + "}"


class ConfigPatcher:
    """Records the edits that bring a config object up to requirements.

    Inserted lines use the line ending the source already uses.
    """

    def __init__(self, source: bytes) -> None:
        self.source = source
        self.edits: list[Edit] = []
        self.newline = "\r\n" if b"\r\n" in source else "\n"

    def _line_indent(self, offset: int) -> str:
        line_start = self.source.rfind(b"\n", 0, offset) + 1
        line = self.source[line_start:offset]
        return line[: len(line) - len(line.lstrip(b" \t"))].decode("utf-8")

    def _starts_line(self, offset: int) -> bool:
        line_start = self.source.rfind(b"\n", 0, offset) + 1
        return not self.source[line_start:offset].strip()

    def _render_entries(self, missing: list[tuple[str, RequiredProperty]], indent: str, unit: str) -> list[str]:
        return [
            f"{self.newline}{indent}{key}: {_render_value(prop.value, indent, unit, True, self.newline)}"
            for key, prop in missing
        ]

    def patch_object(self, obj: Node, required: dict[str, RequiredProperty]) -> None:
        """Visit each member of *obj*, then append whatever was not seen."""
        seen: set[str] = set()

        for member in obj.named_children:
            name = _property_name(member)
            if name is None:
                continue
            seen.add(name)
            prop = required.get(name)
            if prop is not None:
                self._patch_member(member, name, prop)

        missing = [(key, prop) for key, prop in required.items() if key not in seen]
        if missing:
            self._append(obj, missing)

    def _patch_member(self, member: Node, name: str, prop: RequiredProperty) -> None:
        if isinstance(prop.value, dict):
            value = _unwrap(member.child_by_field_name("value")) if member.type == "pair" else None
            if value is not None and value.type == "object":
                self.patch_object(value, prop.value)
            return

        if not prop.overwrite:
            return

        if member.type == "shorthand_property_identifier":
            self.edits.append(Edit(member.start_byte, member.end_byte, f"{name}: {prop.value}"))
            return

        value = member.child_by_field_name("value")
        if value is not None and _text(value) != prop.value:
            self.edits.append(Edit(value.start_byte, value.end_byte, prop.value))

    def _append(self, obj: Node, missing: list[tuple[str, RequiredProperty]]) -> None:
        members = [child for child in obj.named_children if child.type != "comment"]
        comments = [child for child in obj.named_children if child.type == "comment"]
        base = self._line_indent(obj.start_byte)
        multiline = obj.start_point[0] != obj.end_point[0]

        if not members and not comments:
            entries = self._render_entries(missing, base + DEFAULT_INDENT, DEFAULT_INDENT)
            body = "".join(f"{entry}," for entry in entries)
            self.edits.append(Edit(obj.start_byte, obj.end_byte, "{" + body + self.newline + base + "}"))
            return

        if not members:
            # Only comments: insert after the last one and keep them all.
            last_comment = comments[-1]
            if not multiline:
                joined = ", ".join(f"{key}: {_render_value(prop.value, '', '', False)}" for key, prop in missing)
                self.edits.append(Edit(last_comment.end_byte, last_comment.end_byte, f" {joined}"))
                return

            if self._starts_line(last_comment.start_byte):
                indent = self._line_indent(last_comment.start_byte)
            else:
                indent = base + DEFAULT_INDENT
            unit = indent[len(base):] if indent.startswith(base) and len(indent) > len(base) else DEFAULT_INDENT
            text = "".join(f"{entry}," for entry in self._render_entries(missing, indent, unit))
            if last_comment.end_point[0] == obj.end_point[0]:
                text += self.newline + base
            self.edits.append(Edit(last_comment.end_byte, last_comment.end_byte, text))
            return

        last = members[-1]
        separator = last.next_sibling
        while separator is not None and separator.type == "comment":
            separator = separator.next_sibling
        has_comma = separator is not None and separator.type == ","

        # Same-line comments stay attached to the member they follow.
        anchor = separator if has_comma else last
        insert_at = anchor.end_byte
        follower = anchor.next_sibling
        while follower is not None and follower.type == "comment" and follower.start_point[0] == anchor.end_point[0]:
            insert_at = follower.end_byte
            follower = follower.next_sibling

        if multiline:
            indent = self._line_indent(members[0].start_byte)
            unit = indent[len(base):] if indent.startswith(base) and len(indent) > len(base) else DEFAULT_INDENT
            entries = self._render_entries(missing, indent, unit)
            text = "".join(f"{entry}," for entry in entries) if has_comma else ",".join(entries)
        else:
            joined = ", ".join(f"{key}: {_render_value(prop.value, '', '', False)}" for key, prop in missing)
            text = f" {joined}," if has_comma else f" {joined}"

        if has_comma:
            self.edits.append(Edit(insert_at, insert_at, text))
        elif insert_at == last.end_byte:
            self.edits.append(Edit(insert_at, insert_at, "," + text))
        else:
            self.edits.append(Edit(last.end_byte, last.end_byte, ","))
            self.edits.append(Edit(insert_at, insert_at, text))

    def apply(self) -> bytes:
        """Splice the recorded edits into the source, last edit first."""
        result = self.source
        for edit in sorted(self.edits, key=lambda e: (e.start, e.end), reverse=True):
            result = result[: edit.start] + edit.text.encode("utf-8") + result[edit.end :]
        return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def language_for(path: Path) -> str:
    """tree-sitter grammar for a config file name."""
    return "typescript" if path.suffix in (".ts", ".mts", ".cts") else "javascript"


def patch_config_source(source: bytes, language: str = "javascript") -> bytes | None:
    """Return *source* with the required properties applied.

    Returns:
        The patched source, or ``None`` if no config object was found.

    Raises:
        ScaffoldError: If the grammar cannot be loaded or the source does not parse.
    """
    try:
        parser = get_parser(language)
    except Exception as exc:
        raise ScaffoldError(f"Failed to load the {language} parser", [str(exc)]) from exc

    tree = parser.parse(source)
    root = tree.root_node
    if root.has_error:
        raise ScaffoldError("Failed to parse the Next.js config", ["The file contains syntax errors."])

    config_object = find_config_object(root)
    if config_object is None:
        return None

    patcher = ConfigPatcher(source)
    patcher.patch_object(config_object, REQUIRED_PROPERTIES)
    return patcher.apply()


def find_next_config(project_path: Path) -> Path | None:
    for filename in CONFIG_FILENAMES:
        candidate = project_path / filename
        if candidate.is_file():
            return candidate
    return None


def patch_next_config(project_path: str | Path, renderer: TemplateRenderer | None = None) -> Path:
    """Fix up the Next.js config so ``next export`` works with Shuttle.

    Writes a fresh ``next.config.js`` if the project has none, and fills an
    empty config file with the same defaults.

    Returns:
        Path of the config file that was patched or created.
    """
    project_path = Path(project_path)
    config_path = find_next_config(project_path)

    if config_path is None:
        config_path = project_path / "next.config.js"
        (renderer or TemplateRenderer()).render_to_file("next.config.js.j2", config_path, {"esm": False})
        return config_path

    source = config_path.read_bytes()
    if not source.strip():
        esm = config_path.suffix in (".mjs", ".ts")
        (renderer or TemplateRenderer()).render_to_file("next.config.js.j2", config_path, {"esm": esm})
        return config_path

    patched = patch_config_source(source, language_for(config_path))
    if patched is None:
        print_warning(
            f"  Could not find the config object in {config_path.name}; "
            "set images.unoptimized and trailingSlash to true manually."
        )
        return config_path

    if patched != source:
        config_path.write_bytes(patched)
    return config_path
