"""Builds a model of the interfaces declared in a Go source file."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from ifacemock.model import (
    ArrayType,
    ChanDir,
    ChanType,
    FuncType,
    Interface,
    MapType,
    Method,
    NamedType,
    Package,
    Parameter,
    PointerType,
    PredeclaredType,
    Type,
)


class ParseError(ValueError):
    """Raised when a source file cannot be read or turned into a model."""


_KEYWORDS = frozenset(
    "break case chan const continue default defer else fallthrough for func go goto "
    "if import interface map package range return select struct switch type var".split()
)
_TYPE_KEYWORDS = frozenset({"map", "chan", "func", "interface", "struct"})
_SEMI_KEYWORDS = frozenset({"break", "continue", "fallthrough", "return"})

_LEXEME_RE = re.compile(
    r"""
    (?P<ws>[ \t\r\f]+)
    |(?P<nl>\n)
    |(?P<lcomment>//[^\n]*)
    |(?P<bcomment>/\*.*?\*/)
    |(?P<raw>`[^`]*`)
    |(?P<str>"(?:\\.|[^"\\\n])*")
    |(?P<char>'(?:\\.|[^'\\\n])*')
    |(?P<num>(?:0[xX][0-9a-fA-F_]+|\d[\d_]*(?:\.\d*)?(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?)i?)
    |(?P<ident>[^\W\d]\w*)
    |(?P<op>\.\.\.|<-|<<=|>>=|&\^=|&&|\|\||\+\+|--|==|!=|<=|>=|:=|<<|>>|&\^
        |[-+*/%&|^]=|[-+*/%&|^<>=!~(){}\[\],;.:])
    """,
    re.VERBOSE | re.DOTALL,
)


@dataclass(frozen=True)
class _Tok:
    kind: str
    value: str
    line: int
    col: int


@dataclass(frozen=True)
class _Pos:
    filename: str
    line: int
    col: int


def _needs_semicolon(tok: _Tok) -> bool:
    if tok.kind == "ident":
        return tok.value not in _KEYWORDS or tok.value in _SEMI_KEYWORDS
    if tok.kind in ("num", "str", "raw", "char"):
        return True
    return tok.kind == "op" and tok.value in ("++", "--", ")", "]", "}")


def _tokenize(text: str, filename: str) -> list[_Tok]:
    lexemes: list[_Tok] = []
    line, line_start, pos = 1, 0, 0
    last: Optional[_Tok] = None
    while pos < len(text):
        m = _LEXEME_RE.match(text, pos)
        if m is None:
            raise ParseError(
                f"{filename}:{line}:{pos - line_start + 1}: illegal character {text[pos]!r}"
            )
        kind, value = m.lastgroup, m.group()
        col = pos - line_start + 1
        if kind == "nl" or (kind == "bcomment" and "\n" in value):
            if last is not None and _needs_semicolon(last):
                lexemes.append(_Tok("op", ";", line, col))
                last = None
        elif kind not in ("ws", "lcomment", "bcomment"):
            last = _Tok(kind, value, line, col)
            lexemes.append(last)
        newlines = value.count("\n")
        if newlines:
            line += newlines
            line_start = pos + value.rfind("\n") + 1
        pos = m.end()
    col = pos - line_start + 1
    if last is not None and _needs_semicolon(last):
        lexemes.append(_Tok("op", ";", line, col))
    lexemes.append(_Tok("eof", "", line, col))
    return lexemes


# Syntax nodes of type expressions.


@dataclass
class _Ident:
    pos: _Pos
    name: str


@dataclass
class _Selector:
    pos: _Pos
    package: str
    name: str


@dataclass
class _Star:
    pos: _Pos
    elem: "_Node"


@dataclass
class _Array:
    pos: _Pos
    length: Optional[str]
    length_pos: Optional[_Pos]
    elem: "_Node"


@dataclass
class _Map:
    pos: _Pos
    key: "_Node"
    value: "_Node"


@dataclass
class _Chan:
    pos: _Pos
    dir: ChanDir
    elem: "_Node"


@dataclass
class _Field:
    names: list[str]
    type: "_Node"
    pos: _Pos


@dataclass
class _Func:
    pos: _Pos
    params: list[_Field]
    results: Optional[list[_Field]]


@dataclass
class _InterfaceNode:
    pos: _Pos
    fields: list[_Field]


@dataclass
class _Struct:
    pos: _Pos
    non_empty: bool


@dataclass
class _Ellipsis:
    pos: _Pos
    elem: "_Node"


_Node = Union[_Ident, _Selector, _Star, _Array, _Map, _Chan, _Func, _InterfaceNode, _Struct, _Ellipsis]

_NODE_NAMES = {
    _Ident: "Ident",
    _Selector: "SelectorExpr",
    _Star: "StarExpr",
    _Array: "ArrayType",
    _Map: "MapType",
    _Chan: "ChanType",
    _Func: "FuncType",
    _InterfaceNode: "InterfaceType",
    _Struct: "StructType",
    _Ellipsis: "Ellipsis",
}


@dataclass
class _File:
    name: str
    imports: list[tuple[Optional[str], str]] = field(default_factory=list)
    interfaces: list[tuple[str, _InterfaceNode]] = field(default_factory=list)


class _Parser:
    def __init__(self, text: str, filename: str):
        self.filename = filename
        self.lexemes = _tokenize(text, filename)
        self.index = 0

    def peek(self, ahead: int = 0) -> _Tok:
        return self.lexemes[min(self.index + ahead, len(self.lexemes) - 1)]

    def next(self) -> _Tok:
        tok = self.peek()
        if tok.kind != "eof":
            self.index += 1
        return tok

    def is_op(self, value: str, ahead: int = 0) -> bool:
        tok = self.peek(ahead)
        return tok.kind == "op" and tok.value == value

    def is_keyword(self, value: str) -> bool:
        tok = self.peek()
        return tok.kind == "ident" and tok.value == value

    def accept(self, value: str) -> bool:
        if self.is_op(value):
            self.next()
            return True
        return False

    def fail(self, tok: _Tok, message: str) -> ParseError:
        found = tok.value if tok.kind != "eof" else "EOF"
        return ParseError(f"{self.filename}:{tok.line}:{tok.col}: {message}, found {found!r}")

    def expect(self, value: str) -> _Tok:
        if not self.is_op(value):
            raise self.fail(self.peek(), f"expected {value!r}")
        return self.next()

    def expect_ident(self) -> _Tok:
        tok = self.peek()
        if tok.kind != "ident" or tok.value in _KEYWORDS:
            raise self.fail(tok, "expected identifier")
        return self.next()

    def pos(self, tok: _Tok) -> _Pos:
        return _Pos(self.filename, tok.line, tok.col)

    def parse_file(self) -> _File:
        if not self.is_keyword("package"):
            raise self.fail(self.peek(), "expected 'package'")
        self.next()
        result = _File(self.expect_ident().value)
        self.end_decl()
        while self.is_keyword("import"):
            self.next()
            if self.accept("("):
                while not self.is_op(")"):
                    result.imports.append(self.import_spec())
                    if not self.accept(";"):
                        break
                self.expect(")")
            else:
                result.imports.append(self.import_spec())
            self.end_decl()
        while self.peek().kind != "eof":
            if self.is_keyword("type"):
                self.type_decl(result)
            elif not self.accept(";"):
                start = self.index
                self.skip()
                if self.index == start:
                    raise self.fail(self.peek(), "unexpected token")
        return result

    def end_decl(self) -> None:
        if not self.accept(";") and self.peek().kind != "eof":
            raise self.fail(self.peek(), "expected ';'")

    def import_spec(self) -> tuple[Optional[str], str]:
        name: Optional[str] = None
        tok = self.peek()
        if tok.kind == "ident":
            name = self.next().value
        elif self.accept("."):
            name = "."
        tok = self.peek()
        if tok.kind not in ("str", "raw"):
            raise self.fail(tok, "expected import path")
        self.next()
        return name, tok.value[1:-1]

    def skip(self) -> None:
        depth = 0
        while True:
            tok = self.peek()
            if tok.kind == "eof":
                return
            if tok.kind == "op":
                if tok.value in "([{":
                    depth += 1
                elif tok.value in ")]}":
                    if depth == 0:
                        return
                    depth -= 1
                elif tok.value == ";" and depth == 0:
                    return
            self.next()

    def type_decl(self, result: _File) -> None:
        self.next()
        if self.accept("("):
            while not self.is_op(")") and self.peek().kind != "eof":
                self.type_spec(result)
                if not self.accept(";"):
                    break
            self.expect(")")
        else:
            self.type_spec(result)
        self.accept(";")

    def type_spec(self, result: _File) -> None:
        name = self.expect_ident().value
        if self.is_op("["):
            self.skip()
            return
        self.accept("=")
        if self.is_keyword("interface"):
            node = self.parse_type()
            assert isinstance(node, _InterfaceNode)
            result.interfaces.append((name, node))
        else:
            self.skip()

    def starts_type(self) -> bool:
        tok = self.peek()
        if tok.kind == "ident":
            return tok.value not in _KEYWORDS or tok.value in _TYPE_KEYWORDS
        return tok.kind == "op" and tok.value in ("*", "[", "(", "<-")

    def parse_type(self) -> _Node:
        tok = self.peek()
        p = self.pos(tok)
        if tok.kind == "ident":
            value = tok.value
            if value == "map":
                self.next()
                self.expect("[")
                key = self.parse_type()
                self.expect("]")
                return _Map(p, key, self.parse_type())
            if value == "chan":
                self.next()
                direction = ChanDir.SEND if self.accept("<-") else ChanDir.BOTH
                return _Chan(p, direction, self.parse_type())
            if value == "func":
                self.next()
                params, results = self.signature()
                return _Func(p, params, results)
            if value == "interface":
                self.next()
                return _InterfaceNode(p, self.interface_body())
            if value == "struct":
                self.next()
                return self.struct_body(p)
            if value in _KEYWORDS:
                raise self.fail(tok, "expected type")
            self.next()
            if self.accept("."):
                return _Selector(p, value, self.expect_ident().value)
            return _Ident(p, value)
        if tok.kind == "op":
            if self.accept("*"):
                return _Star(p, self.parse_type())
            if self.accept("["):
                if self.accept("]"):
                    return _Array(p, None, None, self.parse_type())
                length = self.next()
                self.expect("]")
                return _Array(p, length.value, self.pos(length), self.parse_type())
            if self.accept("<-"):
                if not self.is_keyword("chan"):
                    raise self.fail(self.peek(), "expected 'chan'")
                self.next()
                return _Chan(p, ChanDir.RECV, self.parse_type())
            if self.accept("("):
                inner = self.parse_type()
                self.expect(")")
                return inner
            if self.accept("..."):
                return _Ellipsis(p, self.parse_type())
        raise self.fail(tok, "expected type")

    def struct_body(self, p: _Pos) -> _Struct:
        self.expect("{")
        depth = 0
        non_empty = False
        while True:
            tok = self.peek()
            if tok.kind == "eof":
                raise self.fail(tok, "expected '}'")
            if tok.kind == "op" and tok.value == "{":
                depth += 1
            elif tok.kind == "op" and tok.value == "}":
                if depth == 0:
                    break
                depth -= 1
            if not (tok.kind == "op" and tok.value == ";"):
                non_empty = True
            self.next()
        self.expect("}")
        return _Struct(p, non_empty)

    def interface_body(self) -> list[_Field]:
        self.expect("{")
        fields: list[_Field] = []
        while not self.is_op("}"):
            tok = self.peek()
            if tok.kind == "eof":
                raise self.fail(tok, "expected '}'")
            p = self.pos(tok)
            if tok.kind == "ident" and tok.value not in _KEYWORDS and self.is_op("(", 1):
                self.next()
                params, results = self.signature()
                fields.append(_Field([tok.value], _Func(p, params, results), p))
            else:
                fields.append(_Field([], self.parse_type(), p))
            if not self.accept(";"):
                break
        self.expect("}")
        return fields

    def signature(self) -> tuple[list[_Field], Optional[list[_Field]]]:
        params = self.parse_params()
        results: Optional[list[_Field]] = None
        if self.is_op("("):
            results = self.parse_params()
        elif self.starts_type():
            p = self.pos(self.peek())
            results = [_Field([], self.parse_type(), p)]
        return params, results

    def parse_params(self) -> list[_Field]:
        self.expect("(")
        items: list[tuple[Optional[str], _Node, _Pos]] = []
        while not self.is_op(")"):
            tok = self.peek()
            p = self.pos(tok)
            if (
                tok.kind == "ident"
                and tok.value not in _KEYWORDS
                and not (self.is_op(",", 1) or self.is_op(")", 1) or self.is_op(".", 1))
            ):
                self.next()
                items.append((tok.value, self.parse_type(), p))
            else:
                items.append((None, self.parse_type(), p))
            if not self.accept(","):
                break
        close = self.expect(")")
        if not any(name is not None for name, _, _ in items):
            return [_Field([], node, p) for _, node, p in items]
        fields: list[_Field] = []
        pending: list[str] = []
        pending_pos: Optional[_Pos] = None
        for name, node, p in items:
            if name is None:
                if not isinstance(node, _Ident):
                    raise self.fail(close, "mixed named and unnamed parameters")
                pending.append(node.name)
                pending_pos = pending_pos or p
            else:
                fields.append(_Field(pending + [name], node, pending_pos or p))
                pending, pending_pos = [], None
        if pending:
            raise self.fail(close, "mixed named and unnamed parameters")
        return fields


def _parse(text: str, filename: str) -> _File:
    return _Parser(text, filename).parse_file()


def _imports_of(file: _File) -> dict[str, str]:
    result: dict[str, str] = {}
    for name, path in file.imports:
        if name == "_":
            continue
        if name is not None:
            package = name[:-1] if name.endswith(".") else name
        else:
            last = path.rsplit("/", 1)[-1]
            package = last.split(".", 1)[0]
        if package in result:
            raise ParseError(f'imported package collision: "{package}" imported twice')
        result[package] = path
    return result


def imports_of_source(text: str, filename: str = "<source>") -> dict[str, str]:
    """Return the package names and import paths imported by a source text.

    Unnamed imports are named after the last path component, up to its first dot.
    """
    return _imports_of(_parse(text, filename))


def _errorf(pos: _Pos, message: str) -> ParseError:
    return ParseError(f"{pos.filename}:{pos.line}:{pos.col}: {message}")


class _ModelBuilder:
    def __init__(self) -> None:
        self.imports: dict[str, str] = {}
        self.aux_files: list[_File] = []
        self.aux_interfaces: dict[str, dict[str, _InterfaceNode]] = {}

    def add_aux_interfaces(self, package: str, file: _File) -> None:
        known = self.aux_interfaces.setdefault(package, {})
        for name, node in file.interfaces:
            known[name] = node

    def parse_aux_files(self, spec: Optional[str]) -> None:
        spec = (spec or "").strip()
        if not spec:
            return
        for kv in spec.split(","):
            parts = kv.split("=", 1)
            if len(parts) != 2:
                raise ParseError(f"bad aux file spec: {kv}")
            try:
                text = Path(parts[1]).read_text()
            except OSError as e:
                raise ParseError(str(e)) from e
            file = _parse(text, parts[1])
            self.aux_files.append(file)
            self.add_aux_interfaces(parts[0], file)

    def build(self, file: _File) -> Package:
        for package, path in _imports_of(file).items():
            self.imports.setdefault(package, path)
        for aux in self.aux_files:
            for package, path in _imports_of(aux).items():
                self.imports.setdefault(package, path)
        interfaces = [self.interface(name, "", node) for name, node in file.interfaces]
        return Package(file.name, interfaces)

    def interface(self, name: str, package: str, node: _InterfaceNode) -> Interface:
        result = Interface(name)
        for fld in node.fields:
            kind = fld.type
            if isinstance(kind, _Func):
                if len(fld.names) != 1:
                    raise ParseError(
                        f"expected one name for interface {name}, got {len(fld.names)}"
                    )
                inputs, variadic, outputs = self.func(package, kind)
                result.methods.append(Method(fld.names[0], inputs, outputs, variadic))
            elif isinstance(kind, _Ident):
                embedded = self.aux_interfaces.get("", {}).get(kind.name)
                if embedded is None:
                    raise _errorf(kind.pos, f"unknown embedded interface {kind.name}")
                result.methods.extend(self.interface(kind.name, package, embedded).methods)
            elif isinstance(kind, _Selector):
                embedded = self.aux_interfaces.get(kind.package, {}).get(kind.name)
                if embedded is None:
                    raise _errorf(
                        kind.pos, f"unknown embedded interface {kind.package}.{kind.name}"
                    )
                path = self.imports.get(kind.package)
                if path is None:
                    raise _errorf(kind.pos, f"unknown package {kind.package}")
                result.methods.extend(self.interface(kind.name, path, embedded).methods)
            else:
                raise ParseError(
                    f"don't know how to mock method of type {_NODE_NAMES[type(kind)]}"
                )
        return result

    def func(
        self, package: str, node: _Func
    ) -> tuple[list[Parameter], Optional[Parameter], list[Parameter]]:
        params = list(node.params)
        variadic: Optional[Parameter] = None
        if params and isinstance(params[-1].type, _Ellipsis):
            var_fields = params[-1:]
            params = params[:-1]
            try:
                variadic = self.field_list(package, var_fields)[0]
            except ParseError as e:
                raise _errorf(var_fields[0].pos, f"failed parsing variadic argument: {e}") from e
        try:
            inputs = self.field_list(package, params)
        except ParseError as e:
            raise _errorf(node.pos, f"failed parsing arguments: {e}") from e
        outputs: list[Parameter] = []
        if node.results is not None:
            try:
                outputs = self.field_list(package, node.results)
            except ParseError as e:
                raise _errorf(node.pos, f"failed parsing returns: {e}") from e
        return inputs, variadic, outputs

    def field_list(self, package: str, fields: list[_Field]) -> list[Parameter]:
        result: list[Parameter] = []
        for fld in fields:
            kind = self.type(package, fld.type)
            if not fld.names:
                result.append(Parameter(kind))
            else:
                result.extend(Parameter(kind, name) for name in fld.names)
        return result

    def type(self, package: str, node: _Node) -> Type:
        if isinstance(node, _Array):
            length = -1
            if node.length is not None:
                try:
                    length = int(node.length)
                except ValueError:
                    raise _errorf(
                        node.length_pos or node.pos, f"bad array size: {node.length!r}"
                    ) from None
            return ArrayType(length, self.type(package, node.elem))
        if isinstance(node, _Chan):
            return ChanType(node.dir, self.type(package, node.elem))
        if isinstance(node, _Ellipsis):
            return self.type(package, node.elem)
        if isinstance(node, _Func):
            inputs, variadic, outputs = self.func(package, node)
            return FuncType(inputs, outputs, variadic)
        if isinstance(node, _Ident):
            if node.name[:1].isupper():
                return NamedType(package, node.name)
            return PredeclaredType(node.name)
        if isinstance(node, _InterfaceNode):
            if node.fields:
                raise _errorf(node.pos, "can't handle non-empty unnamed interface types")
            return PredeclaredType("interface{}")
        if isinstance(node, _Map):
            return MapType(self.type(package, node.key), self.type(package, node.value))
        if isinstance(node, _Selector):
            path = self.imports.get(node.package)
            if path is None:
                raise _errorf(node.pos, f'unknown package "{node.package}"')
            return NamedType(path, node.name)
        if isinstance(node, _Star):
            return PointerType(self.type(package, node.elem))
        if isinstance(node, _Struct):
            if node.non_empty:
                raise _errorf(node.pos, "can't handle non-empty unnamed struct types")
            return PredeclaredType("struct{}")
        raise ParseError(f"don't know how to parse type {_NODE_NAMES.get(type(node), node)}")


def parse_source(
    text: str,
    filename: str = "<source>",
    imports: Optional[str] = None,
    aux_files: Optional[str] = None,
) -> Package:
    """Build a package model of all interfaces declared in ``text``.

    ``imports`` holds comma-separated ``name=path`` pairs that take precedence
    over the file's own imports (``.=path`` marks a dot import); ``aux_files``
    holds comma-separated ``pkg=path`` pairs of files with embedded interfaces.
    """
    try:
        file = _parse(text, filename)
    except ParseError as e:
        raise ParseError(f"failed parsing source file {filename}: {e}") from e
    builder = _ModelBuilder()
    dot_imports: list[str] = []
    if imports:
        for kv in imports.split(","):
            if "=" not in kv:
                raise ParseError(f"bad import spec: {kv}")
            key, value = kv.split("=", 1)
            if key == ".":
                if value not in dot_imports:
                    dot_imports.append(value)
            else:
                builder.imports[key] = value
    builder.parse_aux_files(aux_files)
    builder.add_aux_interfaces("", file)
    package = builder.build(file)
    package.dot_imports = dot_imports
    return package


def parse_file(
    source: str, imports: Optional[str] = None, aux_files: Optional[str] = None
) -> Package:
    """Read the source file at ``source`` and build its package model."""
    try:
        text = Path(source).read_text()
    except OSError as e:
        raise ParseError(f"failed parsing source file {source}: {e}") from e
    return parse_source(text, source, imports, aux_files)