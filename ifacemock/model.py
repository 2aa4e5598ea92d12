"""Data model of interfaces and types that mocks are generated from."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Mapping, Optional, TextIO


class ChanDir(IntEnum):
    """Direction of a channel type."""

    BOTH = 0
    RECV = 1
    SEND = 2


class Type(ABC):
    """A type that can appear in a method signature."""

    @abstractmethod
    def render(
        self, package_map: Optional[Mapping[str, str]] = None, package_override: str = ""
    ) -> str:
        """Return the source spelling of the type.

        ``package_map`` maps import paths to the names they are referred to by;
        types in ``package_override`` are written without a qualifier.
        """

    @abstractmethod
    def add_imports(self, imports: set[str]) -> None:
        """Add the import paths this type needs to ``imports``."""

    def __str__(self) -> str:
        return self.render()


@dataclass
class Parameter:
    """An argument or return value of a method; the name may be empty."""

    type: Type
    name: str = ""

    def print_to(self, out: TextIO) -> None:
        name = self.name or '""'
        out.write(f"    - {name}: {self.type.render(None, '')}\n")


@dataclass
class ArrayType(Type):
    """An array (``length >= 0``) or slice (``length == -1``)."""

    length: int
    type: Type

    def render(self, package_map=None, package_override=""):
        prefix = "[]" if self.length < 0 else f"[{self.length}]"
        return prefix + self.type.render(package_map, package_override)

    def add_imports(self, imports):
        self.type.add_imports(imports)


@dataclass
class ChanType(Type):
    """A channel type."""

    dir: ChanDir
    type: Type

    def render(self, package_map=None, package_override=""):
        element = self.type.render(package_map, package_override)
        if self.dir == ChanDir.RECV:
            return "<-chan " + element
        if self.dir == ChanDir.SEND:
            return "chan<- " + element
        return "chan " + element

    def add_imports(self, imports):
        self.type.add_imports(imports)


def _signature_imports(
    inputs: list[Parameter],
    variadic: Optional[Parameter],
    outputs: list[Parameter],
    imports: set[str],
) -> None:
    for param in inputs:
        param.type.add_imports(imports)
    if variadic is not None:
        variadic.type.add_imports(imports)
    for param in outputs:
        param.type.add_imports(imports)


@dataclass
class FuncType(Type):
    """A function type."""

    inputs: list[Parameter] = field(default_factory=list)
    outputs: list[Parameter] = field(default_factory=list)
    variadic: Optional[Parameter] = None

    def render(self, package_map=None, package_override=""):
        args = [p.type.render(package_map, package_override) for p in self.inputs]
        if self.variadic is not None:
            args.append("..." + self.variadic.type.render(package_map, package_override))
        rets = [p.type.render(package_map, package_override) for p in self.outputs]
        returns = ", ".join(rets)
        if len(rets) == 1:
            returns = " " + returns
        elif len(rets) > 1:
            returns = " (" + returns + ")"
        return "func(" + ", ".join(args) + ")" + returns

    def add_imports(self, imports):
        _signature_imports(self.inputs, self.variadic, self.outputs, imports)


@dataclass
class MapType(Type):
    """A map type."""

    key: Type
    value: Type

    def render(self, package_map=None, package_override=""):
        return (
            "map["
            + self.key.render(package_map, package_override)
            + "]"
            + self.value.render(package_map, package_override)
        )

    def add_imports(self, imports):
        self.key.add_imports(imports)
        self.value.add_imports(imports)


@dataclass
class NamedType(Type):
    """An exported type of a package; the package may be empty."""

    package: str
    type: str

    def render(self, package_map=None, package_override=""):
        if package_override == self.package:
            return self.type
        qualifier = (package_map or {}).get(self.package, "")
        return qualifier + "." + self.type

    def add_imports(self, imports):
        if self.package:
            imports.add(self.package)


@dataclass
class PointerType(Type):
    """A pointer to another type."""

    type: Type

    def render(self, package_map=None, package_override=""):
        return "*" + self.type.render(package_map, package_override)

    def add_imports(self, imports):
        self.type.add_imports(imports)


@dataclass
class PredeclaredType(Type):
    """A predeclared type such as ``int``."""

    name: str

    def render(self, package_map=None, package_override=""):
        return self.name

    def add_imports(self, imports):
        return None


@dataclass
class Method:
    """A single method of an interface."""

    name: str
    inputs: list[Parameter] = field(default_factory=list)
    outputs: list[Parameter] = field(default_factory=list)
    variadic: Optional[Parameter] = None

    def print_to(self, out: TextIO) -> None:
        out.write(f"  - method {self.name}\n")
        if self.inputs:
            out.write("    in:\n")
            for param in self.inputs:
                param.print_to(out)
        if self.variadic is not None:
            out.write("    ...:\n")
            self.variadic.print_to(out)
        if self.outputs:
            out.write("    out:\n")
            for param in self.outputs:
                param.print_to(out)

    def add_imports(self, imports: set[str]) -> None:
        _signature_imports(self.inputs, self.variadic, self.outputs, imports)


@dataclass
class Interface:
    """An interface with its methods."""

    name: str
    methods: list[Method] = field(default_factory=list)

    def print_to(self, out: TextIO) -> None:
        out.write(f"interface {self.name}\n")
        for method in self.methods:
            method.print_to(out)

    def add_imports(self, imports: set[str]) -> None:
        for method in self.methods:
            method.add_imports(imports)


@dataclass
class Package:
    """A package, or the subset of it that holds the interfaces of interest."""

    name: str
    interfaces: list[Interface] = field(default_factory=list)
    dot_imports: list[str] = field(default_factory=list)

    def print_to(self, out: TextIO) -> None:
        out.write(f"package {self.name}\n")
        for interface in self.interfaces:
            interface.print_to(out)

    def imports(self) -> set[str]:
        """Return the set of import paths the package's interfaces need."""
        result: set[str] = set()
        for interface in self.interfaces:
            interface.add_imports(result)
        return result