# ifacemock

Tools for working with Go interface declarations and the mock files
generated from them:

- read Go source files and turn every interface they declare into a model
  of packages, interfaces, methods, parameters and types;
- print that model for debugging and render its types as Go source;
- find and remove generated mock files, together with `matchers`
  directories that hold nothing else. A file counts as generated when its
  first 50 bytes contain `// Code generated by pegomock. DO NOT EDIT.`

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command line

```
ifacemock remove [-r] [-n] [-d] [-s] [PATH]
```

Removes generated mock files from `PATH`, or from the current directory
when no path is given.

- `-r`, `--recursive`: also look in all sub-directories
- `-n`, `--non-interactive`: do not ask for confirmation
- `-d`, `--dry-run`: only list what would be deleted
- `-s`, `--silent`: with `-n`, do not list the files being deleted

If nothing is found, it prints `No files to remove.` Without `-n` the files
are listed and you are asked `Continue? [y/n]:`; the question is repeated
until you answer `y`, `yes`, `n` or `no`, and only `y` or `yes` goes ahead.
End of input counts as no. A `matchers` directory is removed once it is
empty after its generated files are gone.

The same is available from Python as `ifacemock.remove.remove(path, ...)`,
with `ifacemock.remove.find_generated_files` and
`ifacemock.remove.is_generated` for the search on its own.
`ifacemock.cli.run(argv, out, inp)` runs the command with the given
streams and returns its exit code.

## Parsing Go source

```python
import sys
from ifacemock.parse import parse_source

pkg = parse_source(
    "package demo; type Display interface { Show(s string) }",
    "display.go",
)
pkg.print_to(sys.stdout)
```

prints

```
package demo
interface Display
  - method Show
    in:
    - s: string
```

`ifacemock.parse.parse_file(path)` does the same for a file on disk.
Embedded interfaces are resolved from the same file or from auxiliary files
given as `aux_files` (comma-separated `pkg=path` pairs), and explicit import
names can be supplied with `imports` (comma-separated `name=path` pairs;
`.=path` records a dot import). `ifacemock.parse.imports_of_source` returns
the package names and import paths a source text imports. Anything the
parser cannot handle, such as non-empty unnamed interface or struct types,
raises `ifacemock.parse.ParseError`.

## The model

`ifacemock.model` holds `Package`, `Interface`, `Method` and `Parameter`,
and the types `ArrayType`, `ChanType` (with `ChanDir`), `FuncType`,
`MapType`, `NamedType`, `PointerType` and `PredeclaredType`. Every type
renders itself as Go source:

```python
from ifacemock.model import MapType, NamedType, PredeclaredType

t = MapType(PredeclaredType("string"), NamedType("net/http", "Request"))
t.render({"net/http": "http"}, "")   # 'map[string]http.Request'
```

`Package.imports()` gives the set of import paths the model refers to.

## Other helpers

- `ifacemock.util`: checks command arguments (`validate_args`,
  `source_args`, `source_mode`, raising `ArgumentError`), works out a
  package path from a `go.mod` or `GOPATH` layout, writes a file only when
  its content changed (`write_file_if_changed`), switches the working
  directory for a block (`within_working_dir`), and calls a function
  repeatedly until a `threading.Event` is set (`ticker`).
- `ifacemock.failhandling`: `Option`, `with_fail_handler` and `with_t`
  install a fail handler on a mock object; `build_testing_t_fail_handler`
  reports the failure message with a pruned call stack to any object with
  an `errorf(message)` method.

## What it does not do

The package does not write mock or matcher source code. There is no
`generate` or `watch` command: the only command is `remove`. Interfaces are
read from source files only; there is no loading of a package by its import
path.