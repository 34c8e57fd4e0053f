"""
# Compilation & CLI Tests

"""

import io
import os
import sys
import json
from io import StringIO
from textwrap import dedent

import pytest


def write(root, rel: str, txt: str) -> str:
    """Write `txt` to `root / rel`, creating parent directories. Returns the absolute path."""
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(txt)
    return str(p)


def read(root, rel: str) -> str:
    return (root / rel).read_text()


def test_resolve_inputs(tmp_path):
    from tsmerge import resolve_inputs, RootKind

    write(tmp_path, "src/a.ts", "")
    write(tmp_path, "src/sub/b.tsx", "")
    write(tmp_path, "src/.hidden/c.ts", "")
    write(tmp_path, "src/readme.md", "")
    single = write(tmp_path, "other/d.ts", "")

    ctx = resolve_inputs([str(tmp_path / "src"), single], str(tmp_path / "lib"))
    lib = str(tmp_path / "lib")
    src = str(tmp_path / "src")
    assert list(ctx.files) == [
        os.path.join(src, "a.ts"),
        os.path.join(src, "sub", "b.tsx"),
        single,
    ]
    assert [f.out_dir for f in ctx.files.values()] == [
        lib,
        os.path.join(lib, "sub"),
        lib,
    ]
    assert ctx.files[single].root.kind == RootKind.FILE
    assert ctx.directories == {src: lib, os.path.join(src, "sub"): os.path.join(lib, "sub")}
    assert set(ctx.out_dirs) == {lib, os.path.join(lib, "sub")}
    assert ctx.out_dirs[lib].basenames == {"a", "d"}
    # Planning writes nothing
    assert not (tmp_path / "lib").exists()


def test_collision(tmp_path):
    from tsmerge import compile, CompilerOptions, CollisionError, PlanningError

    write(tmp_path, "src1/foo.ts", "export const a = 1;\n")
    write(tmp_path, "src2/foo.tsx", "export const b = 2;\n")

    with pytest.raises(CollisionError) as e:
        compile(
            [str(tmp_path / "src1"), str(tmp_path / "src2")],
            CompilerOptions(out_dir=str(tmp_path / "lib")),
        )
    assert isinstance(e.value, PlanningError)
    assert str(e.value).endswith('foo.tsx" will overwrite another file')
    assert not (tmp_path / "lib").exists()


def test_duplicate(tmp_path):
    from tsmerge import compile, CompilerOptions, DuplicateInputError

    foo = write(tmp_path, "src/foo.ts", "export const a = 1;\n")

    with pytest.raises(DuplicateInputError) as e:
        compile([str(tmp_path / "src"), foo], CompilerOptions(out_dir=str(tmp_path / "lib")))
    assert str(e.value) == f'Duplicate file "{foo}"'
    assert not (tmp_path / "lib").exists()


def test_output_dir_required(tmp_path):
    from tsmerge import compile, CompilerOptions, ConfigError

    with pytest.raises(ConfigError):
        compile([str(tmp_path)], CompilerOptions())


def test_merge_two_roots(tmp_path):
    from tsmerge import compile, CompilerOptions, Count

    write(tmp_path, "src1/foo.ts", "export const foo = 1;\n")
    write(
        tmp_path,
        "src2/bar.ts",
        dedent(
            """\
            import { foo } from "../src1/foo";
            import * as esm from '../src1/foo.js';
            import React from "react";
            export const bar = foo;
            """
        ),
    )

    count = compile(
        [str(tmp_path / "src1"), str(tmp_path / "src2")],
        CompilerOptions(out_dir=str(tmp_path / "lib")),
        stream=StringIO(),
    )
    assert count == Count(warnings=0, errors=0)
    assert read(tmp_path, "lib/foo.js") == "export const foo = 1;\n"
    assert read(tmp_path, "lib/bar.js") == dedent(
        """\
        import { foo } from "./foo";
        import * as esm from './foo.js';
        import React from "react";
        export const bar = foo;
        """
    )
    assert sorted(os.listdir(tmp_path / "lib")) == ["bar.js", "foo.js"]


def test_nested_and_index_imports(tmp_path):
    from tsmerge import compile, CompilerOptions

    write(
        tmp_path,
        "src/util/index.ts",
        'import { main } from "../../app/main";\nexport const u = main;\n',
    )
    write(tmp_path, "src/a/b/c.ts", 'export * from "../../util";\nexport { x } from "../x";\n')
    write(tmp_path, "src/a/x.ts", "export const x = 1;\n")
    main = write(
        tmp_path,
        "app/main.ts",
        'import { u } from "../src/util";\nconst c = import("../src/a/b/c");\nexport const main = 1;\n',
    )

    count = compile(
        [str(tmp_path / "src"), main],
        CompilerOptions(out_dir=str(tmp_path / "lib")),
        stream=StringIO(),
    )
    assert count.errors == 0
    assert read(tmp_path, "lib/main.js") == (
        'import { u } from "./util";\nconst c = import("./a/b/c");\nexport const main = 1;\n'
    )
    assert read(tmp_path, "lib/util/index.js") == (
        'import { main } from "../main";\nexport const u = main;\n'
    )
    assert read(tmp_path, "lib/a/b/c.js") == (
        'export * from "../../util";\nexport { x } from "../x";\n'
    )


def test_path_map(tmp_path):
    from tsmerge import compile, CompilerOptions

    write(tmp_path, "shared/x.ts", "export const x = 1;\n")
    write(tmp_path, "shared/deep/y.ts", "export const y = 1;\n")
    write(
        tmp_path,
        "src/a.ts",
        'import { x } from "../shared/x";\nimport { y } from "../shared/deep/y";\n',
    )

    options = CompilerOptions(
        out_dir=str(tmp_path / "lib"),
        path_map={
            str(tmp_path / "shared"): str(tmp_path / "dist" / "shared"),
            str(tmp_path / "shared" / "deep"): str(tmp_path / "dist" / "deep"),
        },
    )
    count = compile([str(tmp_path / "src")], options, stream=StringIO())
    assert count.errors == 0
    assert read(tmp_path, "lib/a.js") == (
        'import { x } from "../dist/shared/x";\nimport { y } from "../dist/deep/y";\n'
    )
    # The caller's options are left unmodified
    assert options.out_dir == str(tmp_path / "lib")


def test_unresolved_imports(tmp_path):
    from tsmerge import compile, CompilerOptions, UnresolvedImportError

    write(tmp_path, "other/z.ts", "export const z = 1;\n")
    write(tmp_path, "src/a.ts", 'import { z } from "../other/z";\n')

    # Left unchanged by default
    count = compile(
        [str(tmp_path / "src")],
        CompilerOptions(out_dir=str(tmp_path / "lib")),
        stream=StringIO(),
    )
    assert count.errors == 0
    assert read(tmp_path, "lib/a.js") == 'import { z } from "../other/z";\n'

    with pytest.raises(UnresolvedImportError):
        compile(
            [str(tmp_path / "src")],
            CompilerOptions(out_dir=str(tmp_path / "lib2")),
            strict_imports=True,
            stream=StringIO(),
        )


def test_errors_prevent_output(tmp_path, monkeypatch):
    from tsmerge import compile, CompilerOptions, Count

    monkeypatch.chdir(tmp_path)
    write(tmp_path, "src/a.ts", 'import { b } from "./missing";\n')
    write(tmp_path, "src/c.ts", 'const s = "unterminated;\n')

    stream = StringIO()
    count = compile(
        [str(tmp_path / "src")], CompilerOptions(out_dir=str(tmp_path / "lib")), stream=stream
    )
    assert count == Count(warnings=0, errors=2)
    lines = stream.getvalue().splitlines()
    assert lines == [
        os.path.join("src", "c.ts") + ":1:11: error: Unterminated string literal.",
        os.path.join("src", "a.ts")
        + ":1:19: error: Cannot find module './missing' or its corresponding type declarations.",
    ]
    assert not (tmp_path / "lib").exists()


def test_invalid_utf8_is_an_error(tmp_path, monkeypatch):
    from tsmerge import compile, CompilerOptions, Count

    monkeypatch.chdir(tmp_path)
    write(tmp_path, "src/a.ts", "export const a = 1;\n")
    (tmp_path / "src" / "b.ts").write_bytes(b'export const b = 1;\nexport const c = "\xff";\n')

    stream = StringIO()
    count = compile(
        [str(tmp_path / "src")], CompilerOptions(out_dir=str(tmp_path / "lib")), stream=stream
    )
    assert count == Count(warnings=0, errors=1)
    assert stream.getvalue().splitlines() == [
        os.path.join("src", "b.ts") + ":2:19: error: File appears to be binary.",
    ]
    assert not (tmp_path / "lib").exists()


def test_maps_and_declarations(tmp_path):
    from tsmerge import compile, CompilerOptions

    write(tmp_path, "src1/foo.ts", "export const foo = 1;\n")
    write(tmp_path, "src1/types.d.ts", "export type T = number;\n")
    write(
        tmp_path,
        "src2/sub/bar.ts",
        'import { foo } from "../../src1/foo";\nexport const bar = foo;\n',
    )

    options = CompilerOptions(
        out_dir=str(tmp_path / "lib"),
        source_map=True,
        declaration=True,
        declaration_map=True,
    )
    count = compile([str(tmp_path / "src1"), str(tmp_path / "src2")], options, stream=StringIO())
    assert count.errors == 0

    # Declaration inputs are never emitted
    assert sorted(os.listdir(tmp_path / "lib")) == [
        "foo.d.ts",
        "foo.d.ts.map",
        "foo.js",
        "foo.js.map",
        "sub",
    ]

    js = read(tmp_path, "lib/sub/bar.js")
    assert js == (
        'import { foo } from "../foo";\nexport const bar = foo;\n'
        "//# sourceMappingURL=bar.js.map"
    )
    smap = json.loads(read(tmp_path, "lib/sub/bar.js.map"))
    assert smap["version"] == 3
    assert smap["file"] == "bar.js"
    assert smap["sources"] == ["../../src2/sub/bar.ts"]

    assert read(tmp_path, "lib/sub/bar.d.ts") == (
        'import { foo } from "../foo";\nexport {};\n//# sourceMappingURL=bar.d.ts.map\n'
    )
    dmap = json.loads(read(tmp_path, "lib/sub/bar.d.ts.map"))
    assert dmap["file"] == "bar.d.ts"
    assert dmap["sources"] == ["../../src2/sub/bar.ts"]

    assert read(tmp_path, "lib/foo.d.ts") == "export {};\n//# sourceMappingURL=foo.d.ts.map\n"


def test_engine_transpile():
    from tsmerge import CompilerOptions, ModuleEngine

    txt = 'import a from "./a";\nexport default a;\n'
    assert ModuleEngine.transpile(txt, CompilerOptions()) == txt

    out = ModuleEngine.transpile(
        txt, CompilerOptions(inline_source_map=True, inline_sources=True)
    )
    assert out.startswith(txt)
    assert "//# sourceMappingURL=data:application/json;base64," in out


def test_import_rewriter(tmp_path):
    from tsmerge import resolve_inputs, parse_str, to_str, ImportRewriter, rewrite_specifier

    foo = write(tmp_path, "src1/foo.ts", "")
    bar = write(tmp_path, "src2/bar.ts", "")
    ctx = resolve_inputs([str(tmp_path / "src1"), str(tmp_path / "src2")], str(tmp_path / "lib"))

    assert rewrite_specifier(ctx, bar, "react") is None
    assert rewrite_specifier(ctx, bar, "../src1/foo") == "./foo"
    assert rewrite_specifier(ctx, bar, "./nowhere") is None

    src = parse_str(
        "import a from '../src1/foo';\nconst s = '../src1/foo';\n", path=bar
    )
    out = ImportRewriter(ctx)(src)
    # Quote style is kept, and literals outside module references are untouched
    assert to_str(out) == "import a from './foo';\nconst s = '../src1/foo';\n"
    # The input tree is not modified
    assert to_str(src) == "import a from '../src1/foo';\nconst s = '../src1/foo';\n"


def test_cli_compile(tmp_path, monkeypatch, capsys):
    from tsmerge.cli import main

    monkeypatch.chdir(tmp_path)
    write(tmp_path, "src1/foo.ts", "export const foo = 1;\n")
    write(tmp_path, "src2/bar.ts", 'import { foo } from "../src1/foo";\n')

    assert main(["-o", "lib", "-m", "src1", "src2"]) == 0
    assert read(tmp_path, "lib/bar.js") == (
        'import { foo } from "./foo";\n//# sourceMappingURL=bar.js.map'
    )
    assert (tmp_path / "lib" / "bar.js.map").exists()
    assert not (tmp_path / "lib" / "bar.d.ts").exists()
    assert capsys.readouterr().err == ""


def test_cli_errors(tmp_path, monkeypatch, capsys):
    from tsmerge.cli import main

    monkeypatch.chdir(tmp_path)
    write(tmp_path, "src/a.ts", 'import { b } from "./b";\n')

    assert main(["src"]) == 1
    assert capsys.readouterr().err == "tsmerge: Output directory is required for files\n"

    assert main(["-o", "lib", "-p", "a:b:c", "src"]) == 1
    assert capsys.readouterr().err == 'tsmerge: Invalid path map option "a:b:c"\n'

    assert main(["-o", "lib", "-Wbogus", "src"]) == 1
    assert capsys.readouterr().err == 'tsmerge: Unknown warning option "bogus"\n'

    assert main(["-o", "lib", "src"]) == 1
    err = capsys.readouterr().err
    assert "error: Cannot find module './b'" in err
    assert err.endswith("1 error generated.\n")
    assert not (tmp_path / "lib").exists()


def test_cli_tsconfig(tmp_path, monkeypatch, capsys):
    from tsmerge.cli import main

    monkeypatch.chdir(tmp_path)
    write(tmp_path, "src/a.ts", "export const a = 1;\n")
    write(tmp_path, "tsconfig.json", '{"compilerOptions": {"declaration": true}}')

    assert main(["-o", "lib", "src"]) == 0
    assert read(tmp_path, "lib/a.d.ts") == "export {};\n"

    write(
        tmp_path,
        "tsconfig.json",
        '{"compilerOptions": {"alwaysStrict": true, "noUncheckedIndexedAccess": true}}',
    )
    assert main(["-o", "lib", "src"]) == 0

    write(tmp_path, "tsconfig.json", '{"compilerOptions": {"bogus": true}}')
    assert main(["-o", "lib", "src"]) == 1
    assert capsys.readouterr().err == "tsmerge: error: Unknown compiler option 'bogus'.\n"


def test_cli_stdin(tmp_path, monkeypatch, capsys):
    from tsmerge.cli import main

    monkeypatch.chdir(tmp_path)
    txt = 'import a from "./a";\n'

    monkeypatch.setattr(sys, "stdin", io.StringIO(txt))
    assert main([]) == 0
    assert capsys.readouterr().out == txt

    monkeypatch.setattr(sys, "stdin", io.StringIO(txt))
    assert main(["-m"]) == 0
    out = capsys.readouterr().out
    assert out.startswith(txt + "//# sourceMappingURL=data:application/json;base64,")


def test_cli_version(capsys):
    from tsmerge.cli import main

    with pytest.raises(SystemExit):
        main(["--version"])
    assert capsys.readouterr().out.strip() == "0.1.0"
