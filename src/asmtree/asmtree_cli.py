"""
asmtree CLI Entrypoint.

Command-line front end for the assembly parser: read a file (or an inline
string), parse it, and print the tree.

Features:
    - Read source from a file or, with `-s`, from the argument itself.
    - Render as an indented tree (`text`), `json`, or canonical `asm`.
    - Write the rendering to a file with `-o`.
    - Run a built-in sample with `--demo` or with no arguments.
    - `-v` enables debug logging from the lexer and parser.

Example usage:
    asmtree prog.asm
    asmtree -s "mov rax, [rbp+8]"
    asmtree prog.asm -f json -o prog.json
    asmtree --demo

Functions:
    run_asmtree(source, is_string=False, fmt="text", out=None) -> int:
        Lex, parse, render and print; returns a process exit status.
    run_demo(fmt="text") -> int:
        Echo the built-in sample and run it through `run_asmtree`.
    main(argv=None) -> None:
        Parse CLI arguments and dispatch.

Missing or unreadable files and parse errors are reported as one line on
stderr and exit with status 1.
"""

import argparse
import logging
import sys

from asmtree.asmtree_errors import AssemblyError
from asmtree.asmtree_lexer import CharacterStream, Lexer
from asmtree.asmtree_parser import Parser
from asmtree.asmtree_render import Renderer

logger = logging.getLogger(__name__)

DEMO_SOURCE = """\
; demo: a tiny function and some data
STACK_SIZE equ 8*2
main:
    push rbp
    mov rbp, rsp
    sub rsp, STACK_SIZE
    mov rax, 0x10
    mov qword ptr [rbp-8], rax
    lea rsi, [rbx+rcx*4+16]
    mov eax, dword ptr fs:[0x28]
    call compute
    jmp done

compute:
    mov rax, [rbp+16]   ; first stack argument
    add rax, (len - 1) * 4
    ret

msg db "hello", 0
len equ $ - msg
done:
"""


def configure_logging(verbosity: int = 0) -> None:
    """Send log records to stderr; WARNING by default, DEBUG with -v."""
    level = logging.DEBUG if verbosity > 0 else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def run_asmtree(
    source: str,
    is_string: bool = False,
    fmt: str = "text",
    out: str | None = None,
) -> int:
    """
    Run the asmtree pipeline: read, lex, parse, render, then print or write.

    Args:
        source (str): Path to an assembly file, or raw source when `is_string` is True.
        is_string (bool): Treat `source` as source text. Defaults to False.
        fmt (str): Render target ('text', 'json' or 'asm'). Defaults to 'text'.
        out (str | None): Write the rendering here instead of stdout.

    Returns:
        int: 0 on success, 1 if the file cannot be read or the source does not parse.

    Side Effects:
        - Prints the rendering, followed by instruction/label counts for the
          text format, to stdout.
        - Prints error messages to stderr.
        - May write a file.
    """
    # 1. Read source
    origin = "<string>"
    if not is_string:
        origin = source
        try:
            with open(source, encoding="utf-8") as f:
                source = f.read()
        except FileNotFoundError:
            print(f"Error: File '{origin}' not found.", file=sys.stderr)
            return 1
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error reading '{origin}': {e}", file=sys.stderr)
            return 1
        logger.debug("read %d characters from %s", len(source), origin)

    # 2. Lexing and parsing
    try:
        tokens = Lexer(CharacterStream(source, 0, 1, 1)).tokenize()
        program = Parser(tokens).parse()
    except AssemblyError as e:
        print(f"Error parsing {origin}: {e}", file=sys.stderr)
        return 1

    # 3. Rendering
    try:
        output = Renderer(fmt).render(program)
    except RecursionError:
        print(
            f"Error rendering {origin}: expression nested too deeply", file=sys.stderr
        )
        return 1

    # 4. Output result
    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(output)
        print(f"(wrote to {out})")
    else:
        print(output)

    if fmt == "text":
        print(f"\nInstructions parsed: {len(program.instructions)}")
        print(f"Labels found: {len(program.labels)}")
    return 0


def run_demo(fmt: str = "text") -> int:
    banner = "-" * 20
    print(f"Input Assembly Code:\n{banner}\n{DEMO_SOURCE}")
    print(f"Generated AST:\n{banner}")
    return run_asmtree(DEMO_SOURCE, is_string=True, fmt=fmt)


def main(argv: list[str] | None = None) -> None:
    """
    Entry point for the asmtree CLI.

    Runs the demo when no source is given or `--demo` is passed; otherwise
    parses the given file (or string, with `-s`).

    Supported flags:
        - `-s`, `--string`: Interpret source as a raw string instead of a file path.
        - `-f`, `--format`: Output format ('text', 'json' or 'asm'), default 'text'.
        - `-o`, `--out`: Write the rendering to a file.
        - `--demo`: Parse the built-in sample.
        - `-v`, `--verbose`: Enable debug logging.
    """
    parser = argparse.ArgumentParser(
        prog="asmtree", description="Parse x86-64 assembly and print its syntax tree."
    )
    parser.add_argument("source", nargs="?", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "-f",
        "--format",
        dest="fmt",
        choices=("text", "json", "asm"),
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument("-o", "--out", metavar="OUTFILE", help="Output to file")
    parser.add_argument(
        "--demo", action="store_true", help="Parse the built-in sample program"
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Enable debug logging"
    )

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.demo or args.source is None:
        status = run_demo(fmt=args.fmt)
    else:
        status = run_asmtree(
            source=args.source,
            is_string=args.string,
            fmt=args.fmt,
            out=args.out,
        )
    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
