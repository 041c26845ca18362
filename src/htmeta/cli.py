"""Command-line interface.

Usage:
    htmeta index.kdl                 # writes index.html
    htmeta index.kdl out.html -t 2   # 2-space indentation
    htmeta index.kdl - --minify      # minified, to stdout
    htmeta index.kdl --watch         # rebuild whenever a used file changes

Output is written only once the whole document built successfully.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from htmeta.emitter import EmitterBuilder, HtmlEmitter
from htmeta.environment import terminal
from htmeta.environment.exceptions import HtmetaError
from htmeta.environment.loaders import read_source
from htmeta.parser import parse
from htmeta.plugins.template import TemplatePlugin
from htmeta.watcher import Watcher

logger = logging.getLogger(__name__)

STDOUT = "-"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="htmeta",
        description="Transpile a KDL document into HTML",
    )
    parser.add_argument("input", type=Path, help="Source document")
    parser.add_argument(
        "output",
        nargs="?",
        help="Output file (default: INPUT with a .html extension, '-' for stdout)",
    )
    parser.add_argument("-m", "--minify", action="store_true", help="No indentation or newlines")
    parser.add_argument(
        "-t", "--tab-size", type=int, default=4, metavar="N", help="Spaces per level (default: 4)"
    )
    parser.add_argument(
        "--follow-source",
        action="store_true",
        help="Reuse the indentation of the source document",
    )
    parser.add_argument("-w", "--watch", action="store_true", help="Rebuild on file changes")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def make_builder(args: argparse.Namespace) -> EmitterBuilder:
    builder = EmitterBuilder().add_plugin(TemplatePlugin())
    if args.minify:
        builder.minify()
    else:
        builder.indent(args.tab_size)
        if args.follow_source:
            builder.follow_source()
    return builder


def build(input_path: Path, emitter: HtmlEmitter) -> str:
    """Build ``input_path`` into a string.

    After the build, successful or not, ``used_files`` lists what it read.
    """
    filename = input_path.as_posix()
    document = parse(read_source(input_path), filename)
    return emitter.render(document, filename=filename)


def used_files(input_path: Path, emitter: HtmlEmitter) -> set[str]:
    """The input plus every file pulled in by the last build of ``emitter``."""
    return {input_path.as_posix(), *emitter.dependencies.files()}


def write_output(html: str, output: str) -> None:
    if output == STDOUT:
        sys.stdout.write(html)
        sys.stdout.flush()
        return
    Path(output).write_text(html, encoding="utf-8")


def run_once(args: argparse.Namespace, emitter: HtmlEmitter, output: str) -> None:
    html = build(args.input, emitter)
    write_output(html, output)
    logger.debug(f"Wrote {output} ({len(html)} chars)")


def report(error: HtmetaError | OSError) -> None:
    if isinstance(error, HtmetaError):
        message = error.format_compact()
    else:
        message = terminal.format_error_header(None, str(error))
    print(message, file=sys.stderr)


def watch(args: argparse.Namespace, emitter: HtmlEmitter, output: str) -> int:
    watcher = Watcher([args.input])
    while True:
        try:
            run_once(args, emitter, output)
        except (HtmetaError, OSError) as e:
            report(e)
            # Keep what was watched and add what the failed build got to.
            watcher.replace({*watcher.paths, *used_files(args.input, emitter)})
        else:
            watcher.replace(used_files(args.input, emitter))
            print(terminal.dim_text(f"Built {output}, watching {len(watcher.paths)} files"), file=sys.stderr)
        try:
            changed = watcher.wait_for_change()
        except KeyboardInterrupt:
            return 0
        logger.debug(f"Changed: {', '.join(sorted(str(p) for p in changed))}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.tab_size < 0:
        print(terminal.format_error_header(None, "--tab-size must be >= 0"), file=sys.stderr)
        return 2

    emitter = make_builder(args).build()
    output = args.output or args.input.with_suffix(".html").as_posix()

    if args.watch:
        return watch(args, emitter, output)

    try:
        run_once(args, emitter, output)
    except (HtmetaError, OSError) as e:
        report(e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
