from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import DocstrConfig, load_config
from .diagnostics import Diagnostic
from .errors import DocstrUserError
from .expander import expand_source, rewrite_source
from .jsonic import dumps as jdumps
from .report_schema import DiagnosticM, ExpansionReport
from .version import tool_version

_LOG = logging.getLogger("docstr")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="docstr",
        description="docstr: doc-комментарии `///` -> строковый литерал или вызов макроса",
        add_help=True,
    )
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {tool_version()}")
    sub = p.add_subparsers(dest="cmd", required=True)

    # Общие аргументы для expand/rewrite
    def add_common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument(
            "input",
            nargs="?",
            default="-",
            help="путь к файлу или - для чтения из stdin (по умолчанию)",
        )
        sp.add_argument(
            "--format",
            choices=["text", "json"],
            default=None,
            help="формат вывода (по умолчанию из docstr.yaml, иначе text)",
        )
        sp.add_argument(
            "--config",
            type=Path,
            default=None,
            help="путь к docstr.yaml (по умолчанию ищется в текущем каталоге)",
        )
        sp.add_argument(
            "--verbose",
            action="store_true",
            help="отладочное логирование в stderr",
        )

    sp_expand = sub.add_parser("expand", help="Раскрыть аргументы одного вызова макроса")
    add_common(sp_expand)

    sp_rewrite = sub.add_parser("rewrite", help="Раскрыть все вызовы макроса в исходном файле")
    add_common(sp_rewrite)
    sp_rewrite.add_argument(
        "--macro",
        default=None,
        help="имя макроса (по умолчанию из docstr.yaml, иначе docstr)",
    )

    return p


def _setup_logging(level: str) -> None:
    _LOG.setLevel(level)
    if not _LOG.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        _LOG.addHandler(h)


def _read_input(arg: str) -> str:
    if arg == "-":
        return sys.stdin.read()
    path = Path(arg)
    if not path.is_file():
        raise DocstrUserError(f"Input file not found: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DocstrUserError(f"Failed to read {path}: {e}") from e


def _emit(fmt: str, output: str, diagnostics: List[Diagnostic]) -> int:
    ok = not diagnostics
    if fmt == "json":
        report = ExpansionReport(
            ok=ok,
            output=output if ok else None,
            diagnostics=[DiagnosticM.from_diagnostic(d) for d in diagnostics],
            version=tool_version(),
        )
        sys.stdout.write(jdumps(report.model_dump(mode="json")))
        return 0 if ok else 1

    # В текстовом режиме отчёт compile_error! тоже идёт в stdout
    sys.stdout.write(output.rstrip("\n") + "\n")
    for d in diagnostics:
        sys.stderr.write(f"error: {d}\n")
    return 0 if ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    ns = _build_parser().parse_args(argv)

    try:
        cfg: DocstrConfig = load_config(Path.cwd(), ns.config)
        _setup_logging("DEBUG" if ns.verbose else cfg.log_level)
        fmt = ns.format or cfg.format
        text = _read_input(ns.input)

        if ns.cmd == "expand":
            expansion = expand_source(text)
            return _emit(fmt, expansion.source, expansion.diagnostics)

        if ns.cmd == "rewrite":
            macro = ns.macro or cfg.macro
            _LOG.debug(f"Rewriting `{macro}!` invocations")
            output, diagnostics = rewrite_source(text, macro)
            return _emit(fmt, output, diagnostics)

    except DocstrUserError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
