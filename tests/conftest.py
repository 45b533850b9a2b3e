import json
import os
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

import pytest

from docstr.lexer import tokenize
from docstr.tokens import Delimiter, Group, Ident, Literal, Punct, TokenTree


def write(p: Path, text: str) -> Path:
    """Записывает текст в файл, создавая родительские директории при необходимости."""
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")
    return p


def doc(text: str) -> List[TokenTree]:
    """Pseudo-attribute `# [doc = "text"]` as the compiler lowers `///text`."""
    return [
        Punct("#"),
        Group(Delimiter.BRACKET, (Ident("doc"), Punct("="), Literal.string(text))),
    ]


def idents(tokens: List[TokenTree]) -> List[str]:
    return [t.name for t in tokens if isinstance(t, Ident)]


def run_cli(root: Path, *args: str, stdin: Optional[str] = None) -> subprocess.CompletedProcess:
    env = os.environ.copy()
    # пакет импортируется из корня репозитория даже без установки
    repo_root = str(Path(__file__).resolve().parent.parent)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [repo_root, env.get("PYTHONPATH")]))
    return subprocess.run(
        [sys.executable, "-m", "docstr.cli", *args],
        cwd=root, env=env, input=stdin, capture_output=True, text=True, encoding="utf-8"
    )


def jload(s: str):
    return json.loads(s)


@pytest.fixture
def lex():
    return tokenize
