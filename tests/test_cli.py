from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from docletmd import cli
from tests._fixtures.source_builder import SourceBuilder


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logger = logging.getLogger("docletmd")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True


def _write_doclets(project: SourceBuilder) -> Path:
    doclets = [
        project.doclet(
            "src/widget.js",
            kind="module",
            name="widget",
            longname="module:widget",
            description="Widget helpers.",
        ),
        project.doclet(
            "src/widget.js",
            kind="function",
            name="render",
            longname="module:widget.render",
            memberof="module:widget",
            meta={"code": {"name": "export function render"}},
        ),
        project.doclet(
            "src/widget.js",
            kind="function",
            name="paint",
            longname="module:widget~paint",
            memberof="module:widget",
        ),
        project.doclet(
            "lib/orphan.js",
            kind="function",
            name="helper",
            longname="helper",
            scope="global",
            meta={"code": {"name": "exports.helper"}},
        ),
    ]
    path = project.root / "doclets.json"
    path.write_text(json.dumps(doclets), encoding="utf-8")
    return path


def test_build_parser_subcommands() -> None:
    parser = cli._build_parser()

    enrich = parser.parse_args(["enrich", "doclets.json", "-o", "out.json", "--verbose"])
    build = parser.parse_args(["build", "doclets.json", "-d", "site", "--includes", "public"])

    assert enrich.command == "enrich"
    assert enrich.output == "out.json"
    assert enrich.verbose is True
    assert build.command == "build"
    assert build.destination == "site"
    assert build.includes == "public"
    assert build.verbose is False


def test_enrich_prints_enriched_doclets(
    project: SourceBuilder, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_doclets(project)
    monkeypatch.chdir(project.root)

    cli.main(["enrich", "doclets.json"])

    doclets = json.loads(capsys.readouterr().out)
    by_longname = {doclet["longname"]: doclet for doclet in doclets}
    assert by_longname["module:widget"]["tocDescription"] == "Widget helpers."
    assert by_longname["module:widget.render"]["access"] == "public"
    assert by_longname["module:widget~paint"]["access"] == "private"
    assert by_longname["helper"]["memberof"] == "module:lib/orphan"
    assert by_longname["module:lib/orphan"]["kind"] == "module"


def test_enrich_writes_output_file(
    project: SourceBuilder, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_doclets(project)
    monkeypatch.chdir(project.root)

    cli.main(["enrich", "doclets.json", "-o", "enriched.json"])

    assert "enriched.json" in capsys.readouterr().out
    assert len(json.loads((project.root / "enriched.json").read_text(encoding="utf-8"))) == 5


def test_build_writes_markdown(
    project: SourceBuilder, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_doclets(project)
    monkeypatch.chdir(project.root)

    cli.main(["build", "doclets.json", "-d", "docs", "--includes", "public"])

    docs = project.root / "docs"
    assert "3 file(s) written to docs" in capsys.readouterr().out
    widget = (docs / "src_widget.md").read_text(encoding="utf-8")
    assert "render()" in widget
    assert "paint" not in widget
    assert (docs / "lib_orphan.md").is_file()
    assert "[widget](src_widget.md)" in (docs / "toc.md").read_text(encoding="utf-8")
    assert (docs / "images" / "module.svg").is_file()


def test_build_reads_config_file(
    project: SourceBuilder, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_doclets(project)
    project.write(
        ".docletmd.yml",
        """
        opts:
          destination: site
        templates:
          markdown:
            tocfilename: README.md
        """,
    )
    monkeypatch.chdir(project.root)

    cli.main(["build", "doclets.json"])

    assert (project.root / "site" / "README.md").is_file()
    assert (project.root / "site" / "src_widget.md").is_file()


def test_build_exits_non_zero_when_a_file_fails(
    project: SourceBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write_doclets(project)
    project.write("theme/templates/module.md.j2", "{% if doc.name %}unterminated")
    project.write(".docletmd.yml", "opts:\n  destination: docs\n  template: theme\n")
    monkeypatch.chdir(project.root)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["build", "doclets.json"])

    assert excinfo.value.code == 1
    assert (project.root / "docs" / "toc.md").is_file()
    assert not (project.root / "docs" / "src_widget.md").exists()


def test_missing_doclet_file_exits(project: SourceBuilder, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(project.root)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["enrich", "missing.json"])

    assert excinfo.value.code == 1


def test_log_file_receives_debug_records(
    project: SourceBuilder, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_doclets(project)
    monkeypatch.chdir(project.root)

    cli.main(["enrich", "doclets.json", "-o", "enriched.json", "--log-file", "logs/run.log"])

    log = (project.root / "logs" / "run.log").read_text(encoding="utf-8")
    assert "docletmd.host: Loaded 4 doclet(s)" in log
    assert "Synthesized module module:lib/orphan" in log
    assert "Loaded 4 doclet(s)" not in capsys.readouterr().err


def test_log_file_option_accepted_before_and_after_subcommand() -> None:
    parser = cli._build_parser()

    before = parser.parse_args(["--log-file", "a.log", "build", "doclets.json"])
    after = parser.parse_args(["build", "doclets.json", "--log-file", "b.log"])
    absent = parser.parse_args(["build", "doclets.json"])

    assert before.log_file == "a.log"
    assert after.log_file == "b.log"
    assert absent.log_file is None
