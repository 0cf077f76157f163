import json

import pytest

from pdf_tutor.config.compose import Container
from pdf_tutor.config.settings import AppSettings
from pdf_tutor.interface.cli import main as cli

PAGES = [
    "Photosynthesis turns light, water and carbon dioxide into sugar and oxygen.",
    "Chlorophyll in the chloroplasts absorbs mostly red and blue light.",
]


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)


@pytest.fixture
def container(tmp_path, embedding_backend, llm, clock, make_extractor):
    c = Container(
        AppSettings(
            vector_backend="memory",
            blobstore_backend="local",
            blob_dir=str(tmp_path / "blobs"),
            document_db_url="sqlite://",
            telemetry_enabled=False,
            embedding_call_delay_s=0.0,
        )
    )
    c._embedding_backend = embedding_backend
    c._llm = llm
    c._clock = clock
    c._extractor = make_extractor(PAGES)
    return c


@pytest.fixture
def pdf(tmp_path):
    path = tmp_path / "plants.pdf"
    path.write_bytes(b"%PDF-1.4 plants")
    return path


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_parser_show_options():
    args = cli.build_parser().parse_args(["show", "plants.pdf", "--page", "2", "--only", "mcqs"])
    assert (args.command, args.filename, args.page, args.only) == ("show", "plants.pdf", 2, "mcqs")


def test_process_prints_report(container, pdf, capsys):
    assert cli.main(["process", str(pdf)], container=container) == 0

    report = json.loads(capsys.readouterr().out)
    assert report["state"] == "done"
    assert report["filename"] == "plants.pdf"
    assert report["total_pages"] == 2
    assert report["embedded_pages"] == [1, 2]


def test_process_with_custom_name_then_show(container, pdf, capsys):
    cli.main(["process", str(pdf), "--name", "biology.pdf"], container=container)
    capsys.readouterr()

    assert cli.main(["show", "biology.pdf", "--page", "1"], container=container) == 0
    out = capsys.readouterr().out
    assert "TRANSCRIPT (page 1):" in out
    assert "A concise two sentence summary." in out
    assert "1. What does the page describe?" in out
    assert "* A) Cells" in out


def test_show_only_transcript(container, pdf, capsys):
    cli.main(["process", str(pdf)], container=container)
    capsys.readouterr()

    cli.main(["show", "plants.pdf", "--page", "2", "--only", "transcript"], container=container)
    out = capsys.readouterr().out
    assert "TRANSCRIPT (page 2):" in out
    assert "MCQS" not in out


def test_show_unknown_document_exits_with_error(container, capsys):
    assert cli.main(["show", "missing.pdf", "--page", "1"], container=container) == 2
    assert "NotFoundError" in capsys.readouterr().err


def test_missing_file_exits_with_error(container, tmp_path, capsys):
    assert cli.main(["process", str(tmp_path / "nope.pdf")], container=container) == 2
    assert "FileNotFoundError" in capsys.readouterr().err


def test_delete(container, pdf, capsys):
    cli.main(["process", str(pdf)], container=container)
    capsys.readouterr()

    assert cli.main(["delete", "plants.pdf"], container=container) == 0
    assert "Deleted plants.pdf (3 vector ids)" in capsys.readouterr().out
    assert len(container.get_vector_index()) == 0
