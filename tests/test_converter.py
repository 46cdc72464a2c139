import asyncio
import json
from pathlib import Path

import pytest

from url_to_pdf.config import Config
from url_to_pdf.console import Console
from url_to_pdf.converter import UrlToPdfConverter, build_parser, main
from url_to_pdf.renderer import RenderTimeoutError
from url_to_pdf.tasks import InputError, build_file_tasks


def make_converter(factory, **cli_config):
    return UrlToPdfConverter(Config(cli_config, environ={}), console=Console(),
                             session_factory=factory, show_progress=False)


def write_input(path: Path, data) -> str:
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_bulk_scenario_writes_nested_pdfs(tmp_path, monkeypatch, session_factory):
    monkeypatch.chdir(tmp_path)
    input_file = write_input(tmp_path / "input.json", {"A": "https://x/1", "B": {"C": "https://x/2"}})
    factory = session_factory()

    failures = make_converter(factory, concurrency=2).run("f", [input_file])

    assert failures == []
    assert (tmp_path / "A.pdf").exists()
    assert (tmp_path / "B" / "C.pdf").exists()
    assert not (tmp_path / "error.txt").exists()
    assert factory.session.close_calls == 1


def test_second_bulk_run_does_no_work(tmp_path, monkeypatch, session_factory):
    monkeypatch.chdir(tmp_path)
    input_file = write_input(tmp_path / "input.json", {"A": "https://x/1", "B": {"C": "https://x/2"}})
    make_converter(session_factory()).run("f", [input_file])
    second = session_factory()

    failures = make_converter(second).run("f", [input_file])

    assert failures == []
    assert second.calls == 0
    assert second.session.rendered == []


def test_partial_failure_writes_error_log(tmp_path, monkeypatch, session_factory):
    monkeypatch.chdir(tmp_path)
    input_file = write_input(tmp_path / "input.json", {
        "Good": "https://x/ok",
        "Course": {"Broken": "https://x/broken"},
    })
    factory = session_factory(outcomes={"https://x/broken": RuntimeError("net::ERR_FAILED")})

    failures = make_converter(factory).run("f", [input_file])

    assert [f.title for f in failures] == ["Broken"]
    assert (tmp_path / "Good.pdf").exists()
    assert not (tmp_path / "Course" / "Broken.pdf").exists()
    assert json.loads((tmp_path / "error.txt").read_text(encoding="utf-8")) == [
        {"Course": {"Broken": "https://x/broken"}},
    ]


def test_error_log_location_is_configurable(tmp_path, monkeypatch, session_factory):
    monkeypatch.chdir(tmp_path)
    factory = session_factory(outcomes={"https://x/bad": RuntimeError("boom")})
    log = tmp_path / "logs" / "failed.json"
    log.parent.mkdir()

    make_converter(factory, error_log=str(log)).run("d", ["https://x/bad", "bad.pdf"])

    assert log.exists()
    assert not (tmp_path / "error.txt").exists()


def test_destination_created_after_build_is_still_rendered(tmp_path, monkeypatch, session_factory):
    # Existence is only checked while building the task list; an overlapping
    # run that creates the file in between is not detected.
    monkeypatch.chdir(tmp_path)
    input_file = write_input(tmp_path / "input.json", {"Page": "https://x/page"})
    converter = make_converter(session_factory())
    tasks = build_file_tasks(input_file, console=Console())
    (tmp_path / "Page.pdf").write_bytes(b"written by another run")

    failures = asyncio.run(converter.convert(tasks))

    assert failures == []
    assert converter.session_factory.session.rendered == ["https://x/page"]
    assert (tmp_path / "Page.pdf").read_bytes() == b"%PDF-1.4 fake"


def test_unknown_mode_is_an_input_error(session_factory):
    with pytest.raises(InputError):
        make_converter(session_factory()).prepare_tasks("x", [])


def test_main_direct_mode_timeout_completes_with_error_log(tmp_path, monkeypatch, session_factory):
    monkeypatch.chdir(tmp_path)
    factory = session_factory(outcomes={"https://slow.example": RenderTimeoutError("generating the PDF", 120)})

    main(["--mode", "d", "https://slow.example", "out/page.pdf", "--no-progress"], session_factory=factory)

    out_dir = str((tmp_path / "out").resolve())
    assert json.loads((tmp_path / "error.txt").read_text(encoding="utf-8")) == [
        {out_dir: {"page": "https://slow.example"}},
    ]


def test_main_nothing_to_do_never_starts_browser(tmp_path, monkeypatch, session_factory):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "done.pdf").write_bytes(b"%PDF")
    factory = session_factory()

    main(["-m", "d", "https://x", "done.pdf", "--no-progress"], session_factory=factory)

    assert factory.calls == 0


def test_main_fatal_session_error_exits_1(tmp_path, monkeypatch, session_factory):
    monkeypatch.chdir(tmp_path)
    factory = session_factory(start_error=RuntimeError("Failed to launch chromium"))

    with pytest.raises(SystemExit) as excinfo:
        main(["--mode", "d", "https://x", "page.pdf", "--no-progress"], session_factory=factory)

    assert excinfo.value.code == 1


def test_main_help_exits_0(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--help"])

    assert excinfo.value.code == 0
    assert "JSON File Format" in capsys.readouterr().out


@pytest.mark.parametrize("argv", [
    [],
    ["--mode"],
    ["--mode", "x", "input.json"],
    ["--mode", "f"],
    ["--mode", "d", "https://x"],
    ["--mode", "f", "a.json", "b.json"],
    ["--mode", "f", "a.json", "--concurrency", "lots"],
])
def test_main_invalid_arguments_exit_1(argv, session_factory):
    factory = session_factory()

    with pytest.raises(SystemExit) as excinfo:
        main(argv, session_factory=factory)

    assert excinfo.value.code == 1
    assert factory.calls == 0


def test_main_invalid_settings_exit_1(tmp_path, session_factory):
    with pytest.raises(SystemExit) as excinfo:
        main(["--mode", "f", str(tmp_path / "in.json"), "--margins", "9in"], session_factory=session_factory())

    assert excinfo.value.code == 1


def test_main_missing_input_file_exits_1(tmp_path, session_factory):
    with pytest.raises(SystemExit) as excinfo:
        main(["--mode", "f", str(tmp_path / "missing.json")], session_factory=session_factory())

    assert excinfo.value.code == 1


def test_parser_maps_options():
    args = build_parser().parse_args([
        "--mode", "f", "in.json", "--concurrency", "2", "--timeout", "30",
        "--format", "Letter", "--headed", "--max-scroll-steps", "50",
    ])

    assert args.mode == "f"
    assert args.inputs == ["in.json"]
    assert args.concurrency == 2
    assert args.timeout == 30.0
    assert args.page_format == "Letter"
    assert args.headed is True
    assert args.max_scroll_steps == 50


def test_browser_close_failure_still_writes_error_log(tmp_path, monkeypatch, session_factory):
    monkeypatch.chdir(tmp_path)
    input_file = write_input(tmp_path / "in.json", {"A": "https://x/ok", "B": "https://x/bad"})
    factory = session_factory(
        outcomes={"https://x/bad": RuntimeError("net::ERR_FAILED")},
        close_error=RuntimeError("Browser.close: Connection closed"),
    )

    main(["--mode", "f", input_file, "--no-progress"], session_factory=factory)

    assert (tmp_path / "A.pdf").exists()
    assert json.loads((tmp_path / "error.txt").read_text(encoding="utf-8")) == [
        {"": {"B": "https://x/bad"}},
    ]


def test_clean_run_warns_about_left_over_error_log(tmp_path, monkeypatch, session_factory, capsys):
    monkeypatch.chdir(tmp_path)
    stale = [{"": {"A": "https://x/ok"}}]
    (tmp_path / "error.txt").write_text(json.dumps(stale), encoding="utf-8")
    input_file = write_input(tmp_path / "in.json", {"A": "https://x/ok"})

    failures = make_converter(session_factory()).run("f", [input_file])

    assert failures == []
    assert json.loads((tmp_path / "error.txt").read_text(encoding="utf-8")) == stale
    assert "left over from an earlier run" in capsys.readouterr().out


def test_help_explains_error_log_handling(capsys):
    with pytest.raises(SystemExit):
        main(["--help"])

    assert "existing error.txt untouched" in capsys.readouterr().out
