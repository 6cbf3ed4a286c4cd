import signal

import pytest
from typer.testing import CliRunner
from unittest.mock import patch, MagicMock

# Add the project root to the path to allow imports from the app
import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import main
from main import app
from cache_service import FileCacheStore, MemoryCacheStore

runner = CliRunner()

SNIPPET = "export default function routes(app) { /* fetched */ }" + " " * 200


@pytest.fixture(autouse=True)
def no_signal_install():
    with patch('main.signal.signal') as mock_signal:
        yield mock_signal


@pytest.fixture
def mock_retriever():
    with patch('main.Retriever') as mock_cls:
        mock_cls.return_value.retrieve.return_value = SNIPPET
        yield mock_cls


@pytest.fixture
def mock_setup():
    with patch('main.scaffold_service.setup_framework', return_value=True) as mock_fw, \
         patch('main.scaffold_service.verify_environment', return_value=True) as mock_env:
        yield {"setup": mock_fw, "verify": mock_env}


def test_generate_end_to_end_flow(tmp_path, mock_retriever, mock_setup):
    result = runner.invoke(app, [
        "--cache-dir", str(tmp_path / "cache"),
        "generate",
        "--description", "dashboard with login routes",
        "--framework", "Koa",
        "--output-dir", str(tmp_path),
    ])
    assert result.exit_code == 0, result.stdout
    assert "🚀 Strike Project Generator started..." in result.stdout
    assert "✅ Project for Koa created successfully" in result.stdout

    project = tmp_path / "strike-project"
    assert (project / "routes" / "example.js").read_text() == SNIPPET
    assert not (project / "controllers").exists()

    args, kwargs = mock_retriever.call_args
    assert isinstance(args[0], FileCacheStore)
    assert kwargs["timeout_ms"] == main.config.FETCH_TIMEOUT_MS
    mock_retriever.return_value.retrieve.assert_called_once_with("dashboard with login routes")
    mock_setup["setup"].assert_called_once_with("Koa", project, install=True)


def test_generate_prompts_for_missing_description(tmp_path, mock_retriever, mock_setup):
    with patch('main.config.STRIKE_DESCRIPTION', None):
        result = runner.invoke(app, ["generate", "--output-dir", str(tmp_path), "--skip-install"], input="api with controllers\n")
    assert result.exit_code == 0, result.stdout
    mock_retriever.return_value.retrieve.assert_called_once_with("api with controllers")


def test_generate_no_web_writes_stubs(tmp_path, mock_retriever, mock_setup):
    result = runner.invoke(app, [
        "generate", "--description", "routes", "--output-dir", str(tmp_path), "--no-web", "--skip-install",
    ])
    assert result.exit_code == 0, result.stdout
    mock_retriever.assert_not_called()
    mock_setup["verify"].assert_not_called()
    assert (tmp_path / "strike-project" / "routes" / "example.js").read_text() == "export default function exampleRoutes(app) {}"
    mock_setup["setup"].assert_called_once_with(main.config.STRIKE_FRAMEWORK, tmp_path / "strike-project", install=False)


def test_generate_exits_when_node_missing(tmp_path, mock_retriever):
    with patch('main.scaffold_service.verify_environment', return_value=False):
        result = runner.invoke(app, ["generate", "--description", "x", "--output-dir", str(tmp_path)])
    assert result.exit_code == 1
    assert "Node.js not found" in result.stdout
    mock_retriever.assert_not_called()


def test_generate_reports_incomplete_setup(tmp_path, mock_retriever, mock_setup):
    mock_setup["setup"].return_value = False
    result = runner.invoke(app, ["generate", "--description", "x", "--framework", "Sapper", "--output-dir", str(tmp_path)])
    assert result.exit_code == 0
    assert "did not complete" in result.stdout


def test_generate_installs_interrupt_handler(tmp_path, mock_retriever, mock_setup, no_signal_install):
    runner.invoke(app, ["generate", "--description", "x", "--output-dir", str(tmp_path), "--no-web"])
    no_signal_install.assert_called_once()
    assert no_signal_install.call_args.args[0] == signal.SIGINT


def test_interrupt_handler_wipes_cache_and_exits_zero(no_signal_install):
    store = MemoryCacheStore({"a": "1", "b": "2"})
    with patch('logger_service.log_event') as mock_log:
        handler = main.install_interrupt_handler(store)
        with pytest.raises(SystemExit) as exc:
            handler(signal.SIGINT, None)
    assert exc.value.code == 0
    assert store.entries == {}
    assert mock_log.call_args.kwargs["removed"] == 2


def test_snippet_command_prints_text(tmp_path, mock_retriever):
    result = runner.invoke(app, ["--cache-dir", str(tmp_path), "snippet", "api", "--timeout-ms", "500"])
    assert result.exit_code == 0
    assert SNIPPET.strip() in result.stdout
    assert mock_retriever.call_args.kwargs["timeout_ms"] == 500


def test_snippet_command_reports_miss(tmp_path, mock_retriever):
    mock_retriever.return_value.retrieve.return_value = ""
    result = runner.invoke(app, ["--cache-dir", str(tmp_path), "snippet", "api"])
    assert result.exit_code == 0
    assert "No usable code found." in result.stdout


def test_cache_list_and_clear(tmp_path):
    cache_dir = tmp_path / "cache"
    store = FileCacheStore(cache_dir)
    store.set("dashboard with login routes", "code")
    store.set("x" * 400, "code")

    listed = runner.invoke(app, ["--cache-dir", str(cache_dir), "cache-list"])
    assert listed.exit_code == 0
    assert "dashboard with login routes" in listed.stdout
    assert "<sha256-" in listed.stdout

    cleared = runner.invoke(app, ["--cache-dir", str(cache_dir), "cache-clear"])
    assert cleared.exit_code == 0
    assert "Removed 2 cached snippet(s)." in cleared.stdout
    assert store.keys() == []

    empty = runner.invoke(app, ["--cache-dir", str(cache_dir), "cache-list"])
    assert "Cache is empty." in empty.stdout


def test_log_flags_initialize_logger(tmp_path):
    with patch('logger_service.init_logger') as mock_init:
        mock_init.return_value = MagicMock()
        result = runner.invoke(app, ["--log-json", "--log-level", "DEBUG", "--cache-dir", str(tmp_path), "cache-list"])
    assert result.exit_code == 0
    mock_init.assert_called_once_with(log_json=True, log_level="DEBUG")
