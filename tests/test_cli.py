from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from sentinel_llm.cli import cli
from sentinel_llm.errors import AnalysisFailure

from conftest import FakeProvider


@pytest.fixture(autouse=True)
def clean_environment(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for var in ("GEMINI_API_KEY", "API_KEY", "SENTINEL_MODEL", "SENTINEL_DATA_DIR",
                "SENTINEL_EXPORT_DIR", "SENTINEL_CONFIG"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def invoke(data_dir):
    runner = CliRunner()

    def _invoke(args, provider=None, **kwargs):
        obj = {"provider": provider or FakeProvider()}
        return runner.invoke(cli, ["--data-dir", str(data_dir), *args], obj=obj, **kwargs)

    return _invoke


def _evaluate(invoke, result, model="GPT-4o"):
    return invoke(["evaluate", "-m", model, "-a", "Public API + RAG", "-u", "Support bot"],
                  provider=FakeProvider(result))


def _history_ids(data_dir) -> list[str]:
    return [item["id"] for item in json.loads((data_dir / "sentinel_history.json").read_text())]


def test_evaluate_saves_history(invoke, data_dir, gpt4o_result) -> None:
    result = _evaluate(invoke, gpt4o_result)

    assert result.exit_code == 0, result.output
    assert "Analyzing..." in result.output
    assert "Overall Risk Score" in result.output
    assert "75/100 (high)" in result.output
    assert "Saved to history (1 evaluation(s))." in result.output
    assert len(_history_ids(data_dir)) == 1


def test_evaluate_prompts_for_missing_inputs(invoke, gpt4o_result) -> None:
    provider = FakeProvider(gpt4o_result)

    result = invoke(["evaluate"], provider=provider, input="Llama 3\nOn-prem\nCode review\n")

    assert result.exit_code == 0, result.output
    assert provider.calls == [("Llama 3", "On-prem", "Code review")]


def test_evaluate_failure_exits_nonzero(invoke, data_dir) -> None:
    result = invoke(["evaluate", "-m", "m", "-a", "a", "-u", "u"],
                    provider=FakeProvider(AnalysisFailure("quota exceeded")))

    assert result.exit_code == 1
    assert "Failed to analyze model: quota exceeded" in result.output
    assert not (data_dir / "sentinel_history.json").exists()


def test_evaluate_with_html_and_pdf(invoke, data_dir, tmp_path, gpt4o_result) -> None:
    html = tmp_path / "out" / "dashboard.html"

    result = invoke(
        ["evaluate", "-m", "GPT-4o", "-a", "a", "-u", "u", "--html", str(html), "--pdf", "--sort", "title-asc"],
        provider=FakeProvider(gpt4o_result),
    )

    assert result.exit_code == 0, result.output
    assert "Indirect prompt injection" in html.read_text(encoding="utf-8")
    [evaluation_id] = _history_ids(data_dir)
    assert (data_dir / "exports" / f"SentinelLLM_Report_{evaluation_id}.pdf").exists()


def test_history_list_empty(invoke) -> None:
    result = invoke(["history", "list"])

    assert result.exit_code == 0
    assert "No past evaluations found" in result.output


def test_history_list_newest_first(invoke, gpt4o_result, empty_result) -> None:
    _evaluate(invoke, gpt4o_result, model="first-model")
    _evaluate(invoke, empty_result, model="second-model")

    output = invoke(["history", "list"]).output

    assert output.index("second-model") < output.index("first-model")


def test_history_delete(invoke, data_dir, gpt4o_result) -> None:
    _evaluate(invoke, gpt4o_result)
    [evaluation_id] = _history_ids(data_dir)

    result = invoke(["history", "delete", evaluation_id])

    assert result.exit_code == 0
    assert f"Deleted {evaluation_id}" in result.output
    assert "No past evaluations found" in result.output
    assert _history_ids(data_dir) == []


def test_history_delete_unknown(invoke) -> None:
    result = invoke(["history", "delete", "missing"])

    assert result.exit_code == 1
    assert "Evaluation not found: missing" in result.output


def test_history_show_threats_tab(invoke, data_dir, gpt4o_result) -> None:
    _evaluate(invoke, gpt4o_result)
    [evaluation_id] = _history_ids(data_dir)

    result = invoke(["history", "show", evaluation_id, "--tab", "threats", "--sort", "severity-asc"])

    assert result.exit_code == 0, result.output
    assert result.output.index("Verbose error messages") < result.output.index("Indirect prompt injection")


def test_threats_sorted_and_filtered(invoke, gpt4o_result) -> None:
    _evaluate(invoke, gpt4o_result)

    default = invoke(["threats"]).output
    critical = invoke(["threats", "--severity", "critical"]).output
    none = invoke(["threats", "--search", "no such threat"]).output

    assert default.index("Indirect prompt injection") < default.index("Verbose error messages")
    assert "Indirect prompt injection" in critical
    assert "Verbose error messages" not in critical
    assert "No threats match." in none


def test_threats_without_history(invoke) -> None:
    result = invoke(["threats"])

    assert result.exit_code == 0
    assert "No past evaluations found" in result.output


def test_benchmarks(invoke, gpt4o_result) -> None:
    _evaluate(invoke, gpt4o_result)

    result = invoke(["benchmarks"])

    assert result.exit_code == 0
    assert "LLM01" in result.output
    assert "48.5%" in result.output


def test_export_pdf(invoke, data_dir, tmp_path, gpt4o_result) -> None:
    _evaluate(invoke, gpt4o_result)
    [evaluation_id] = _history_ids(data_dir)

    result = invoke(["export", evaluation_id, "-o", str(tmp_path / "reports")])

    assert result.exit_code == 0, result.output
    assert "Report exported successfully!" in result.output
    assert (tmp_path / "reports" / f"SentinelLLM_Report_{evaluation_id}.pdf").read_bytes().startswith(b"%PDF")


def test_export_unknown_id(invoke) -> None:
    result = invoke(["export", "missing"])

    assert result.exit_code == 1
    assert "Evaluation not found: missing" in result.output


def test_dashboard_without_history(invoke, tmp_path) -> None:
    output = tmp_path / "dash.html"

    result = invoke(["dashboard", "-o", str(output), "--tab", "threats"])

    assert result.exit_code == 0, result.output
    assert "Dashboard generated successfully!" in result.output
    html = output.read_text(encoding="utf-8")
    assert "No evaluation data available" in html
    assert 'id="tab-overview" class="tab active"' in html


def test_bad_config_file_exits_nonzero(invoke, tmp_path) -> None:
    result = invoke(["--config", str(tmp_path / "missing.yaml"), "history", "list"])

    assert result.exit_code == 1
    assert "Configuration error" in result.output


def _read_only_storage(monkeypatch):
    def broken_write(self, key, blob):
        raise OSError("read-only file system")

    monkeypatch.setattr("sentinel_llm.cli.JsonFileStorage.write", broken_write)


def test_evaluate_storage_error_exits_nonzero(invoke, monkeypatch, gpt4o_result) -> None:
    _read_only_storage(monkeypatch)

    result = _evaluate(invoke, gpt4o_result)

    assert result.exit_code == 1
    assert "Could not save evaluation history: read-only file system" in result.output
    assert "Saved to history" not in result.output


def test_history_delete_storage_error_exits_nonzero(invoke, data_dir, monkeypatch, gpt4o_result) -> None:
    _evaluate(invoke, gpt4o_result)
    [evaluation_id] = _history_ids(data_dir)
    _read_only_storage(monkeypatch)

    result = invoke(["history", "delete", evaluation_id])

    assert result.exit_code == 1
    assert "Could not save evaluation history" in result.output
    assert _history_ids(data_dir) == [evaluation_id]


def test_export_write_error_exits_nonzero(invoke, data_dir, tmp_path, gpt4o_result) -> None:
    _evaluate(invoke, gpt4o_result)
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")

    result = invoke(["export", "-o", str(blocker / "reports")])

    assert result.exit_code == 1
    assert "Could not write report" in result.output
