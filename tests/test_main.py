"""Tests for the command-line interface."""

import json

import pytest
import yaml

import main
from depsort.config import ConfigManager, get_config, reset_config
from depsort.graph.dependency_graph import DependencyGraph


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run every test in an empty directory with no DEPSORT_ variables or shared config."""
    monkeypatch.chdir(tmp_path)
    for key in (
        "DEPSORT_SORT_TIE_BREAK",
        "DEPSORT_OUTPUT_FORMAT",
        "DEPSORT_LOGGING_LEVEL",
        "DEPSORT_JSON_LOGS",
    ):
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def graph_file(tmp_path):
    """Fixture providing an acyclic graph definition."""
    path = tmp_path / "plugins.yaml"
    path.write_text(
        yaml.dump(
            {
                "nodes": ["ui", "net", "core", "extras"],
                "dependencies": {"ui": ["core", "net"], "net": ["core"]},
            },
        ),
    )
    return path


@pytest.fixture
def cyclic_graph_file(tmp_path):
    """Fixture providing a graph definition with two cycles."""
    path = tmp_path / "cyclic.yaml"
    path.write_text(
        yaml.dump({"edges": [["a", "b"], ["b", "a"], ["x", "y"], ["y", "x"], ["a", "x"]]}),
    )
    return path


def run_cli(*argv):
    return main.run(main.parse_args([str(arg) for arg in argv]))


class TestSortCommand:
    """Test sorting from the command line."""

    def test_text_output(self, graph_file, capsys):
        """Test that the order is printed one node per line."""
        exit_code = run_cli(graph_file)

        assert exit_code == main.EXIT_OK
        assert capsys.readouterr().out.split() == ["core", "net", "ui", "extras"]

    def test_natural_tie_break(self, graph_file, capsys):
        """Test the alphabetical tie-break rule."""
        run_cli(graph_file, "--tie-break", "natural")

        assert capsys.readouterr().out.split() == ["core", "extras", "net", "ui"]

    def test_reverse_tie_break(self, graph_file, capsys):
        """Test the reversed tie-break rule."""
        run_cli(graph_file, "--tie-break", "reverse")

        assert capsys.readouterr().out.split() == ["core", "net", "ui", "extras"]

    def test_json_output(self, graph_file, capsys):
        """Test JSON output."""
        run_cli(graph_file, "--format", "json", "-t", "natural")

        assert json.loads(capsys.readouterr().out) == {
            "order": ["core", "extras", "net", "ui"],
        }

    def test_config_file_sets_defaults(self, graph_file, tmp_path, capsys):
        """Test that depsort.yaml in the working directory is picked up."""
        (tmp_path / "depsort.yaml").write_text("sort:\n  tie_break: natural\n")

        run_cli(graph_file)

        assert capsys.readouterr().out.split() == ["core", "extras", "net", "ui"]

    def test_command_line_overrides_config(self, graph_file, tmp_path, capsys):
        """Test that command-line options win over the config file."""
        config = tmp_path / "custom.yaml"
        config.write_text("sort:\n  tie_break: natural\noutput:\n  format: json\n")

        run_cli(graph_file, "--config", config, "--format", "text")

        assert capsys.readouterr().out.split() == ["core", "extras", "net", "ui"]

    def test_cycles_reported(self, cyclic_graph_file, capsys):
        """Test that all cycles are printed and exit code 2 is returned."""
        exit_code = run_cli(cyclic_graph_file)

        captured = capsys.readouterr()
        assert exit_code == main.EXIT_CYCLE
        assert captured.out == ""
        assert "a, b form a cycle" in captured.err
        assert "x, y form a cycle" in captured.err

    def test_missing_graph_file(self, tmp_path, capsys):
        """Test that a missing graph file is an error."""
        exit_code = run_cli(tmp_path / "missing.yaml")

        assert exit_code == main.EXIT_ERROR
        assert "Graph file not found" in capsys.readouterr().err

    def test_malformed_graph_file(self, tmp_path, capsys):
        """Test that a malformed graph definition is an error."""
        path = tmp_path / "bad.yaml"
        path.write_text("edges: [[a, b, c]]\n")

        assert run_cli(path) == main.EXIT_ERROR
        assert "Invalid edge" in capsys.readouterr().err

    def test_missing_config_file(self, graph_file, tmp_path, capsys):
        """Test that an explicit missing config file is an error."""
        exit_code = run_cli(graph_file, "--config", tmp_path / "nope.yaml")

        assert exit_code == main.EXIT_ERROR
        assert "Configuration file not found" in capsys.readouterr().err

    def test_graph_path_is_directory(self, tmp_path, capsys):
        """Test that an unreadable graph path is reported, not raised."""
        exit_code = run_cli(tmp_path)

        assert exit_code == main.EXIT_ERROR
        assert "Cannot read graph file" in capsys.readouterr().err

    def test_config_path_is_directory(self, graph_file, tmp_path, capsys):
        """Test that an unreadable config path is reported, not raised."""
        config_dir = tmp_path / "conf.yaml"
        config_dir.mkdir()

        exit_code = run_cli(graph_file, "--config", config_dir)

        assert exit_code == main.EXIT_ERROR
        assert "Cannot read configuration file" in capsys.readouterr().err


class TestOtherCommands:
    """Test validation and visualization output."""

    def test_validate_valid_graph(self, graph_file, capsys):
        """Test the validation report of a valid graph."""
        exit_code = run_cli(graph_file, "--validate")

        output = capsys.readouterr().out
        assert exit_code == main.EXIT_OK
        assert "Validation Status: PASS" in output
        assert "extras" in output

    def test_validate_cyclic_graph(self, cyclic_graph_file, capsys):
        """Test the validation report of a cyclic graph."""
        exit_code = run_cli(cyclic_graph_file, "--validate")

        output = capsys.readouterr().out
        assert exit_code == main.EXIT_CYCLE
        assert "Cycles: 2" in output

    def test_mermaid_output(self, cyclic_graph_file, capsys):
        """Test that diagrams are drawn even for cyclic graphs."""
        exit_code = run_cli(cyclic_graph_file, "--format", "mermaid")

        assert exit_code == main.EXIT_OK
        assert capsys.readouterr().out.startswith("graph TD")


class TestHelpers:
    """Test CLI helper functions."""

    def test_sort_graph_rules(self):
        """Test that each configured rule maps to the right ordering."""
        graph = DependencyGraph()
        for name in ("b", "c", "a"):
            graph.add_node(name)

        assert main.sort_graph(graph, "none") == ["b", "c", "a"]
        assert main.sort_graph(graph, "natural") == ["a", "b", "c"]
        assert main.sort_graph(graph, "reverse") == ["c", "b", "a"]

    def test_render_order(self):
        """Test text and JSON rendering."""
        assert main.render_order(["a", "b"], "text") == "a\nb"
        assert json.loads(main.render_order(["a"], "json")) == {"order": ["a"]}

    def test_debug_flag_sets_level(self, graph_file):
        """Test that --debug selects DEBUG logging."""
        args = main.parse_args([str(graph_file), "--debug"])

        assert args.log_level == "DEBUG"

    def test_main_exits_with_code(self, graph_file):
        """Test that main() exits with the run() result."""
        with pytest.raises(SystemExit) as exc_info:
            main.main([str(graph_file)])

        assert exc_info.value.code == main.EXIT_OK


class TestSharedConfig:
    """Test that the CLI publishes its effective configuration."""

    def test_config_file_becomes_shared_instance(self, graph_file, tmp_path):
        """Test that get_config() returns the settings used by the run."""
        config = tmp_path / "custom.yaml"
        config.write_text("sort:\n  tie_break: natural\noutput:\n  format: json\n")

        run_cli(graph_file, "--config", config, "--format", "text")

        shared = get_config()
        assert shared.sort.tie_break == "natural"
        assert shared.output.format == "text"

    def test_each_run_reloads_config(self, graph_file, tmp_path):
        """Test that a second run does not reuse the first run's settings."""
        first = tmp_path / "first.yaml"
        first.write_text("sort:\n  tie_break: natural\n")
        second = tmp_path / "second.yaml"
        second.write_text("sort:\n  tie_break: reverse\n")

        run_cli(graph_file, "--config", first)
        run_cli(graph_file, "--config", second)

        assert get_config().sort.tie_break == "reverse"

    def test_no_config_file_clears_shared_instance(self, graph_file, tmp_path):
        """Test that a run without a config file leaves no stale instance."""
        config = tmp_path / "custom.yaml"
        config.write_text("sort:\n  tie_break: natural\n")
        run_cli(graph_file, "--config", config)

        run_cli(graph_file)

        assert ConfigManager._instance is None
