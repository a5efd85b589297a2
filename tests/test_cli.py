import pytest
from click.testing import CliRunner

pytest.importorskip("ortools")

from cli import main  # noqa: E402

PUZZLE = """\
0:
#.
##

1:
#

2x2: 1 1
2x2: 1 0
3x2: 2 0
"""


@pytest.fixture
def puzzle_file(tmp_path):
    path = tmp_path / "input.txt"
    path.write_text(PUZZLE, encoding="utf-8")
    return path


def test_prints_solvable_count(puzzle_file):
    result = CliRunner().invoke(main, [str(puzzle_file), "--engine", "backtracking"])
    assert result.exit_code == 0, result.output
    assert "Solvable regions: 2" in result.output
    assert "Undecided regions" not in result.output
    assert "Runtime:" in result.output


def test_verbose_lists_every_region(puzzle_file):
    result = CliRunner().invoke(main, [str(puzzle_file), "-e", "backtracking", "-v"])
    assert result.exit_code == 0, result.output
    assert "2x2 (#1): solved via backtracking" in result.output
    assert "2x2 (#2): infeasible via backtracking" in result.output
    assert "3x2 (#3): solved" in result.output


def test_allow_slack_flag(tmp_path):
    path = tmp_path / "input.txt"
    path.write_text("0:\n#.\n##\n\n2x2: 1\n", encoding="utf-8")

    exact = CliRunner().invoke(main, [str(path), "-e", "backtracking"])
    slack = CliRunner().invoke(main, [str(path), "-e", "backtracking", "--allow-slack"])

    assert "Solvable regions: 0" in exact.output
    assert "Solvable regions: 1" in slack.output


def test_malformed_file_fails(tmp_path):
    path = tmp_path / "bad.txt"
    path.write_text("0:\n#\n2x2: 1 x\n", encoding="utf-8")
    result = CliRunner().invoke(main, [str(path)])
    assert result.exit_code != 0
    assert "not an integer" in result.output


def test_unknown_shape_fails(tmp_path):
    path = tmp_path / "bad.txt"
    path.write_text("0:\n#\n2x2: 0 1\n", encoding="utf-8")
    result = CliRunner().invoke(main, [str(path), "-e", "backtracking"])
    assert result.exit_code != 0
    assert "shape 1 has no known variants" in result.output


def test_rejects_unknown_engine(puzzle_file):
    result = CliRunner().invoke(main, [str(puzzle_file), "--engine", "magic"])
    assert result.exit_code == 2
