"""CLI integration tests."""

from __future__ import annotations

import io
from contextlib import redirect_stdout

from tauscale import cli


def test_cli_intervals_prints_node_sets(tmp_path):
    inp = tmp_path / "trees.nwk"
    inp.write_text("(((A:1,B:1):1,C:2):1,D:3);\n((A:1,B:1):1,C:2);\n", encoding="utf-8")

    buf = io.StringIO()
    with redirect_stdout(buf):
        code = cli.main(["intervals", str(inp)])
    assert code == 0
    lines = buf.getvalue().strip().splitlines()
    assert lines[0] == "tree 1: 3 intervals"
    assert lines[1] == "  [0] 0 -> 1\tnodes: 4,5,6"
    assert lines[3] == "  [2] 2 -> 3\tnodes: 6"
    assert lines[4] == "tree 2: 2 intervals"


def test_cli_intervals_reports_small_tree(tmp_path, capsys):
    inp = tmp_path / "small.nwk"
    inp.write_text("(A:1,B:1);\n", encoding="utf-8")
    code = cli.main(["intervals", str(inp)])
    assert code == 1
    assert "at least 2 internal nodes" in capsys.readouterr().err


def test_cli_intervals_empty_file(tmp_path, capsys):
    inp = tmp_path / "empty.nwk"
    inp.write_text("\n", encoding="utf-8")
    assert cli.main(["intervals", str(inp)]) == 1
    assert "no trees" in capsys.readouterr().err


def test_cli_rates_table(capsys):
    code = cli.main(["rates", "--distribution", "gamma", "--categories", "4", "--shape", "0.5", "--pinv", "0.1"])
    assert code == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[0] == "category\trate\tproportion"
    assert len(lines) == 6
    assert lines[1] == "0\t0.000000\t0.100000"
    props = [float(line.split("\t")[2]) for line in lines[1:]]
    assert abs(sum(props) - 1.0) < 1e-5


def test_cli_rates_rejects_bad_arguments(capsys):
    assert cli.main(["rates", "--categories", "0"]) == 2
    assert cli.main(["rates", "--pinv", "1.0"]) == 2
    assert "error:" in capsys.readouterr().err
