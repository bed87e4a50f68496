import pandas as pd

from teamroles.cli import main


def test_cli_creates_expected_reports(tmp_path, root):
    output_dir = tmp_path / "reports"
    exit_code = main([
        "--config",
        str(root / "config" / "config.yaml"),
        "--output-dir",
        str(output_dir),
        "--quiet",
    ])

    assert exit_code == 0
    tsv_path = output_dir / "teams_roles.tsv"
    xlsx_path = output_dir / "teams_roles.xlsx"
    preview_path = output_dir / "teams_preview.json"

    for path in (tsv_path, xlsx_path, preview_path):
        assert path.exists()

    lines = tsv_path.read_text(encoding="utf-8").split("\n")
    assert lines[0] == "Team Name\tTeam ID\tBusiness Unit\tEmail\tRole Name\tPrivilege\tEnvironment"
    assert len(lines) == 5
    assert "Case Agent Level2" in lines[3]
    assert lines[4].startswith("Audit Observers\t")

    table = pd.read_excel(xlsx_path, dtype=str, keep_default_na=False)
    assert set(table["Team Name"]) == {"APAC Sales Squad", "Customer Care Core", "Audit Observers"}


def test_cli_prints_tsv_for_mock_source(capsys):
    exit_code = main(["--source", "mock", "--stdout"])

    assert exit_code == 0
    out = capsys.readouterr().out.rstrip("\n").split("\n")
    assert out[0] == "Team Name\tTeam ID\tBusiness Unit\tCategory\tRole ID\tRole Name"
    assert out[1] == "APAC Sales Squad\td4d7cd62-e35c-4807-83c1-8651724af010\tBU-SALES\t1001\trole-001\tSales Manager"
    assert len(out) == 6


def test_cli_prints_table_preview(capsys, tmp_path):
    exit_code = main(["--variant", "separate", "--source", "mock", "--output-dir", str(tmp_path)])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Audit Observers" in out
    assert "| -" in out


def test_cli_reports_malformed_json(tmp_path):
    broken = tmp_path / "teams.json"
    broken.write_text("{not json", encoding="utf-8")

    assert main(["--teams", str(broken), "--quiet", "--output-dir", str(tmp_path / "out")]) == 1
    assert not (tmp_path / "out").exists()
