"""Smoke tests for the package CLI."""

from salat_times.__main__ import main


def test_cli_import_smoke() -> None:
    """Ensure CLI entrypoint can be imported and executed."""
    assert main([]) == 0


def test_cli_times_prints_one_line_per_day(capsys) -> None:
    """`times` prints the six prayers for each requested day."""
    code = main(
        [
            "times",
            "--lat", "21.4225",
            "--lon", "39.8262",
            "--timezone", "Asia/Riyadh",
            "--date", "2024-03-20",
            "--days", "2",
            "--sunnah",
        ]
    )

    lines = capsys.readouterr().out.strip().splitlines()
    assert code == 0
    assert lines[0].startswith("2024-03-20 Asia/Riyadh fajr=")
    assert "middle_of_the_night=" in lines[1]
    assert lines[2].startswith("2024-03-21")


def test_cli_next_and_qibla(capsys) -> None:
    """`next` reports the upcoming prayer; `qibla` prints a bearing."""
    assert main(["next", "--lat", "21.4225", "--lon", "39.8262", "--timezone", "Asia/Riyadh", "--now", "2024-03-20T10:00:00+00:00"]) == 0
    assert "next=asr" in capsys.readouterr().out

    assert main(["qibla", "--lat", "40.7128", "--lon", "-74.0060"]) == 0
    assert capsys.readouterr().out.strip() == "58.48"


def test_cli_reports_invalid_input(capsys) -> None:
    """Out-of-range coordinates exit with status 2."""
    assert main(["qibla", "--lat", "95", "--lon", "0"]) == 2
    assert "latitude" in capsys.readouterr().err
