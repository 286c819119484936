import json

from workloads.cpu_burn import burn_cpu, main


def test_burn_cpu_runs_for_requested_time():
    assert burn_cpu(0.05) >= 49


def test_main_prints_duration(capsys):
    assert main(["0"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["duration_ms"] >= 0


def test_main_rejects_bad_arguments(capsys):
    assert main([]) == 2
    assert main(["soon"]) == 2
    assert main(["-1"]) == 2
    assert "seconds must be >= 0" in capsys.readouterr().err
