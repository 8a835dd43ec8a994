import asyncio
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[2]))

from guides.parcel_insurance_walkthrough import main


def test_walkthrough_runs(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("POLICYFLOW_CONFIG", str(tmp_path / "missing.yaml"))
    asyncio.run(main())
    output = capsys.readouterr().out
    assert "is completed after 4 steps" in output
    assert "is sent_back at proposal" in output
    assert output.count("Rejected") == 2
