"""
Tests for the command line entry point.
"""

import json

import pytest

from timeline_cli import main


@pytest.fixture
def events_csv(tmp_path):
    path = tmp_path / "events.csv"
    path.write_text(
        "id,title,start,end,type\n"
        "m1,Apollo 11 launch,1969-07-16 13:32,,mission\n"
        "m2,Apollo 11 landing,1969-07-20 20:17,,mission\n"
        "p1,Program start,1961,1972,program\n",
        encoding="utf-8",
    )
    return path


class TestCli:
    def test_model_command(self, events_csv, tmp_path):
        output = tmp_path / "model.json"
        assert main(["model", "-i", str(events_csv), "-o", str(output), "--scale", "2"]) == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["viewport"]["scale"] == 2.0
        assert data["plan"]["unit"] == "year"
        assert {event["id"] for event in data["events"]} == {"m1", "m2", "p1"}

    def test_horizontal_command(self, events_csv, tmp_path):
        output = tmp_path / "timeline.html"
        assert main(["horizontal", "-i", str(events_csv), "-o", str(output), "--width", "1200"]) == 0
        assert "Apollo 11 launch" in output.read_text(encoding="utf-8")

    def test_config_override(self, events_csv, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"zoom": {"scale_min": 1.0}}), encoding="utf-8")
        output = tmp_path / "model.json"
        main(["model", "-i", str(events_csv), "-o", str(output), "--scale", "0.5", "--config", str(config)])
        assert json.loads(output.read_text(encoding="utf-8"))["viewport"]["scale"] == 1.0

    def test_type_filter(self, events_csv, tmp_path):
        output = tmp_path / "model.json"
        main(["model", "-i", str(events_csv), "-o", str(output), "--types", "program"])
        events = json.loads(output.read_text(encoding="utf-8"))["events"]
        assert {event["id"]: event["active"] for event in events} == {"m1": False, "m2": False, "p1": True}

    def test_search_filter(self, events_csv, tmp_path):
        output = tmp_path / "model.json"
        main(["model", "-i", str(events_csv), "-o", str(output), "--search", "landing"])
        events = json.loads(output.read_text(encoding="utf-8"))["events"]
        assert [event["id"] for event in events] == ["m2"]

    def test_missing_command(self):
        with pytest.raises(SystemExit):
            main([])
