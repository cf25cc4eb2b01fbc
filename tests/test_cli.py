"""Tests for the command-line entry point."""

import json

import main

from frame_builders import squat_scenario


class TestReplayMode:

    def test_replay_prints_summary(self, tmp_path, capsys):
        path = tmp_path / "frames.json"
        path.write_text(json.dumps([f.to_dict() for f in squat_scenario()]))
        assert main.main(["--mode", "replay", "--exercise", "squat", "--input", str(path)]) == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["totalReps"] == 1
        assert summary["averageScore"] == 86

    def test_replay_accepts_frames_object(self, tmp_path, capsys):
        path = tmp_path / "frames.json"
        path.write_text(json.dumps({"frames": [f.to_dict() for f in squat_scenario()]}))
        assert main.main(["--mode", "replay", "--input", str(path)]) == 0
        assert json.loads(capsys.readouterr().out)["totalFrames"] == 10

    def test_replay_requires_input(self, capsys):
        assert main.main(["--mode", "replay"]) == 1
        assert "--input" in capsys.readouterr().out

    def test_replay_missing_file(self, tmp_path):
        assert main.main(["--mode", "replay", "--input", str(tmp_path / "nope.json")]) == 1
