import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "hid_protocol"))

from keyscreen_hid.replay import ReplayRunner


class ReplayTests(unittest.TestCase):
    def test_replay_report_detects_handshake_frames_and_selection(self):
        runner = ReplayRunner()
        transcript = ROOT / "tests" / "transcripts" / "handshake_screens.jsonl"
        report = runner.run(transcript, strict=True)

        self.assertEqual(report.total_events, 5)
        self.assertEqual(report.handshake_count, 1)
        self.assertEqual(report.announced_screens, 4)
        self.assertEqual(report.screen_frames, 2)
        self.assertEqual(report.selection_reports, 1)
        self.assertEqual(report.ignored_reports, 1)
        self.assertEqual(report.selected_indices, [3])
        self.assertEqual(report.errors, [])

    def test_strict_mode_flags_missing_handshake(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "t.jsonl"
            payload_hex = "00" + "41" * 40
            path.write_text(f'{{"dir": "host_to_device", "payload_hex": "{payload_hex}"}}\n', encoding="utf-8")
            report = ReplayRunner().run(path, strict=True)
            self.assertIn("missing_handshake", report.errors)
            self.assertIn("frame_too_long", report.errors)
            self.assertNotIn("missing_screen_frame", report.errors)

            lenient = ReplayRunner().run(path, strict=False)
            self.assertEqual(lenient.errors, ["frame_too_long"])


if __name__ == "__main__":
    unittest.main()
