import json
import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "hid_protocol"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from keyscreen_core.config import AppConfig, load_config, save_config
from keyscreen_hid.models import DeviceIdentity, PacingPolicy


class ConfigTests(unittest.TestCase):
    def test_load_default_when_missing(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg = load_config(Path(tmp) / "missing.json")
            self.assertIsInstance(cfg, AppConfig)
            self.assertEqual(cfg.delivery.interval_ms, 1000)
            self.assertEqual(cfg.delivery.screen_count, 4)
            self.assertFalse(cfg.delivery.multi_frame)
            self.assertEqual(
                cfg.device.identity(),
                DeviceIdentity(product_name="Mercutio", usage_page=0xFF60, usage_id=0x61, vendor_id=0x6D77, product_id=0x1703),
            )

    def test_save_and_reload(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            cfg = load_config(path)
            cfg.delivery.interval_ms = 1500
            cfg.device.product_name = "Kyria"
            save_config(cfg, path)
            reloaded = load_config(path)
            self.assertEqual(reloaded.delivery.interval_ms, 1500)
            self.assertEqual(reloaded.device.product_name, "Kyria")

    def test_hex_identifiers_and_clamps(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            raw = {
                "config_version": 2,
                "device": {"vendor_id": "0x1234", "product_id": "0x5678", "usage_page": "0xff60"},
                "delivery": {"interval_ms": 5, "screen_count": 999},
            }
            path.write_text(json.dumps(raw), encoding="utf-8")
            cfg = load_config(path)
            self.assertEqual(cfg.device.vendor_id, 0x1234)
            self.assertEqual(cfg.device.product_id, 0x5678)
            self.assertEqual(cfg.device.usage_page, 0xFF60)
            self.assertEqual(cfg.delivery.interval_ms, 200)
            self.assertEqual(cfg.delivery.screen_count, 255)

    def test_migrate_v1_shape(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            old = {"keyboard_name": "Mercutio2", "vendor_id": 1, "update_ms": 750}
            path.write_text(json.dumps(old), encoding="utf-8")
            cfg = load_config(path)
            self.assertEqual(cfg.device.product_name, "Mercutio2")
            self.assertEqual(cfg.device.vendor_id, 1)
            self.assertEqual(cfg.delivery.interval_ms, 750)

    def test_corrupt_file_falls_back_to_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text("{not json", encoding="utf-8")
            self.assertEqual(load_config(path), AppConfig())

    def test_pacing_overrides(self):
        cfg = AppConfig()
        self.assertEqual(cfg.delivery.pacing("Darwin"), PacingPolicy(pre_write_s=0.2, post_write_s=0.2))
        cfg.delivery.post_write_ms = 50
        self.assertEqual(cfg.delivery.pacing("Linux"), PacingPolicy(pre_write_s=0.0, post_write_s=0.05))


if __name__ == "__main__":
    unittest.main()
