import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "hid_protocol"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from keyscreen_core.failure import FAILURE_MESSAGE, FAILURE_TITLE, FailureHandler, LogNotifier
from keyscreen_hid.session import DeliveryError


class _Recorder:
    def __init__(self):
        self.closed = 0
        self.stopped = 0

    def close(self):
        self.closed += 1

    def stop(self):
        self.stopped += 1


class _DeferredNotifier:
    def __init__(self):
        self.shown = []
        self.on_ack = None

    def notify(self, title, message, on_ack):
        self.shown.append((title, message))
        self.on_ack = on_ack


class FailureHandlerTests(unittest.TestCase):
    def test_shutdown_waits_for_acknowledgement(self):
        session, scheduler = _Recorder(), _Recorder()
        notifier = _DeferredNotifier()
        codes = []
        handler = FailureHandler(session, notifier=notifier, scheduler=scheduler, terminate=codes.append)

        handler.handle(DeliveryError("write error"))
        self.assertEqual(notifier.shown, [(FAILURE_TITLE, FAILURE_MESSAGE)])
        self.assertTrue(handler.failed)
        self.assertEqual(session.closed, 0)
        self.assertIsNone(handler.exit_code)

        notifier.on_ack()
        self.assertEqual(session.closed, 1)
        self.assertEqual(scheduler.stopped, 1)
        self.assertEqual(codes, [1])

    def test_repeated_failures_and_acks_shut_down_once(self):
        session, scheduler = _Recorder(), _Recorder()
        notifier = _DeferredNotifier()
        codes = []
        handler = FailureHandler(session, notifier=notifier, scheduler=scheduler, terminate=codes.append)

        handler.handle(DeliveryError("first"))
        handler.handle(DeliveryError("second"))
        notifier.on_ack()
        notifier.on_ack()

        self.assertEqual(len(notifier.shown), 1)
        self.assertEqual(str(handler.error), "first")
        self.assertEqual(session.closed, 1)
        self.assertEqual(codes, [1])

    def test_log_notifier_acknowledges_immediately(self):
        session = _Recorder()
        handler = FailureHandler(session, notifier=LogNotifier())
        with self.assertLogs("keyscreen", level="CRITICAL"):
            handler.handle(DeliveryError("write error"))
        self.assertEqual(session.closed, 1)
        self.assertEqual(handler.exit_code, 1)


if __name__ == "__main__":
    unittest.main()
