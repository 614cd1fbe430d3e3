"""Tests for error bookkeeping and the error taxonomy."""

import unittest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pot_overlay_detection.services.error_handler import (
    ErrorHandler, ErrorSeverity, ComponentStatus, ErrorRecord,
    OverlayPipelineError, CapabilityMissing, AcquisitionFailure, NotReady,
    TransientReadFailure, AssetLoadFailure, with_error_handling, global_error_handler
)


class TestErrorTaxonomy(unittest.TestCase):
    """Pipeline error types."""

    def test_pipeline_errors_share_a_base(self):
        for error_type in (CapabilityMissing, AcquisitionFailure, NotReady,
                           TransientReadFailure, AssetLoadFailure):
            self.assertTrue(issubclass(error_type, OverlayPipelineError))


class TestErrorHandler(unittest.TestCase):
    """Test error handler functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.error_handler = ErrorHandler(max_error_history=3)

    def test_component_registration(self):
        self.error_handler.register_component("frame_sampler")
        self.assertEqual(self.error_handler.component_status["frame_sampler"], ComponentStatus.HEALTHY)
        self.assertEqual(self.error_handler.component_error_counts["frame_sampler"], 0)

    def test_error_handling_basic(self):
        """Test basic error handling."""
        error = TransientReadFailure("no frame")
        record = self.error_handler.handle_error("frame_sampler", error, ErrorSeverity.MEDIUM)

        self.assertIsInstance(record, ErrorRecord)
        self.assertIs(record.error, error)
        self.assertEqual(self.error_handler.component_error_counts["frame_sampler"], 1)
        self.assertEqual(self.error_handler.component_status["frame_sampler"], ComponentStatus.HEALTHY)

    def test_high_severity_degrades(self):
        self.error_handler.handle_error("overlay_controller", AssetLoadFailure("x"), ErrorSeverity.HIGH)
        self.assertEqual(self.error_handler.component_status["overlay_controller"], ComponentStatus.DEGRADED)

        self.error_handler.mark_healthy("overlay_controller")
        self.assertEqual(self.error_handler.component_status["overlay_controller"], ComponentStatus.HEALTHY)

    def test_critical_severity_fails(self):
        error = AcquisitionFailure("camera busy")
        self.error_handler.handle_error("detection_session", error, ErrorSeverity.CRITICAL)

        self.assertEqual(self.error_handler.component_status["detection_session"], ComponentStatus.FAILED)
        self.assertEqual(self.error_handler.get_error_stats()["last_fatal_error"], "camera busy")

        # A failed component stays failed until its counts are reset
        self.error_handler.mark_healthy("detection_session")
        self.assertEqual(self.error_handler.component_status["detection_session"], ComponentStatus.FAILED)
        self.error_handler.reset_error_counts("detection_session")
        self.assertEqual(self.error_handler.component_status["detection_session"], ComponentStatus.HEALTHY)

    def test_history_is_bounded(self):
        for i in range(5):
            self.error_handler.handle_error("frame_sampler", TransientReadFailure(str(i)), ErrorSeverity.LOW)
        self.assertEqual(len(self.error_handler.error_records), 3)
        self.assertEqual(str(self.error_handler.error_records[0].error), "2")
        self.assertEqual(self.error_handler.component_error_counts["frame_sampler"], 5)

    def test_error_stats(self):
        self.error_handler.handle_error("a", ValueError("x"), ErrorSeverity.LOW)
        self.error_handler.handle_error("b", ValueError("y"), ErrorSeverity.HIGH)

        stats = self.error_handler.get_error_stats()
        self.assertEqual(stats["total_errors"], 2)
        self.assertEqual(stats["component_error_counts"], {"a": 1, "b": 1})
        self.assertEqual(stats["component_status"], {"a": "healthy", "b": "degraded"})
        self.assertIsNone(stats["last_fatal_error"])

    def test_reset_all_error_counts(self):
        self.error_handler.handle_error("a", ValueError("x"), ErrorSeverity.CRITICAL)
        self.error_handler.handle_error("b", ValueError("y"), ErrorSeverity.HIGH)
        self.error_handler.reset_error_counts()
        self.assertEqual(self.error_handler.component_error_counts, {"a": 0, "b": 0})
        self.assertEqual(self.error_handler.get_error_stats()["component_status"],
                         {"a": "healthy", "b": "healthy"})


class TestErrorHandlingDecorator(unittest.TestCase):
    """Test the with_error_handling decorator."""

    def setUp(self):
        self.count_before = global_error_handler.component_error_counts.get("test_component", 0)

    def recorded(self):
        return global_error_handler.component_error_counts.get("test_component", 0) - self.count_before

    def test_handled_error_returns_default(self):
        @with_error_handling("test_component", ErrorSeverity.MEDIUM,
                             handled=(TransientReadFailure,), default="fallback")
        def read():
            raise TransientReadFailure("no frame")

        self.assertEqual(read(), "fallback")
        self.assertEqual(self.recorded(), 1)

    def test_unhandled_error_propagates(self):
        @with_error_handling("test_component", handled=(TransientReadFailure,))
        def read():
            raise KeyError("bug")

        with self.assertRaises(KeyError):
            read()
        self.assertEqual(self.recorded(), 0)

    def test_critical_error_is_recorded_and_raised(self):
        @with_error_handling("test_component", ErrorSeverity.CRITICAL)
        def acquire():
            raise AcquisitionFailure("camera busy")

        with self.assertRaises(AcquisitionFailure):
            acquire()
        self.assertEqual(str(global_error_handler.last_fatal_error.error), "camera busy")

    def test_success_passes_through(self):
        @with_error_handling("test_component")
        def ok():
            return 42

        self.assertEqual(ok(), 42)


if __name__ == '__main__':
    unittest.main()
