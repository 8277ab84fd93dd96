"""
Unit tests for the behave lifecycle hooks in features/environment.py.

Hooks are called directly with lightweight stand-ins for behave's context,
feature, scenario and step objects.
"""

import unittest
from unittest.mock import Mock, patch
import os
import sys
from types import SimpleNamespace

# Add the project root to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from features import environment
from utils.report_logger import ReportLogger
from utils.scenario_state import ScenarioState, REST_CLIENT, LAST_USER


def make_scenario(name="Get a single user", status="passed", tags=None, steps=None):
    return SimpleNamespace(
        name=name,
        tags=tags if tags is not None else ["api", "smoke"],
        status=SimpleNamespace(name=status),
        steps=steps or []
    )


def make_step(name, status="passed", exception=None, error_message=None):
    return SimpleNamespace(
        name=name,
        status=SimpleNamespace(name=status),
        exception=exception,
        error_message=error_message
    )


class TestEnvironmentHooks(unittest.TestCase):
    """Test cases for scenario lifecycle hooks."""

    def setUp(self):
        self.context = SimpleNamespace()
        self.feature = SimpleNamespace(name="User API")
        environment.before_all(self.context)
        self.context.reporter = Mock(spec=ReportLogger)
        environment.before_feature(self.context, self.feature)

    def test_before_all_creates_reporter_and_counters(self):
        context = SimpleNamespace()

        environment.before_all(context)

        self.assertIsInstance(context.reporter, ReportLogger)
        self.assertEqual(context.test_config['total_scenarios'], 0)

    def test_before_scenario_creates_empty_state(self):
        environment.before_scenario(self.context, make_scenario())

        self.assertIsInstance(self.context.state, ScenarioState)
        self.assertEqual(len(self.context.state), 0)

    def test_before_scenario_logs_title_and_tags(self):
        with patch.object(environment, 'test_logger') as mock_logger:
            environment.before_scenario(self.context, make_scenario(tags=["api", "negative"]))

        messages = [c.args[0] for c in mock_logger.info.call_args_list]
        self.assertIn("Scenario: Get a single user", messages)
        self.assertIn("Tags: api, negative", messages)

    def test_after_scenario_clears_state(self):
        scenario = make_scenario()
        environment.before_scenario(self.context, scenario)
        self.context.state.set(LAST_USER, {"id": 1})

        environment.after_scenario(self.context, scenario)

        self.assertFalse(self.context.state.contains(LAST_USER))
        self.assertEqual(self.context.test_config['passed_scenarios'], 1)

    def test_sequential_scenarios_do_not_share_state(self):
        first = make_scenario("first")
        environment.before_scenario(self.context, first)
        self.context.state.set("token", "from-first")
        first_state = self.context.state
        environment.after_scenario(self.context, first)

        second = make_scenario("second")
        environment.before_scenario(self.context, second)

        self.assertFalse(self.context.state.contains("token"))
        self.assertIsNot(self.context.state, first_state)
        self.assertEqual(len(first_state), 0)

    def test_after_scenario_closes_rest_client(self):
        scenario = make_scenario()
        environment.before_scenario(self.context, scenario)
        client = Mock()
        self.context.state.set(REST_CLIENT, client)

        environment.after_scenario(self.context, scenario)

        client.close.assert_called_once()
        self.assertFalse(self.context.state.contains(REST_CLIENT))

    def test_close_failure_does_not_escape(self):
        scenario = make_scenario()
        environment.before_scenario(self.context, scenario)
        client = Mock()
        client.close.side_effect = RuntimeError("already closed")
        self.context.state.set(REST_CLIENT, client)

        with patch.object(environment, 'logger') as mock_logger:
            environment.after_scenario(self.context, scenario)

        mock_logger.warning.assert_called_once()
        self.assertEqual(len(self.context.state), 0)

    def test_failed_scenario_logs_error_and_traceback(self):
        failed = make_step(
            'I get user with ID "999"', status="failed",
            exception=RuntimeError("Request failed with status 404"),
            error_message="Traceback (most recent call last):\n  ..."
        )
        scenario = make_scenario(status="failed", steps=[make_step("base url"), failed])
        environment.before_scenario(self.context, scenario)

        with patch.object(environment, 'test_logger') as mock_logger:
            environment.after_scenario(self.context, scenario)

        errors = [c.args[0] for c in mock_logger.error.call_args_list]
        self.assertTrue(any("Request failed with status 404" in e for e in errors))
        self.assertTrue(any(e.startswith("Error Details:") for e in errors))
        self.assertEqual(self.context.test_config['failed_scenarios'], 1)

    def test_skipped_scenario_is_not_counted_as_failed(self):
        scenario = make_scenario(status="skipped")
        environment.before_scenario(self.context, scenario)

        environment.after_scenario(self.context, scenario)

        self.assertEqual(self.context.test_config['failed_scenarios'], 0)
        self.assertEqual(self.context.test_config['total_scenarios'], 1)

    def test_after_step_reports_status(self):
        environment.after_step(self.context, make_step("I get all users"))

        self.context.reporter.log_step.assert_called_once_with("I get all users", "passed")

    def test_after_feature_and_after_all(self):
        scenario = make_scenario()
        environment.before_scenario(self.context, scenario)
        environment.after_scenario(self.context, scenario)

        with patch.object(environment, 'logger') as mock_logger:
            environment.after_feature(self.context, self.feature)
            environment.after_all(self.context)

        messages = [c.args[0] for c in mock_logger.info.call_args_list]
        self.assertIn("Pass rate: 100.0%", messages)


if __name__ == '__main__':
    unittest.main()
