# features/environment.py
import sys
import time
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root.absolute()))

from utils.config_loader import config_loader
from utils.logger import logger, test_logger, log_test_result
from utils.report_logger import ReportLogger
from utils.scenario_state import ScenarioState, REST_CLIENT


def before_all(context):
    """Setup before all tests."""
    logger.info("Starting API test execution")
    context.test_start_time = time.time()

    context.test_config = {
        'start_time': context.test_start_time,
        'total_scenarios': 0,
        'passed_scenarios': 0,
        'failed_scenarios': 0
    }

    reporting = config_loader.get_reporting_config()
    context.reporter = ReportLogger(reporting['attachments_dir'])


def before_feature(context, feature):
    """Setup before each feature."""
    logger.info(f"Starting feature: {feature.name}")
    context.feature_start_time = time.time()
    context.reporter.set_feature(feature.name)

    context.feature_scenarios = 0
    context.feature_passed = 0
    context.feature_failed = 0


def before_scenario(context, scenario):
    """Give the scenario a fresh, empty state store."""
    context.state = ScenarioState()
    context.state.clear()
    context.scenario_start_time = time.time()

    test_logger.info("Starting new scenario...")
    test_logger.info(f"Scenario: {scenario.name}")
    if scenario.tags:
        test_logger.info(f"Tags: {', '.join(scenario.tags)}")


def after_step(context, step):
    """Log step execution details."""
    status = step.status.name
    context.reporter.log_step(step.name, status)
    if status == "failed":
        test_logger.error(f"Step failed: {step.name}")
        if getattr(step, 'exception', None):
            test_logger.error(f"Exception: {step.exception}")


def after_scenario(context, scenario):
    """Log the outcome, release the HTTP client and clear scenario state."""
    scenario_duration = time.time() - getattr(context, 'scenario_start_time', time.time())
    test_logger.info("Scenario completed.")

    context.test_config['total_scenarios'] += 1
    context.feature_scenarios += 1

    if scenario.status.name == "passed":
        log_test_result(scenario.name, "passed", duration=f"{scenario_duration:.2f}s")
        context.test_config['passed_scenarios'] += 1
        context.feature_passed += 1
    elif scenario.status.name == "skipped":
        log_test_result(scenario.name, "skipped")
    else:
        log_test_result(scenario.name, scenario.status.name, duration=f"{scenario_duration:.2f}s")
        context.test_config['failed_scenarios'] += 1
        context.feature_failed += 1
        _log_failure_details(scenario)

    state = getattr(context, 'state', None)
    if state is not None:
        if state.contains(REST_CLIENT):
            try:
                state.get(REST_CLIENT).close()
            except Exception as e:
                logger.warning(f"Error closing REST client: {e}")
        state.clear()


def _log_failure_details(scenario):
    """Log the error message and traceback of the first failed step."""
    failed_step = next((s for s in scenario.steps if s.status.name in ("failed", "error")), None)
    if failed_step is None:
        return

    exception = getattr(failed_step, 'exception', None)
    if exception is not None:
        test_logger.error(f"Scenario failed with error: {exception}")
    error_message = getattr(failed_step, 'error_message', None)
    if error_message:
        test_logger.error(f"Error Details:\n{error_message}")


def after_feature(context, feature):
    """Cleanup after each feature."""
    feature_duration = time.time() - context.feature_start_time

    logger.info(f"Feature completed: {feature.name} (Duration: {feature_duration:.2f}s)")
    logger.info(f"Feature stats - Total: {context.feature_scenarios}, "
                f"Passed: {context.feature_passed}, Failed: {context.feature_failed}")


def after_all(context):
    """Log the run summary."""
    total_duration = time.time() - context.test_start_time

    logger.info("=" * 60)
    logger.info("TEST EXECUTION SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Total duration: {total_duration:.2f}s")
    logger.info(f"Total scenarios: {context.test_config['total_scenarios']}")
    logger.info(f"Passed scenarios: {context.test_config['passed_scenarios']}")
    logger.info(f"Failed scenarios: {context.test_config['failed_scenarios']}")

    if context.test_config['total_scenarios'] > 0:
        pass_rate = (context.test_config['passed_scenarios'] / context.test_config['total_scenarios']) * 100
        logger.info(f"Pass rate: {pass_rate:.1f}%")

    logger.info("=" * 60)
