#!/usr/bin/env python3
"""
Test runner script that executes the Behave API suite with JUnit output.
"""
import os
import sys
import subprocess
import argparse
from pathlib import Path
from typing import List, Optional

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from utils.logger import logger


def build_behave_command(
    feature_paths: Optional[List[str]] = None,
    tags: Optional[List[str]] = None,
    junit_dir: Optional[str] = "output/junit",
    output_format: str = "pretty"
) -> List[str]:
    """
    Build the behave command line.

    Args:
        feature_paths: Feature files or directories (default: features/)
        tags: Tag expressions, e.g. ``@smoke`` or ``~@negative``
        junit_dir: Directory for JUnit XML; ``None`` disables JUnit output
        output_format: Behave formatter name
    """
    behave_cmd = [sys.executable, "-m", "behave", f"--format={output_format}"]

    if junit_dir:
        behave_cmd.extend(["--junit", f"--junit-directory={junit_dir}"])

    for tag in tags or []:
        if tag.startswith("--tags="):
            behave_cmd.append(tag)
        else:
            behave_cmd.extend(["--tags", tag])

    behave_cmd.extend(feature_paths or ["features/"])
    return behave_cmd


def run_tests(
    feature_paths: Optional[List[str]] = None,
    tags: Optional[List[str]] = None,
    junit_dir: Optional[str] = "output/junit",
    config_file: Optional[str] = None,
    log_level: Optional[str] = None
) -> int:
    """
    Run behave from the project root and return its exit code.

    ``config_file`` (a file name inside config/) and ``log_level`` reach the
    harness through the CONFIG_FILE and LOG_LEVEL environment variables.
    """
    if junit_dir:
        (project_root / junit_dir).mkdir(parents=True, exist_ok=True)

    behave_cmd = build_behave_command(feature_paths, tags, junit_dir)
    logger.info(f"Command: {' '.join(behave_cmd)}")

    env = dict(os.environ)
    if config_file:
        if not (project_root / "config" / config_file).exists():
            logger.error(f"Configuration file not found: config/{config_file}")
            return 2
        env["CONFIG_FILE"] = config_file
        logger.info(f"Using configuration: config/{config_file}")
    if log_level:
        env["LOG_LEVEL"] = log_level.upper()

    try:
        result = subprocess.run(behave_cmd, cwd=project_root, env=env, check=False)
    except OSError as e:
        logger.error(f"Error running tests: {e}")
        return 1

    if result.returncode == 0:
        logger.info("All tests passed!")
    else:
        logger.warning(f"Some tests failed (exit code {result.returncode})")

    return result.returncode


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run the Behave API test suite")

    parser.add_argument(
        "features",
        nargs="*",
        help="Feature files or directories to run (default: all features)"
    )
    parser.add_argument(
        "--tags",
        "-t",
        action="append",
        help="Tags to include/exclude (e.g., --tags @smoke --tags ~@negative)"
    )
    parser.add_argument(
        "--junit-dir",
        default="output/junit",
        help="Directory for JUnit XML reports"
    )
    parser.add_argument(
        "--config",
        help="Configuration file inside config/ (e.g. staging.yaml); default: config.ini"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Log level for the test run"
    )
    parser.add_argument(
        "--no-junit",
        action="store_true",
        help="Disable JUnit XML output"
    )

    args = parser.parse_args(argv)

    return run_tests(
        feature_paths=args.features or None,
        tags=args.tags,
        junit_dir=None if args.no_junit else args.junit_dir,
        config_file=args.config,
        log_level=args.log_level
    )


if __name__ == "__main__":
    sys.exit(main())
