"""
Review Runner

Process entry point for CI. Reads the pull request number and diff from
the environment, runs the review and reports the result.

Environment:
    PR_NUMBER       pull request number (required)
    PR_DIFF         unified diff; fetched from GitHub when unset
    GITHUB_OUTPUT   GitHub Actions output file (optional)
"""

import os
import sys
import logging
from typing import Dict, Mapping, Optional

from .api import ReviewService
from .config import load_config, setup_logging
from .models.review import RunResult


logger = logging.getLogger(__name__)

# RunResult.to_dict keys exposed as GitHub Actions outputs
CI_OUTPUT_KEYS = ('files_reviewed', 'comments_posted', 'comments_skipped')


def write_outputs(outputs: Dict[str, object], env: Mapping[str, str]) -> None:
    """Append step outputs to the GitHub Actions output file, if any."""
    output_path = env.get('GITHUB_OUTPUT')
    if not env.get('GITHUB_ACTIONS') or not output_path:
        return

    with open(output_path, 'a', encoding='utf-8') as f:
        for name, value in outputs.items():
            f.write(f"{name}={str(value).replace(chr(10), ' ')}\n")


def report(result: RunResult) -> Dict[str, object]:
    """Log a run result and return the CI outputs for it."""
    summary = result.to_dict()
    if result.skipped:
        logger.info(f"Review skipped: {summary['reason']}")
        return {'skipped-reason': summary['reason']}

    logger.info("Review Results:")
    for key, value in summary.items():
        if key not in ('success', 'skipped'):
            logger.info(f"  {key.replace('_', ' ').capitalize()}: {value}")
    return {key.replace('_', '-'): summary[key] for key in CI_OUTPUT_KEYS}


def run_from_env(root_path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> int:
    """
    Run a review from environment variables.

    Args:
        root_path: Directory holding the config file (default: cwd)
        env: Environment mapping (default: os.environ)

    Returns:
        Process exit code
    """
    env = os.environ if env is None else env

    try:
        config = load_config(root_path, env=env)
        setup_logging(config.logging)
        logger.info("Starting AI Code Review...")

        pr_number_raw = env.get('PR_NUMBER')
        if not pr_number_raw:
            raise ValueError("PR_NUMBER environment variable is required")
        pr_number = int(pr_number_raw)

        service = ReviewService(config)

        diff_text = env.get('PR_DIFF')
        if diff_text is None:
            diff_text = service.fetch_diff(pr_number)

        if not diff_text.strip():
            logger.info("No diff provided, skipping review")
            return 0

        result = service.review_pull_request(pr_number, diff_text)
        write_outputs(report(result), env)

        logger.info("Review completed successfully")
        return 0

    except Exception as e:
        logger.exception(f"Review failed: {e}")
        write_outputs({'error': str(e)}, env)
        return 1


def main() -> None:
    sys.exit(run_from_env())


if __name__ == "__main__":
    main()
