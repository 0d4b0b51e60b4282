#!/usr/bin/env python3
"""
Dry Run Demo

Runs the offline part of a review against a local diff file: parse,
filter, extract, check custom rules and print the prompt that would be
sent to the LLM. Nothing is posted.

Usage:
    git diff main... > pr.diff
    python examples/dry_run_demo.py pr.diff [repo_root]
"""

import sys
import logging

from llm_code_review.config import load_config, setup_logging
from llm_code_review.diff import DiffParser, RuleEngine, filter_files, extract_reviewable_changes
from llm_code_review.llm import PromptBuilder


def main():
    """Main demo function."""
    if len(sys.argv) not in (2, 3):
        print("Usage: python dry_run_demo.py <diff_file> [repo_root]")
        sys.exit(1)

    config = load_config(sys.argv[2] if len(sys.argv) == 3 else None)
    setup_logging(config.logging)
    logger = logging.getLogger(__name__)

    with open(sys.argv[1], 'r', encoding='utf-8') as f:
        diff_text = f.read()

    files = filter_files(DiffParser().parse(diff_text), config.review.exclude_patterns)
    changes = extract_reviewable_changes(files)
    logger.info(f"{len(changes)} of {len(files)} files have additions")

    engine = RuleEngine(config.rules.custom, absolute_lines=config.rules.absolute_lines)
    violations = [
        violation.with_filename(file_change.filename)
        for file_change in files
        for violation in engine.check(file_change)
    ]

    print("=" * 60)
    print(f"Files to review: {len(changes)}")
    for change in changes:
        print(f"  {change.filename}: +{change.additions}/-{change.deletions}")

    print(f"\nCustom rule violations: {len(violations)}")
    for violation in violations:
        print(f"  [{violation.severity}] {violation.rule} {violation.filename}:{violation.line} {violation.message}")

    if changes:
        print("\nPrompt:")
        print("-" * 60)
        print(PromptBuilder(config.review).build_review_prompt(changes, violations))


if __name__ == "__main__":
    main()
