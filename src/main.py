#!/usr/bin/env python3
"""
Load Secrets - entry point.

Loads every item of a 1Password vault and exposes its fields to later
pipeline steps, either as a JSON ``secrets`` output or as environment
variables.

Usage:
    python main.py [--config FILE] [--log-level LEVEL]
"""

import argparse
import logging
import sys

import actions_core
import masking
import workflow

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    handlers=[logging.StreamHandler(sys.stderr)]
)

logger = logging.getLogger("load-secrets")


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Load secrets from a 1Password vault into the pipeline')
    parser.add_argument('-c', '--config', type=str, default=None,
                        help='Path to YAML configuration file')
    parser.add_argument('--log-level', default=None,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')

    return parser.parse_args(argv)


def main(argv=None):
    """Run the load-secrets step."""
    args = parse_arguments(argv)

    if args.log_level:
        logging.getLogger().setLevel(getattr(logging, args.log_level))
    elif actions_core.is_debug():
        logging.getLogger().setLevel(logging.DEBUG)

    masking.install()

    sys.exit(workflow.run(args.config))


if __name__ == "__main__":
    main()
