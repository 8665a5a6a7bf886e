#!/usr/bin/env python3
"""
Check Proof For Address

Command-line entry point: loads the committed tree definition, generates the
inclusion proof for one address and saves it as JSON.

Usage:
    check-proof <address> [--tree tree.json] [--output proof.json] [--verify]
"""

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path

from merkle_proof_generator import generate_proof
from proof_config import get_proof_config
from standard_merkle_tree import load_tree_file

USAGE_ERROR = "Error: No address provided. Usage: check-proof <address>"


def print_verbose(config, message):
    if config.verbose_logging:
        print(message)


def create_parser():
    parser = argparse.ArgumentParser(
        prog="check-proof",
        description="Generate a Merkle inclusion proof for an address in a standard-v1 tree.",
    )
    parser.add_argument("address", nargs="?", help="Address to look up (case-insensitive)")
    parser.add_argument("--tree", type=Path, help="Tree definition file (default: ./tree.json)")
    parser.add_argument("--output", type=Path, help="Where to save the proof (default: proof.json beside this tool)")
    parser.add_argument("--verify", action="store_true", help="Recompute the root from the proof and report the result")
    parser.add_argument("--empty-list", action="store_true", help='Write "proof": [] instead of "" when the address is absent')
    parser.add_argument("--verbose", action="store_true", help="Print progress details")
    return parser


def write_result(output, output_path, indent):
    """Serialize first, then write, so a failed dump never leaves a partial file."""
    serialized = json.dumps(output, indent=indent)
    output_path = Path(output_path)
    with open(output_path, "w") as f:
        f.write(serialized)
    return output_path


def run(address, config, verify=False):
    """Load, prove, persist. Returns the object written to the result file."""
    print_verbose(config, f"-> Loading tree definition from {config.tree_path}")
    tree = load_tree_file(config.tree_path)
    print_verbose(config, f"-> Loaded {len(tree)} leaves, root {tree.root}")

    result = generate_proof(tree, address)
    if result.found:
        print_verbose(config, f"-> Found {address} at leaf {result.index}, proof has {len(result.proof)} nodes")
    else:
        print_verbose(config, f"-> {address} is not in the tree")

    if verify and result.found:
        is_valid = result.verify(tree.root)
        print(f"Proof {'verifies' if is_valid else 'DOES NOT verify'} against root {tree.root}")

    output = result.to_output(legacy_empty_proof=config.legacy_empty_proof)
    saved_path = write_result(output, config.output_path, config.output_indent)

    print(json.dumps(output, indent=config.output_indent))
    print(f"Proof saved to {saved_path}")
    return output


def config_for_run(args):
    """Copy of the current configuration with this invocation's flags applied."""
    overrides = {}
    if args.tree:
        overrides["tree_path"] = Path(args.tree)
    if args.output:
        overrides["output_path"] = Path(args.output)
    if args.empty_list:
        overrides["legacy_empty_proof"] = False
    if args.verbose:
        overrides["verbose_logging"] = True
    return replace(get_proof_config(), **overrides)


def main(argv=None):
    args = create_parser().parse_args(argv)

    if not args.address:
        print(USAGE_ERROR, file=sys.stderr)
        return 1

    config = config_for_run(args)
    try:
        run(args.address, config, verify=args.verify)
    except Exception as e:
        print(f"An error occurred: {e}", file=sys.stderr)
        return 1 if config.exit_on_failure else 0
    return 0


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
