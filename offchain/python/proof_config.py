#!/usr/bin/env python3
"""
Proof Tool Configuration

Where the tree definition is read from, where the proof result is written, and how
the result file and console output look. The library functions never read this
module; only the command-line entry point does, and passes explicit values down.
"""

from dataclasses import dataclass, fields
from pathlib import Path

DEFAULT_TREE_FILE = "tree.json"
DEFAULT_OUTPUT_FILE = "proof.json"


@dataclass
class ProofConfig:
    """Settings for one proof lookup run."""
    # Input is resolved against the working directory, output sits beside the tool
    tree_path: Path = Path(DEFAULT_TREE_FILE)
    output_path: Path = Path(__file__).resolve().parent / DEFAULT_OUTPUT_FILE

    # Result file shape
    legacy_empty_proof: bool = True  # write "proof": "" for a miss, as earlier tooling did
    output_indent: int = 1

    # Failure handling
    exit_on_failure: bool = True  # non-zero exit status when load/compute/write fails

    # Debugging
    verbose_logging: bool = False


PROOF_CONFIG = ProofConfig()


def get_proof_config() -> ProofConfig:
    """Get current proof tool configuration."""
    return PROOF_CONFIG


def set_proof_config(**kwargs) -> ProofConfig:
    """Override selected settings; unknown names are rejected."""
    known = {f.name for f in fields(ProofConfig)}
    for key, value in kwargs.items():
        if key not in known:
            raise ValueError(f"Unknown proof config setting: {key}")
        if key in ("tree_path", "output_path"):
            value = Path(value)
        setattr(PROOF_CONFIG, key, value)
    return PROOF_CONFIG


def reset_to_default_config():
    """Reset configuration to default values."""
    global PROOF_CONFIG
    PROOF_CONFIG = ProofConfig()
    return PROOF_CONFIG
