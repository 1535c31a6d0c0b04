from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path

from ..processor.util import DEFAULT_KMER_SIZE


@dataclass(frozen=True)
class DumpConfig:
    """ Data class that holds options for dumping event alignments.

    Configuration is created once from the script arguments and passed to every worker.
    """
    reads: Path
    output_dir: Path = Path('.')
    threads: int = 1
    scale_events: bool = False
    kmer_size: int = DEFAULT_KMER_SIZE
    verbose: int = 0

    @staticmethod
    def from_args(args: argparse.Namespace) -> DumpConfig:
        return DumpConfig(reads=args.reads,
                          output_dir=args.output_dir,
                          threads=args.threads,
                          scale_events=args.scale_events,
                          kmer_size=args.kmer_size,
                          verbose=args.verbose)

    def info(self) -> dict:
        """ Returns key-value pairs of the options, used for reporting parameters. """
        return {
            'reads': str(self.reads),
            'output_dir': str(self.output_dir),
            'threads': self.threads,
            'scale_events': self.scale_events,
            'kmer_size': self.kmer_size
        }
