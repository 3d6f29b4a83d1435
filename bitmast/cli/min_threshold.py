import argparse
import sys

from bitmast.core.combinations import compute_min_threshold, count_combinations
from ._base import Command, Context


class MinThresholdCommand(Command):
    """
    Find the smallest threshold whose MAST fits a leaf budget
    """
    name = 'min_threshold'

    def init_parser(self, parser: argparse.ArgumentParser):
        parser.add_argument('--participants', '-n', required=True, type=int, help='Number of participants')
        parser.add_argument('--max-leaves', required=True, type=int, help='Largest acceptable number of leaves')

    def run(self, context: Context):
        args = context.args
        if args.participants < 1 or args.max_leaves < 1:
            sys.exit("--participants and --max-leaves must be positive")

        m = compute_min_threshold(args.participants, args.max_leaves)
        print("Minimum threshold:".ljust(19), m)
        print("Leaves:".ljust(19), count_combinations(args.participants, m))
