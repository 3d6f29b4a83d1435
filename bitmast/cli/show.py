import argparse
import os
import sys

from bitmast.core.errors import MastError
from bitmast.core.storage import load_mast
from ._base import Command, Context, add_mast_name_arg, find_mast


class ShowCommand(Command):
    """
    Show a stored MAST, optionally with every leaf and the keys behind it
    """
    name = 'show'

    def init_parser(self, parser: argparse.ArgumentParser):
        add_mast_name_arg(parser)
        parser.add_argument('--leaves', action='store_true',
                            help='Rebuild the MAST and list each aggregated key with its participants')

    def run(self, context: Context):
        stored = find_mast(context)

        try:
            columns = os.get_terminal_size().columns
        except OSError:
            columns = 80

        for key, value in stored.__dict__.items():
            if key.startswith('_'):
                continue
            if key in ('participants', 'leaf_hashes'):
                continue
            key = f"{key}:".ljust(20)
            value = str(value)
            maxwidth = max(columns - 35, 30)
            if len(value) > maxwidth:
                value = value[:maxwidth] + "..."
            print(f"{key}{value}")

        print("Participants:")
        for index, pubkey in enumerate(stored.participants):
            print(f"  {index}: {pubkey}")

        if not context.args.leaves:
            return

        try:
            mast = load_mast(context.dbsession, stored.name)
        except (MastError, ValueError) as e:
            sys.exit(f"Cannot rebuild MAST {stored.name}: {e}")
        print("Leaves:")
        for index, (aggregated_key, members) in enumerate(mast.agg_pubkeys_to_personal()):
            print(f"  {index}: {aggregated_key.hex()}")
            for member in members:
                print(f"      {member.hex()}")
