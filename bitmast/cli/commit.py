import argparse
import sys

from sqlalchemy import select

from bitmast.core.errors import MastError
from bitmast.core.mast import MastController
from bitmast.core.models import StoredMast
from bitmast.core.keys import PublicKey
from bitmast.core.parsing import parse_pubkey_list
from bitmast.core.storage import save_mast
from ._base import Command, Context, add_mast_name_arg, get_default_max_combinations, get_default_prune_budget


class CommitCommand(Command):
    """
    Build the MAST for an M-of-N policy and store it under a name
    """
    name = 'commit'

    def init_parser(self, parser: argparse.ArgumentParser):
        add_mast_name_arg(parser)
        parser.add_argument('--pubkeys', required=True,
                            help='Comma-separated participant public keys (hex)')
        parser.add_argument('--threshold', '-m', required=True, type=int,
                            help='Number of signers each leaf commits to')
        parser.add_argument('--prune-budget', type=int, default=get_default_prune_budget(),
                            help='Commit to at most this many combinations (default: MAST_PRUNE_BUDGET or no pruning)')
        parser.add_argument('--internal-key',
                            help='Internal key of the output (default: aggregate of all participants)')
        parser.add_argument('--max-combinations', type=int, default=get_default_max_combinations(),
                            help='Refuse policies with more combinations than this (default: MAST_MAX_COMBINATIONS)')

    def run(self, context: Context):
        args = context.args
        dbsession = context.dbsession

        if dbsession.execute(select(StoredMast).filter_by(name=args.name)).first() is not None:
            sys.exit(f"MAST with name {args.name} already exists")

        try:
            pubkeys = parse_pubkey_list(args.pubkeys)
            internal_key = PublicKey.fromhex(args.internal_key) if args.internal_key else None
            controller = MastController(ceiling=args.max_combinations)
            mast, dropped_count = controller.commit(
                pubkeys,
                args.threshold,
                args.prune_budget,
                internal_key=internal_key,
            )
        except (MastError, ValueError) as e:
            sys.exit(f"Cannot commit to the policy: {e}")

        save_mast(dbsession, mast, name=args.name)
        commitment = mast.output_commitment

        print("Name:".ljust(19), args.name)
        print("Policy:".ljust(19), mast.threshold)
        print("Leaves:".ljust(19), mast.tree.leaf_count)
        print("Dropped:".ljust(19), dropped_count)
        print("Depth:".ljust(19), mast.tree.depth)
        print("Merkle root:".ljust(19), mast.root.hex())
        print("Internal key:".ljust(19), mast.internal_key.hex())
        print("Output key:".ljust(19), commitment.output_key_x.hex())
        print("Parity:".ljust(19), commitment.parity)
        print("scriptPubKey:".ljust(19), commitment.script_pubkey.hex())
