import argparse
import sys

from bitmast.core.errors import MastError
from bitmast.core.mast import MastController
from bitmast.core.storage import load_mast
from ._base import Command, Context, add_mast_name_arg, find_mast


def parse_signers(raw: str) -> list[int] | list[str]:
    parts = [part.strip() for part in raw.split(',') if part.strip()]
    if parts and all(part.isdigit() for part in parts):
        return [int(part) for part in parts]
    return parts


class ProveCommand(Command):
    """
    Produce the inclusion proof for a signer subset of a stored MAST
    """
    name = 'prove'

    def init_parser(self, parser: argparse.ArgumentParser):
        add_mast_name_arg(parser)
        parser.add_argument('--signers', required=True,
                            help='Comma-separated signer public keys (hex) or participant indices')

    def run(self, context: Context):
        args = context.args
        stored = find_mast(context)
        controller = MastController()

        try:
            mast = load_mast(context.dbsession, stored.name, controller=controller)
            signers = parse_signers(args.signers)
            aggregated = mast.aggregated_key_for(signers)
            proof = controller.spend_proof(mast, signers)
        except (MastError, ValueError) as e:
            sys.exit(f"Cannot prove signer subset: {e}")

        print("Combination:".ljust(19), ",".join(str(i) for i in aggregated.combination))
        print("Leaf index:".ljust(19), mast.leaf_index(signers))
        print("Aggregated key:".ljust(19), aggregated.public_key.hex())
        print("Leaf hash:".ljust(19), aggregated.leaf_hash.hex())
        print("Merkle root:".ljust(19), mast.root.hex())
        print("Proof:".ljust(19), proof.hex())
