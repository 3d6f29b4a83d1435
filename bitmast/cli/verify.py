import argparse
import sys

from bitmast.core.errors import InvalidPublicKey
from bitmast.core.keys import PublicKey
from bitmast.core.mast import MastController
from bitmast.core.parsing import parse_hash256, parse_hex_bytes
from ._base import Command, Context


class VerifyCommand(Command):
    """
    Check an inclusion proof against a Merkle root. Needs no stored state.
    """
    name = 'verify'

    def init_parser(self, parser: argparse.ArgumentParser):
        parser.add_argument('--root', required=True, help='Merkle root (hex)')
        parser.add_argument('--aggregated-key', required=True, help='Aggregated key of the signer subset (hex)')
        parser.add_argument('--proof', required=True, help='Serialized inclusion proof (hex)')
        parser.add_argument('--leaf-count', type=int,
                            help='Number of leaves in the tree; if given, the proof length must match its depth')

    def run(self, context: Context):
        args = context.args
        try:
            root = parse_hash256(args.root)
            aggregated_key = PublicKey.fromhex(args.aggregated_key)
            proof = parse_hex_bytes(args.proof)
        except (InvalidPublicKey, TypeError, ValueError) as e:
            sys.exit(f"Invalid input: {e}")

        if not MastController.verify_spend(root, aggregated_key, proof, leaf_count=args.leaf_count):
            sys.exit("Proof is INVALID")
        print("Proof is valid")
