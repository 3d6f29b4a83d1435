import argparse
from typing import Sequence
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm.session import Session

from bitmast.core.environ import DOTENV_FILE, load_bitmast_dotenv
from bitmast.core.storage import create_tables
from ._base import Context, get_default_db_url
from .commit import CommitCommand
from .min_threshold import MinThresholdCommand
from .prove import ProveCommand
from .show import ShowCommand
from .verify import VerifyCommand

COMMAND_CLASSES = [
    CommitCommand,
    MinThresholdCommand,
    ProveCommand,
    ShowCommand,
    VerifyCommand,
]


def main(argv: Sequence[str] = None):
    if DOTENV_FILE.exists():
        load_bitmast_dotenv()

    parser = argparse.ArgumentParser(prog='bitmast')
    parser.add_argument('--db', help='database url', default=get_default_db_url())

    subparsers = parser.add_subparsers(
        dest='command',
        required=True,
    )
    commands = {}
    for command_cls in COMMAND_CLASSES:
        command = command_cls()
        subparser = subparsers.add_parser(command.name, help=command.__doc__)
        command.init_parser(subparser)
        commands[command.name] = command

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
    )

    engine = create_engine(args.db)
    create_tables(engine)
    dbsession = Session(engine, autobegin=False)

    with dbsession.begin():
        command = commands[args.command]
        command.run(Context(
            args=args,
            dbsession=dbsession,
        ))


if __name__ == "__main__":
    main()
