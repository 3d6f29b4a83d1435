from __future__ import annotations
from abc import ABC, abstractmethod
import argparse
from dataclasses import dataclass
import os
import sys

from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm.session import Session

from bitmast.core.models import StoredMast
from bitmast.core.storage import find_stored_mast


class Command(ABC):
    name: str

    def init_parser(self, parser: argparse.ArgumentParser):
        # add args etc -- optional
        pass

    @abstractmethod
    def run(self, context: Context):
        ...


@dataclass
class Context:
    args: argparse.Namespace
    dbsession: Session


def add_mast_name_arg(parser: argparse.ArgumentParser):
    parser.add_argument('--name', required=True, help='Name of the stored MAST')


def find_mast(context: Context) -> StoredMast:
    name = context.args.name
    try:
        return find_stored_mast(context.dbsession, name)
    except NoResultFound:
        sys.exit(f"MAST with name {name} not found")


def get_default_db_url() -> str:
    return os.getenv('MAST_DB_URL', 'sqlite:///bitmast.db')


def get_default_prune_budget() -> int | None:
    value = os.getenv('MAST_PRUNE_BUDGET')
    if not value:
        return None
    return int(value)


def get_default_max_combinations() -> int:
    return int(os.getenv('MAST_MAX_COMBINATIONS', 1_000_000))
