"""Baseline revision.

Tables are created by app startup (Base.metadata.create_all); later revisions
carry the column and index changes made after the first deploy.

Revision ID: 001_initial
Revises:
Create Date: 2026-09-01

"""
from typing import Sequence, Union


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    pass


def downgrade() -> None:
    pass
