"""Parsers for result batch documents."""

from teststate.parser.batch import BatchParser

__all__ = ["BatchParser"]
