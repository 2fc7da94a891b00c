# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
This module builds the mutation maps submitted with ``batch_mutate``.

A mutation map has the shape ``{row key: {column family: [Mutation, ...]}}``.
The store applies the mutations for one row key and column family
atomically; nothing is guaranteed across entries.
"""

from collections.abc import Mapping
import logging

from cassthrift import UnsupportedOperation
from cassthrift.query import to_bytes, names_list
from cassthrift.ttypes import (MAX_I32, Column, SuperColumn, ColumnOrSuperColumn, Deletion,
                               Mutation, SlicePredicate)

log = logging.getLogger(__name__)


def _column(name, value, timestamp_generator, ttl):
    return Column(name=to_bytes(name), value=to_bytes(value),
                  timestamp=timestamp_generator(), ttl=ttl)


def _insert_mutation(name, value, timestamp_generator, ttl):
    if isinstance(value, Mapping):
        columns = [_column(sub_name, sub_value, timestamp_generator, ttl)
                   for sub_name, sub_value in value.items()]
        if not columns:
            raise ValueError("Super column %r has no columns to insert" % (name,))
        cosc = ColumnOrSuperColumn(super_column=SuperColumn(name=to_bytes(name), columns=columns))
    else:
        cosc = ColumnOrSuperColumn(column=_column(name, value, timestamp_generator, ttl))
    return Mutation(column_or_supercolumn=cosc)


def _mutation_map(key, column_family, mutations):
    if not mutations:
        raise ValueError("A mutation batch needs at least one mutation")
    log.debug("Built %d mutation(s) for column family %s", len(mutations), column_family)
    return {to_bytes(key): {column_family: mutations}}


def build_insert_batch(key, column_family, columns, timestamp_generator, ttl=None):
    """
    Returns a mutation map inserting `columns` into row `key` of
    `column_family`.

    `columns` maps column names to values.  A value that is itself a
    mapping is a super column: its entries become the super column's
    columns.  Mutations follow the iteration order of `columns`, and every
    column gets its own timestamp from `timestamp_generator`.

    `ttl`, when given, is the number of seconds after which the inserted
    columns expire.
    """
    if ttl is not None and (isinstance(ttl, bool) or not isinstance(ttl, int) or not 0 < ttl <= MAX_I32):
        raise ValueError("ttl must be a positive number of seconds up to %d, got %r" % (MAX_I32, ttl))
    mutations = [_insert_mutation(name, value, timestamp_generator, ttl)
                 for name, value in columns.items()]
    return _mutation_map(key, column_family, mutations)


def _deletion(timestamp_generator, super_column=None, names=None):
    deletion = Deletion(timestamp=timestamp_generator())
    if super_column is not None:
        deletion.super_column = to_bytes(super_column)
    if names is not None:
        names = names_list(names)
        if not names:
            raise ValueError("No column names given to delete")
        deletion.predicate = SlicePredicate(column_names=names)
    return Mutation(deletion=deletion)


def _super_column_deletion(super_column, target, timestamp_generator):
    if target is None:
        return _deletion(timestamp_generator, super_column=super_column)
    if isinstance(target, Mapping):
        raise UnsupportedOperation(
            "Deleting a range of columns from super column %r is not supported" % (super_column,))
    return _deletion(timestamp_generator, super_column=super_column, names=target)


def build_delete_batch(key, column_family, target, timestamp_generator):
    """
    Returns a mutation map deleting from row `key` of `column_family`.

    `target` selects what is deleted:

    - :const:`None` deletes the whole row
    - a column name deletes that column
    - a list or tuple of names deletes those columns
    - a mapping of super column names to :const:`None` (the whole super
      column), a name, or a list of names deletes from those super columns

    Range deletions cannot be expressed and raise
    :exc:`~.UnsupportedOperation`.
    """
    if target is None:
        mutations = [_deletion(timestamp_generator)]
    elif isinstance(target, Mapping):
        mutations = [_super_column_deletion(super_column, sub_target, timestamp_generator)
                     for super_column, sub_target in target.items()]
    elif isinstance(target, (str, bytes, bytearray, list, tuple)):
        mutations = [_deletion(timestamp_generator, names=target)]
    else:
        raise TypeError("Cannot delete columns selected by %s" % (type(target).__name__,))
    return _mutation_map(key, column_family, mutations)
