# kitsune_dht

Partitioning of a DHT's 32-bit location space and of time. Peers can then
compare combined hashes of the ops they hold and cheaply find where their
data differs.

All timestamps and durations are plain integers that count microseconds.
Timestamps count from the UNIX epoch. The base unit of time
(`kitsune_dht.core.UNIT_TIME`) is 15 minutes.

## Modules

- `kitsune_dht.core`: the shared types.
  - `DhtArc` is an inclusive range of locations. It may wrap around the top
    of the space, and it has the constants `DhtArc.EMPTY` and `DhtArc.FULL`.
    It offers `contains(loc)` and `is_empty()`.
  - `OpId` has `loc()`, which reads the last four bytes as a little-endian
    location.
  - `StoredOp`, `MetaOp` and `K2Error` are also here.
  - `now_micros()` returns the current time.
- `kitsune_dht.slice_hash_store`: `TimeSliceHashStore`, a sparse map from an
  arc and a slice id to a combined hash.
  - `insert` rejects empty hashes with `K2Error`.
  - `get` returns `None` when nothing has been stored for that slice.
  - `highest_stored_id` returns the largest slice id stored for an arc.
- `kitsune_dht.op_store`: `MemoryOp` and `MemoryOpStore`.
  - `MemoryOp.to_meta_op()` serializes the op to JSON.
  - `MemoryOp.to_stored_op()` gives its id and timestamp.
  - `MemoryOpStore` keeps ops and full-slice hashes in memory. Its coroutine
    methods are `process_incoming_ops`, `retrieve_op_hashes_in_time_slice`,
    `store_slice_hash`, `slice_hash_count` and `retrieve_slice_hash`.
    `slice_hash_count` returns the highest stored slice id plus one.
- `kitsune_dht.slices`: helpers for combining hashes and sizing slices.
  - `combine_hashes` and `combine_op_hashes` combine hashes by XOR.
  - `residual_duration_for_factor` gives the time taken by one slice of each
    size up to `2**factor` units. It raises `K2Error` for a factor of 54 or
    more.
  - `PartialSlice` is a recent time slice whose hash is held in memory.
- `kitsune_dht.layout`: the layout rules, as `full_slice_duration_for_factor`,
  `layout_full_slices` and `layout_partials`.
- `kitsune_dht.partitioned_time`: `PartitionedTime`, which splits time for
  one arc.
  - Full slices of `2**factor` units have their hashes kept in the store.
  - Recent time is split into partial slices, from `2**(factor - 1)` units
    down to one unit, with their hashes kept in memory.
  - Build one with `PartitionedTime.try_from_store(...)`.
  - Call `update(store, now)` once `next_update_at()` has passed.
  - Report new ops with `inform_ops_stored(store, ops)`.
- `kitsune_dht.partitioned_hashes`: `PartitionedHashes`, which splits the
  location space into 512 equal arcs. Each arc has its own `PartitionedTime`,
  and all of them are updated together.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
import asyncio

from kitsune_dht.core import now_micros
from kitsune_dht.op_store import MemoryOpStore
from kitsune_dht.partitioned_hashes import PartitionedHashes


async def main():
    store = MemoryOpStore()
    hashes = await PartitionedHashes.try_from_store(14, now_micros(), store)
    print("next update due at", hashes.next_update_at())

    # Later, once ops have been stored:
    # await hashes.inform_ops_stored(store, stored_ops)
    # await hashes.update(store, now_micros())


asyncio.run(main())
```

Problems are raised as `K2Error`. Examples are an empty arc constraint, a
clock that is behind the stored slices, and an attempt to store an empty
combined hash.

## What it does not do

This is a library only, with no command and no network layer. It does not
gossip with peers and does not exchange hashes.

The only op store provided is the in-memory `MemoryOpStore`, so nothing is
persisted to disk. Any object that provides the same coroutine methods can
be passed as the `store`.