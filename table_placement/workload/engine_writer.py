# ==============================================
# EngineWriteWorkload
# ==============================================
#
# PURPOSE:
#   Drive the test engine through an update-and-aggregate cycle
#   using nothing but raw key-value writes: reset every row, seed
#   rows, then add 1 to each column in turn and read back its sum.
#
# WHY THIS CLASS EXISTS:
#   The engine under test stores a table in column form behind a
#   raw-KV API. Writing modification log entries keyed by table
#   keys, then asking for per-column sums, checks that its fold of
#   DELETE / ADD entries is correct.
#
# PROTOCOL: RawKVClient
# ---------------------
#   The real client lives elsewhere. Anything with these methods works:
#   - batch_put(keys, values, column_family) -> None
#   - scan_handle_ids(start_key, end_key) -> list[bytes]
#   - locate_regions(start_key, end_key) -> list[RegionDescriptor]
#   - sum_table_column(start_key, end_key, column_id) -> int
#
# CLASS: EngineWriteWorkload
# --------------------------
#   Constructor:
#   ------------
#   - __init__(kv, table_id, column_size=200, modify_round=5,
#              column_family="write")
#       0 < column_size < 300, modify_round > 0.
#
#   Methods:
#   --------
#   - clean_up() -> int            → DELETE every existing row
#   - init_rows() -> int           → ADD(column_size - 1, 0) for handles 0..n-1
#   - bump_column(column_id) -> int → ADD(column_id, 1) to every row
#   - column_sum(column_id) -> int
#   - run(modify=True) -> dict[int, int]
#   - describe_regions() -> list[RegionDescriptor]
#
# ==============================================

import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence

from table_placement.codec.modify_log import AddDeltaEntry, DeleteEntry
from table_placement.codec.table_key import TableKeyHandle, table_range
from table_placement.errors import EncodingViolation


MAX_COLUMN_SIZE = 300


@dataclass
class RegionDescriptor:
    """One region of the raw engine that overlaps a key range."""
    region_id: int
    start_key: bytes
    end_key: bytes
    leader_store_id: Optional[int] = None


class RawKVClient(Protocol):
    def batch_put(self, keys: Sequence[bytes], values: Sequence[bytes], column_family: str) -> None:
        ...

    def scan_handle_ids(self, start_key: bytes, end_key: bytes) -> List[bytes]:
        ...

    def locate_regions(self, start_key: bytes, end_key: bytes) -> List[RegionDescriptor]:
        ...

    def sum_table_column(self, start_key: bytes, end_key: bytes, column_id: int) -> int:
        ...


class EngineWriteWorkload:
    def __init__(
        self,
        kv: RawKVClient,
        table_id: int,
        column_size: int = 200,
        modify_round: int = 5,
        column_family: str = "write"
    ):
        if column_size <= 0 or column_size >= MAX_COLUMN_SIZE:
            raise EncodingViolation(f"invalid column_size {column_size}, should be (0, {MAX_COLUMN_SIZE})")
        if modify_round <= 0:
            raise EncodingViolation(f"invalid modify_round {modify_round}, should be (0, inf)")

        self.kv = kv
        self.table_id = table_id
        self.column_size = column_size
        self.modify_round = modify_round
        self.column_family = column_family
        self.start_key, self.end_key = table_range(table_id)

    def _put(self, keys: List[bytes], values: List[bytes]) -> int:
        if keys:
            self.kv.batch_put(keys, values, self.column_family)
        return len(keys)

    def clean_up(self) -> int:
        keys = self.kv.scan_handle_ids(self.start_key, self.end_key)
        values = [DeleteEntry().encode() for _ in keys]
        count = self._put(list(keys), values)
        print(f"Successfully delete {count} record of table {self.table_id}")
        return count

    def init_rows(self) -> int:
        keys = []
        values = []
        for handle_id in range(self.modify_round):
            key = TableKeyHandle.new(self.table_id, handle_id)
            entry = AddDeltaEntry(self.column_size - 1, 0, key=key)
            keys.append(key.encoded)
            values.append(entry.encode())
        count = self._put(keys, values)
        print(f"Successfully init {count} record of table {self.table_id}")
        return count

    def bump_column(self, column_id: int, amount: int = 1) -> int:
        keys = self.kv.scan_handle_ids(self.start_key, self.end_key)
        values = [AddDeltaEntry(column_id, amount).encode() for _ in keys]
        count = self._put(list(keys), values)
        print(f"update table {self.table_id} set col {column_id} += {amount}")
        return count

    def column_sum(self, column_id: int) -> int:
        total = self.kv.sum_table_column(self.start_key, self.end_key, column_id)
        print(f"Successfully got sum of table {self.table_id} col {column_id} is {total}")
        return total

    def run(self, modify: bool = True) -> Dict[int, int]:
        """
        Full cycle. With modify=False only the sums are read back.

        Returns:
            {column_id: sum} for every column.
        """
        print(f"start to test {{table {self.table_id}}} with {{column size {self.column_size}}}, "
              f"modify round {self.modify_round}")
        start = time.time()

        if modify:
            self.clean_up()
            self.init_rows()

        sums: Dict[int, int] = {}
        for column_id in range(self.column_size):
            if modify:
                self.bump_column(column_id)
            sums[column_id] = self.column_sum(column_id)

        print(f"Whole test costs: {time.time() - start:.6f}s")
        return sums

    def describe_regions(self) -> List[RegionDescriptor]:
        regions = self.kv.locate_regions(self.start_key, self.end_key)
        region_ids = ",".join(str(r.region_id) for r in regions)
        print(f"There are {len(regions)} regions in this placement rule: {region_ids}")
        for region in regions:
            print(f"   - region {region.region_id}: [{region.start_key.hex()}, {region.end_key.hex()}) "
                  f"leader store {region.leader_store_id}")
        return regions
