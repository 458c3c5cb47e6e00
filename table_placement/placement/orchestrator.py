# ==============================================
# TablePlacement
# ==============================================
#
# PURPOSE:
#   Pin one table's whole key range to the stores labelled with a
#   given engine, or undo that pin. Wraps the group-then-rule call
#   order around PlacementRuleClient.
#
# CLASS: TablePlacement
# ---------------------
#   Constructor:
#   ------------
#   - __init__(client, table_id, group_id, engine_label, replica_count)
#
#   Attributes:
#   -----------
#   - rule_id             → "table-{table_id}-r"
#   - label_constraints   → [engine in [engine_label]]
#
#   Methods:
#   --------
#   - apply() -> PlacementRule
#       set_group, then set_rule over table_range_hex(table_id).
#       If set_rule fails the group stays behind; calling apply()
#       again repairs it.
#
#   - sync(delete_group=False, delete_rule=False) -> PlacementRule | None
#       Group step first (set or delete), then rule step (set or
#       delete). Each toggle is independent, so a rule can be
#       re-pinned while its group is dropped, or the reverse.
#
#   - remove(delete_rule=True, delete_group=True) -> None
#       delete_rule, then delete_group. Either order is accepted by
#       PD; a rule under a deleted group has no effect.
#
#   - describe() -> GroupBundle | None
#
# ==============================================

from typing import List, Optional

from table_placement.codec.table_key import table_range_hex
from table_placement.placement.client import PlacementRuleClient
from table_placement.placement.models import GroupBundle, LabelConstraint, PlacementRule


ENGINE_LABEL_KEY = "engine"


def rule_id_for_table(table_id: int) -> str:
    return f"table-{table_id}-r"


class TablePlacement:
    def __init__(
        self,
        client: PlacementRuleClient,
        table_id: int,
        group_id: str = "test-engine-group",
        engine_label: str = "test_engine",
        replica_count: int = 3
    ):
        self.client = client
        self.table_id = table_id
        self.group_id = group_id
        self.engine_label = engine_label
        self.replica_count = replica_count
        self.rule_id = rule_id_for_table(table_id)

    @property
    def label_constraints(self) -> List[LabelConstraint]:
        return [LabelConstraint(key=ENGINE_LABEL_KEY, op="in", values=[self.engine_label])]

    def apply(self) -> PlacementRule:
        return self.sync()

    def sync(self, delete_group: bool = False, delete_rule: bool = False) -> Optional[PlacementRule]:
        if delete_group:
            self.client.delete_group(self.group_id)
        else:
            self.client.set_group(self.group_id)

        if delete_rule:
            self.client.delete_rule(self.group_id, self.rule_id)
            return None
        start_key_hex, end_key_hex = table_range_hex(self.table_id)
        return self.client.set_rule(
            self.group_id,
            self.rule_id,
            start_key_hex,
            end_key_hex,
            self.replica_count,
            self.label_constraints
        )

    def remove(self, delete_rule: bool = True, delete_group: bool = True) -> None:
        if delete_rule:
            self.client.delete_rule(self.group_id, self.rule_id)
        if delete_group:
            self.client.delete_group(self.group_id)

    def describe(self) -> Optional[GroupBundle]:
        return self.client.get_group(self.group_id)
