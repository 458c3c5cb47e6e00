# ==============================================
# Tests for PlacementRuleClient
# ==============================================
#
# Runs against FakePDAdapter (see conftest.py), which keeps
# groups / rules in memory and rejects rules for unknown groups.
# ==============================================

import json

import pytest
import requests

from table_placement.codec.table_key import table_range_hex
from table_placement.config import PlacementConfig
from table_placement.errors import DecodeError, EncodingViolation, RemoteError
from table_placement.placement.client import DEFAULT_GROUP_INDEX, PlacementRuleClient
from table_placement.placement.models import GroupBundle, LabelConstraint

from conftest import GROUP_PATH, RULE_PATH


GROUP_ID = "test-engine-group"
RULE_ID = "table-12345-r"
ENGINE_CONSTRAINT = [LabelConstraint(key="engine", op="in", values=["test_engine"])]


class TestGroups:
    def test_list_groups_empty(self, client):
        assert client.list_groups() == []

    def test_set_group_request(self, client, fake_pd):
        client.set_group(GROUP_ID)
        method, path, body = fake_pd.calls[-1]
        assert method == "POST"
        assert path == f"{GROUP_PATH}/{GROUP_ID}"
        assert body == {"id": GROUP_ID, "index": DEFAULT_GROUP_INDEX, "override": True}

    def test_set_group_is_idempotent(self, client):
        client.set_group(GROUP_ID)
        first = client.list_groups()
        client.set_group(GROUP_ID)
        second = client.list_groups()

        assert first == second
        assert len(second) == 1
        assert second[0].id == GROUP_ID
        assert second[0].index == DEFAULT_GROUP_INDEX
        assert second[0].override is True

    def test_get_group(self, client):
        assert client.get_group(GROUP_ID) is None
        client.set_group(GROUP_ID)
        client.set_group("other")
        bundle = client.get_group(GROUP_ID)
        assert isinstance(bundle, GroupBundle)
        assert bundle.id == GROUP_ID

    def test_delete_group(self, client, fake_pd):
        client.set_group(GROUP_ID)
        client.delete_group(GROUP_ID)
        assert fake_pd.calls[-1][:2] == ("DELETE", f"{GROUP_PATH}/{GROUP_ID}")
        assert client.list_groups() == []

    def test_delete_absent_group_is_accepted(self, client):
        client.delete_group("never-created")

    def test_timeout_is_sent_on_every_request(self, client, fake_pd, pd_config):
        client.set_group(GROUP_ID)
        client.list_groups()
        assert fake_pd.timeouts == [pd_config.timeout_seconds] * 2


class TestRules:
    def test_set_rule_request(self, client, fake_pd):
        start_hex, end_hex = table_range_hex(12345)
        client.set_group(GROUP_ID)
        client.set_rule(GROUP_ID, RULE_ID, start_hex, end_hex, 3, ENGINE_CONSTRAINT)

        method, path, body = fake_pd.calls[-1]
        assert method == "POST"
        assert path == RULE_PATH
        assert body == {
            "group_id": GROUP_ID,
            "id": RULE_ID,
            "override": True,
            "start_key": start_hex,
            "end_key": end_hex,
            "role": "voter",
            "count": 3,
            "label_constraints": [{"key": "engine", "op": "in", "values": ["test_engine"]}],
        }

    def test_rule_before_group_is_rejected(self, client):
        start_hex, end_hex = table_range_hex(12345)
        with pytest.raises(RemoteError) as exc_info:
            client.set_rule(GROUP_ID, RULE_ID, start_hex, end_hex, 3, ENGINE_CONSTRAINT)
        assert exc_info.value.status_code == 400
        assert "not found" in exc_info.value.body

    def test_rule_after_group_succeeds(self, client):
        start_hex, end_hex = table_range_hex(12345)
        with pytest.raises(RemoteError):
            client.set_rule(GROUP_ID, RULE_ID, start_hex, end_hex, 3, ENGINE_CONSTRAINT)

        client.set_group(GROUP_ID)
        client.set_rule(GROUP_ID, RULE_ID, start_hex, end_hex, 3, ENGINE_CONSTRAINT)

        bundle = client.get_group(GROUP_ID)
        assert len(bundle.rules) == 1
        rule = bundle.rules[0]
        assert rule.id == RULE_ID
        assert rule.start_key_hex == start_hex
        assert rule.end_key_hex == end_hex
        assert rule.count == 3
        assert rule.label_constraints == ENGINE_CONSTRAINT

    def test_set_rule_is_idempotent(self, client):
        start_hex, end_hex = table_range_hex(12345)
        client.set_group(GROUP_ID)
        client.set_rule(GROUP_ID, RULE_ID, start_hex, end_hex, 3, ENGINE_CONSTRAINT)
        client.set_rule(GROUP_ID, RULE_ID, start_hex, end_hex, 3, ENGINE_CONSTRAINT)
        assert len(client.get_group(GROUP_ID).rules) == 1

    @pytest.mark.parametrize("count", [0, -1, True, 2.0])
    def test_replica_count_precondition(self, client, fake_pd, count):
        with pytest.raises(EncodingViolation):
            client.set_rule(GROUP_ID, RULE_ID, "", "", count)
        assert fake_pd.calls == []

    def test_delete_rule(self, client, fake_pd):
        client.set_group(GROUP_ID)
        client.set_rule(GROUP_ID, RULE_ID, "00", "ff", 1)
        client.delete_rule(GROUP_ID, RULE_ID)
        assert fake_pd.calls[-1][:2] == ("DELETE", f"{RULE_PATH}/{GROUP_ID}/{RULE_ID}")
        assert client.get_group(GROUP_ID).rules == []

    def test_delete_rule_after_group(self, client):
        client.set_group(GROUP_ID)
        client.set_rule(GROUP_ID, RULE_ID, "00", "ff", 1)
        client.delete_group(GROUP_ID)
        client.delete_rule(GROUP_ID, RULE_ID)
        assert client.list_groups() == []

    def test_path_segments_are_quoted(self, client, fake_pd):
        client.delete_rule("group one", "rule/1")
        assert fake_pd.calls[-1][1] == f"{RULE_PATH}/group one/rule/1"


class TestErrors:
    def test_non_200_carries_status_and_body(self, client, fake_pd):
        fake_pd.forced_status = 500
        fake_pd.forced_body = "rule conflicts with existing rule"
        with pytest.raises(RemoteError) as exc_info:
            client.set_group(GROUP_ID)
        error = exc_info.value
        assert error.status_code == 500
        assert error.reason == "Internal Server Error"
        assert error.body == "rule conflicts with existing rule"
        assert error.method == "POST"
        assert error.url.endswith(f"{GROUP_PATH}/{GROUP_ID}")
        assert "500" in str(error)

    def test_transport_failure_is_remote_error(self, client, fake_pd):
        fake_pd.raise_exc = requests.ConnectionError("connection refused")
        with pytest.raises(RemoteError) as exc_info:
            client.list_groups()
        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_timeout_is_remote_error(self, client, fake_pd):
        fake_pd.raise_exc = requests.Timeout("read timed out")
        with pytest.raises(RemoteError):
            client.delete_group(GROUP_ID)

    def test_garbage_body_is_decode_error(self, client, fake_pd):
        fake_pd.forced_body = "<html>not json</html>"
        with pytest.raises(DecodeError):
            client.list_groups()

    def test_wrong_shape_is_decode_error(self, client, fake_pd):
        fake_pd.forced_body = '{"group_id": "g"}'
        with pytest.raises(DecodeError):
            client.list_groups()

    def test_bundle_missing_group_id_is_decode_error(self, client, fake_pd):
        fake_pd.forced_body = '[{"group_index": 1}]'
        with pytest.raises(DecodeError):
            client.list_groups()

    @pytest.mark.parametrize("field,value", [
        ("values", [1, None]),
        ("location_labels", [{}]),
    ])
    def test_non_string_list_items_are_decode_error(self, client, fake_pd, field, value):
        rule = {
            "group_id": GROUP_ID,
            "id": RULE_ID,
            "label_constraints": [{"key": "engine", "op": "in", "values": ["test_engine"]}],
        }
        if field == "values":
            rule["label_constraints"][0]["values"] = value
        else:
            rule[field] = value
        fake_pd.forced_body = json.dumps([{"group_id": GROUP_ID, "rules": [rule]}])
        with pytest.raises(DecodeError):
            client.list_groups()

    def test_decode_error_is_not_remote_error(self, client, fake_pd):
        fake_pd.forced_body = "[1, 2]"
        with pytest.raises(DecodeError) as exc_info:
            client.list_groups()
        assert not isinstance(exc_info.value, RemoteError)

    def test_null_body_means_no_groups(self, client, fake_pd):
        fake_pd.forced_body = "null"
        assert client.list_groups() == []


class TestConfig:
    def test_base_url_adds_scheme(self):
        assert PlacementConfig(pd_address="10.0.0.1:2379").base_url == "http://10.0.0.1:2379"

    def test_base_url_keeps_scheme(self):
        assert PlacementConfig(pd_address="https://pd:2379/").base_url == "https://pd:2379"

    def test_independent_clients(self, pd_session, fake_pd):
        fast = PlacementRuleClient(PlacementConfig(pd_address="pd.test:2379", timeout_seconds=1.0), pd_session)
        slow = PlacementRuleClient(PlacementConfig(pd_address="pd.test:2379", timeout_seconds=9.0), pd_session)
        fast.list_groups()
        slow.list_groups()
        assert fake_pd.timeouts == [1.0, 9.0]

    def test_close_leaves_borrowed_session_open(self, client, pd_session):
        with client:
            client.set_group(GROUP_ID)
        # borrowed session still usable
        assert pd_session.get(f"http://pd.test:2379{GROUP_PATH}").status_code == 200
