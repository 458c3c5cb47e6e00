# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# This file contains shared fixtures for all tests.
#
# FIXTURES:
# ---------
# - fake_pd       → FakePDAdapter, an in-memory PD placement-rule API
# - pd_session    → requests.Session with fake_pd mounted on http://
# - pd_config     → PlacementConfig pointing at the fake address
# - client        → PlacementRuleClient talking to fake_pd
# - fake_kv       → FakeRawKV, folds modification log entries in memory
#
# NOTES:
# ------
# - No network. The fake PD is a requests transport adapter, so the
#   client code under test runs unchanged.
# - Like PD, the fake rejects a rule whose group does not exist.
# ==============================================

import json
from http import HTTPStatus
from typing import Dict, List, Tuple
from urllib.parse import unquote, urlparse

import pytest
import requests
from requests.adapters import BaseAdapter

from table_placement.codec.modify_log import AddDeltaEntry, DeleteEntry, decode
from table_placement.config import PlacementConfig
from table_placement.placement.client import PlacementRuleClient
from table_placement.workload.engine_writer import RegionDescriptor


PD_ADDRESS = "pd.test:2379"

GROUP_PATH = "/pd/api/v1/config/placement-rule"
RULE_PATH = "/pd/api/v1/config/rule"


class FakePDAdapter(BaseAdapter):
    """In-memory stand-in for PD's placement-rule HTTP API."""

    def __init__(self):
        super().__init__()
        self.groups: Dict[str, dict] = {}
        self.rules: Dict[Tuple[str, str], dict] = {}
        self.calls: List[Tuple[str, str, object]] = []
        self.timeouts: List[object] = []
        # Test hooks
        self.forced_status = None
        self.forced_body = None
        self.raise_exc = None

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.timeouts.append(timeout)
        if self.raise_exc is not None:
            raise self.raise_exc

        path = unquote(urlparse(request.url).path)
        body = json.loads(request.body) if request.body else None
        self.calls.append((request.method, path, body))

        if self.forced_status is not None:
            return self._response(request, self.forced_status, self.forced_body or "")
        if self.forced_body is not None:
            return self._response(request, 200, self.forced_body)

        status, payload = self._dispatch(request.method, path, body)
        text = payload if isinstance(payload, str) else json.dumps(payload)
        return self._response(request, status, text)

    def close(self):
        pass

    def _dispatch(self, method, path, body):
        if path == GROUP_PATH and method == "GET":
            return 200, self.bundles()

        if path.startswith(GROUP_PATH + "/"):
            group_id = path[len(GROUP_PATH) + 1:]
            if method == "POST":
                self.groups[group_id] = {
                    "id": group_id,
                    "index": body.get("index", 0),
                    "override": body.get("override", False),
                }
                return 200, "Update group successfully."
            if method == "DELETE":
                self.groups.pop(group_id, None)
                for key in [k for k in self.rules if k[0] == group_id]:
                    del self.rules[key]
                return 200, "Delete group and rules successfully."

        if path == RULE_PATH and method == "POST":
            if body.get("group_id") not in self.groups:
                return 400, f"group {body.get('group_id')} not found"
            self.rules[(body["group_id"], body["id"])] = body
            return 200, "Update rule successfully."

        if path.startswith(RULE_PATH + "/") and method == "DELETE":
            group_id, rule_id = path[len(RULE_PATH) + 1:].split("/", 1)
            self.rules.pop((group_id, rule_id), None)
            return 200, "Delete rule successfully."

        return 404, "404 page not found"

    def bundles(self):
        return [
            {
                "group_id": group["id"],
                "group_index": group["index"],
                "group_override": group["override"],
                "rules": [r for (g, _), r in sorted(self.rules.items()) if g == group["id"]],
            }
            for group in self.groups.values()
        ]

    @staticmethod
    def _response(request, status, text):
        response = requests.Response()
        response.status_code = status
        response.reason = HTTPStatus(status).phrase
        response._content = text.encode("utf-8")
        response.encoding = "utf-8"
        response.headers["Content-Type"] = "application/json"
        response.url = request.url
        response.request = request
        return response


class FakeRawKV:
    """Raw-KV collaborator that folds DELETE / ADD entries like the test engine."""

    def __init__(self):
        self.rows: Dict[bytes, Dict[int, int]] = {}
        self.puts: List[Tuple[int, str]] = []

    def batch_put(self, keys, values, column_family):
        assert len(keys) == len(values)
        self.puts.append((len(keys), column_family))
        for key, value in zip(keys, values):
            entry = decode(value)
            if isinstance(entry, DeleteEntry):
                self.rows.pop(key, None)
            elif isinstance(entry, AddDeltaEntry):
                row = self.rows.setdefault(key, {})
                row[entry.column_id] = row.get(entry.column_id, 0) + entry.amount

    def scan_handle_ids(self, start_key, end_key):
        return sorted(k for k in self.rows if start_key <= k < end_key)

    def locate_regions(self, start_key, end_key):
        return [RegionDescriptor(region_id=2, start_key=start_key, end_key=end_key, leader_store_id=1)]

    def sum_table_column(self, start_key, end_key, column_id):
        return sum(
            row.get(column_id, 0)
            for key, row in self.rows.items()
            if start_key <= key < end_key
        )


@pytest.fixture
def fake_pd():
    return FakePDAdapter()


@pytest.fixture
def pd_session(fake_pd):
    session = requests.Session()
    session.mount("http://", fake_pd)
    yield session
    session.close()


@pytest.fixture
def pd_config():
    return PlacementConfig(pd_address=PD_ADDRESS, timeout_seconds=2.5)


@pytest.fixture
def client(pd_config, pd_session):
    return PlacementRuleClient(pd_config, session=pd_session)


@pytest.fixture
def fake_kv():
    return FakeRawKV()
