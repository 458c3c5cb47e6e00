# ==============================================
# PlacementRuleClient
# ==============================================
#
# PURPOSE:
#   Thin HTTP client for PD's placement-rule API. Creates,
#   replaces and deletes rule groups and rules, and lists what
#   the control plane currently holds.
#
# WHY THIS CLASS EXISTS:
#   Pinning a table's key range to stores with a given engine
#   label is done entirely through PD. The state lives there; this
#   client only issues one request per call and checks the answer.
#
# CLASS: PlacementRuleClient
# --------------------------
#   Stateless between calls — holds only the config and a
#   requests.Session (connection pool). No local mirror, no retry.
#
#   Constructor:
#   ------------
#   - __init__(config: PlacementConfig, session: requests.Session = None)
#
#   Methods:
#   --------
#   - list_groups() -> list[GroupBundle]
#       GET /pd/api/v1/config/placement-rule
#
#   - get_group(group_id) -> GroupBundle | None
#       Filter over list_groups(). A snapshot, not a live view.
#
#   - set_group(group_id) -> None
#       POST /pd/api/v1/config/placement-rule/{group_id}
#       Body {id, index: 8888, override: true}. Idempotent.
#
#   - delete_group(group_id) -> None
#       DELETE /pd/api/v1/config/placement-rule/{group_id}
#
#   - set_rule(group_id, rule_id, start_key_hex, end_key_hex,
#              replica_count, label_constraints) -> None
#       POST /pd/api/v1/config/rule. role voter, index 0,
#       override true. Idempotent.
#
#   - delete_rule(group_id, rule_id) -> None
#       DELETE /pd/api/v1/config/rule/{group_id}/{rule_id}
#
#   ERRORS:
#   -------
#   - RemoteError  → non-200 status (status + body kept) or transport
#                    failure / timeout
#   - DecodeError  → 200 with a body that is not the expected JSON
#
#   Context Manager:
#   ----------------
#   - __enter__ / __exit__ close the session it created.
#
# THREADING:
#   Safe to share between threads only as far as the underlying
#   requests.Session is. Not enforced here.
#
# ==============================================

from typing import List, Optional, Sequence
from urllib.parse import quote

import requests

from table_placement.config import PlacementConfig
from table_placement.errors import DecodeError, EncodingViolation, RemoteError
from table_placement.placement.models import (
    GroupBundle,
    LabelConstraint,
    PeerRole,
    PlacementRule,
    RuleGroup,
)


API_PREFIX = "/pd/api/v1"
GROUP_URI = "config/placement-rule"
RULE_URI = "config/rule"

# Groups created here apply after every lower-index group and disable them.
DEFAULT_GROUP_INDEX = 8888


class PlacementRuleClient:
    def __init__(self, config: PlacementConfig, session: Optional[requests.Session] = None):
        self.config = config
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    def _url(self, uri: str, *parts: str) -> str:
        url = f"{self.config.base_url}{API_PREFIX}/{uri}"
        for part in parts:
            url = f"{url}/{quote(part, safe='')}"
        return url

    def _request(self, method: str, url: str, payload: Optional[dict] = None) -> requests.Response:
        # One round trip, fixed timeout, no retry.
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                timeout=self.config.timeout_seconds
            )
        except requests.RequestException as e:
            raise RemoteError(
                f"{method} {url} failed: {e}",
                method=method,
                url=url
            ) from e

        if response.status_code != 200:
            status = f"{response.status_code} {response.reason or ''}".strip()
            raise RemoteError(
                f"{method} {url} returned {status}: {response.text}",
                method=method,
                url=url,
                status_code=response.status_code,
                reason=response.reason or "",
                body=response.text
            )
        return response

    # ==============================================
    # Rule groups
    # ==============================================

    def list_groups(self) -> List[GroupBundle]:
        """Fetch every group bundle PD currently holds."""
        response = self._request("GET", self._url(GROUP_URI))
        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(f"placement-rule response is not JSON: {e}") from e

        if payload is None:
            return []
        if not isinstance(payload, list):
            raise DecodeError(
                f"placement-rule response must be a JSON array, got {type(payload).__name__}"
            )
        bundles = [GroupBundle.from_dict(item) for item in payload]
        print(f"got {len(bundles)} groups: {{{' '.join(b.id for b in bundles)}}}")
        return bundles

    def get_group(self, group_id: str) -> Optional[GroupBundle]:
        for bundle in self.list_groups():
            if bundle.id == group_id:
                return bundle
        return None

    def set_group(self, group_id: str) -> None:
        group = RuleGroup(id=group_id, index=DEFAULT_GROUP_INDEX, override=True)
        self._request("POST", self._url(GROUP_URI, group_id), group.to_dict())
        print(f"✓ Set rule group '{group_id}' (index={group.index}, override={group.override})")

    def delete_group(self, group_id: str) -> None:
        # PD accepts deleting an absent group, so no special case here.
        self._request("DELETE", self._url(GROUP_URI, group_id))
        print(f"✓ Deleted rule group '{group_id}'")

    # ==============================================
    # Rules
    # ==============================================

    def set_rule(
        self,
        group_id: str,
        rule_id: str,
        start_key_hex: str,
        end_key_hex: str,
        replica_count: int,
        label_constraints: Sequence[LabelConstraint] = ()
    ) -> PlacementRule:
        """
        Create or replace one rule inside `group_id`.

        The group must already exist on PD for the rule to take effect;
        call set_group() first.

        Returns:
            The rule exactly as it was sent.
        """
        if isinstance(replica_count, bool) or not isinstance(replica_count, int) or replica_count < 1:
            raise EncodingViolation(f"replica_count must be an int >= 1, got {replica_count!r}")

        rule = PlacementRule(
            group_id=group_id,
            id=rule_id,
            index=0,
            override=True,
            start_key_hex=start_key_hex,
            end_key_hex=end_key_hex,
            role=PeerRole.VOTER.value,
            count=replica_count,
            label_constraints=list(label_constraints)
        )
        self._request("POST", self._url(RULE_URI), rule.to_dict())
        print(f"✓ Set rule '{group_id}/{rule_id}' [{start_key_hex}, {end_key_hex}) count={replica_count}")
        return rule

    def delete_rule(self, group_id: str, rule_id: str) -> None:
        self._request("DELETE", self._url(RULE_URI, group_id, rule_id))
        print(f"✓ Deleted rule '{group_id}/{rule_id}'")

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
