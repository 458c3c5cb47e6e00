# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load and validate all configuration from environment
#   variables / .env file. Provides typed config objects
#   to the CLI, which hands them to the client and workload.
#
# CLASSES:
# --------
# - PlacementConfig (dataclass)
#     pd_address: str            (default "127.0.0.1:2379")
#     timeout_seconds: float     (default 5.0)
#
# - TableRuleConfig (dataclass)
#     group_id: str              (default "test-engine-group")
#     table_id: int              (default 12345)
#     engine_label: str          (default "test_engine")
#     replica_count: int         (default 3)
#
# - WorkloadConfig (dataclass)
#     column_size: int           (default 200)
#     modify_round: int          (default 5)
#     column_family: str         (default "write")
#     kv_factory: str            (default "", "module:callable")
#
# - AppConfig (dataclass)
#     pd: PlacementConfig
#     rule: TableRuleConfig
#     workload: WorkloadConfig
#
# FUNCTION:
# ---------
# - get_config() -> AppConfig
#     Load .env using python-dotenv, construct AppConfig.
#     Returns the same singleton on repeated calls.
#
# NOTE:
#   PlacementRuleClient never calls get_config() itself. The
#   PlacementConfig value is always passed into its constructor,
#   so several clients with different settings can coexist.
#
# ==============================================

import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv


SCHEMA_COL_TABLE_ID = 12345


@dataclass
class PlacementConfig:
    """PD control plane connection settings."""
    pd_address: str = "127.0.0.1:2379"
    timeout_seconds: float = 5.0

    @property
    def base_url(self) -> str:
        """Address with an http:// scheme unless one is already given."""
        address = self.pd_address.rstrip("/")
        if "://" in address:
            return address
        return f"http://{address}"


@dataclass
class TableRuleConfig:
    """Which table gets pinned to which engine label."""
    group_id: str = "test-engine-group"
    table_id: int = SCHEMA_COL_TABLE_ID
    engine_label: str = "test_engine"
    replica_count: int = 3


@dataclass
class WorkloadConfig:
    """Engine write workload settings."""
    column_size: int = 200
    modify_round: int = 5
    column_family: str = "write"
    kv_factory: str = ""


@dataclass
class AppConfig:
    """Main application configuration."""
    pd: PlacementConfig = field(default_factory=PlacementConfig)
    rule: TableRuleConfig = field(default_factory=TableRuleConfig)
    workload: WorkloadConfig = field(default_factory=WorkloadConfig)


# Singleton instance
_config_instance: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Load configuration from environment variables / .env file.
    Returns the same singleton instance on repeated calls.

    Returns:
        AppConfig: Application configuration
    """
    global _config_instance

    if _config_instance is not None:
        return _config_instance

    # Load .env file from project root
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    pd_config = PlacementConfig(
        pd_address=os.getenv("DEFAULT_TEST_PD_ADDRESS") or "127.0.0.1:2379",
        timeout_seconds=float(os.getenv("PD_HTTP_TIMEOUT_SECONDS", "5.0"))
    )

    rule_config = TableRuleConfig(
        group_id=os.getenv("PLACEMENT_GROUP_ID", "test-engine-group"),
        table_id=int(os.getenv("PLACEMENT_TABLE_ID", str(SCHEMA_COL_TABLE_ID))),
        engine_label=os.getenv("PLACEMENT_ENGINE_LABEL", "test_engine"),
        replica_count=int(os.getenv("PLACEMENT_REPLICA_COUNT", "3"))
    )

    workload_config = WorkloadConfig(
        column_size=int(os.getenv("WORKLOAD_COLUMN_SIZE", "200")),
        modify_round=int(os.getenv("WORKLOAD_MODIFY_ROUND", "5")),
        column_family=os.getenv("WORKLOAD_COLUMN_FAMILY", "write"),
        kv_factory=os.getenv("RAW_KV_FACTORY", "")
    )

    _config_instance = AppConfig(
        pd=pd_config,
        rule=rule_config,
        workload=workload_config
    )

    return _config_instance


def reset_config() -> None:
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config_instance
    _config_instance = None
