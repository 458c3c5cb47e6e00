# ==============================================
# WORKLOAD: engine write cycle over raw KV
# ==============================================
#
# Modules:
# --------
# - engine_writer.py → EngineWriteWorkload + RawKVClient protocol
#
# ==============================================

from .engine_writer import EngineWriteWorkload, RawKVClient, RegionDescriptor

__all__ = ["EngineWriteWorkload", "RawKVClient", "RegionDescriptor"]
