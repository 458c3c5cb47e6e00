# ==============================================
# Table Placement Toolkit
# ==============================================
#
# Package Structure:
#
# table_placement/
# ├── codec/        # Table key + modification log byte encodings
# ├── placement/    # PD placement-rule client and table orchestrator
# ├── workload/     # Engine write cycle over a raw-KV client
# ├── config.py     # Configuration management
# ├── errors.py     # Error taxonomy
# └── cli.py        # Command line entry point
#
# ==============================================

__version__ = "0.1.0"
