"""Pure costing pipeline.

Every entry point takes an already loaded :class:`CostingSnapshot` and
returns freshly built result records. Nothing in this package writes to
the database.
"""
