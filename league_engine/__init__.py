"""
Weekly league engine.

Tiered, sharded weekly leagues: score ledger, division rankings, scheduled
promotion/relegation rollover and read-only standings.
"""
