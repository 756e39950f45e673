"""
Launcher discovery.

Scanners read launcher-specific on-disk state and produce normalized
candidate records; the coordinator runs every configured scanner.
"""
