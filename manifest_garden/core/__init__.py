"""
Core infrastructure for the garden engine.

Subsystems
----------
- config: static settings (Config) and balance YAML (ConfigManager)
- event: synchronous EventBus
- logging: structured logging and LogContext
- persistence: storage gateways, write queue and StateStore
- clock: reference-timezone GardenClock
- exceptions: infrastructure exception hierarchy

Feature modules import from the submodules directly; this package only
documents the boundary.
"""
