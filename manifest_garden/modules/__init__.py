"""
Feature modules. One package per concern, each exposing its service:

- ledger, progression, inventory, garden, crafting
- progress (achievements, quests, milestones, challenges)
- leaderboard, purchases
- shared (base service, exceptions, constants, formulas)
"""
