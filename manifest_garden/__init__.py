"""
Manifestation Garden: economy & progression engine.

Everything a caller needs goes through ``GardenEngine``; services under
``manifest_garden.modules`` can also be composed directly.
"""

from manifest_garden.engine import ActionResult, GardenEngine, ReminderSnapshot

__version__ = "0.1.0"

__all__ = ["ActionResult", "GardenEngine", "ReminderSnapshot", "__version__"]
