"""
Configuration management subsystem for the garden engine.

Static vs Dynamic Configuration
--------------------------------
**Static (Config):**
- Loaded from environment variables (``.env`` supported) at import
- Includes: environment, logging, storage backend and its connection settings

**Balance (ConfigManager):**
- Loaded from the YAML files packaged under ``manifest_garden/config``
- Includes: XP curve, combo rules, crafting odds, rank thresholds,
  achievement/quest/milestone/challenge definitions, shop catalog
- Overridable per engine instance

Usage Examples
--------------
```python
from manifest_garden.core.config import Config, ConfigManager

backend = Config.STORAGE_BACKEND

config = ConfigManager(overrides={"progression.combo.window_ms": 3000})
window = config.get_int("progression.combo.window_ms")
```
"""

from manifest_garden.core.config.config import Config, Environment, StorageBackend
from manifest_garden.core.config.manager import ConfigManager, deep_merge

__all__ = [
    "Config",
    "Environment",
    "StorageBackend",
    "ConfigManager",
    "deep_merge",
]
