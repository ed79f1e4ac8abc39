import logging
from pathlib import Path
from typing import Union

from llm_assistant.schemas.firewall_config import FirewallConfig

logger = logging.getLogger(__name__)


class ConfigSnapshotError(Exception):
    pass


def load_config_snapshot(path: Union[str, Path]) -> FirewallConfig:
    """Read the JSON export of the firewall configuration."""
    snapshot = Path(path)
    try:
        config = FirewallConfig.model_validate_json(snapshot.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigSnapshotError(f"Cannot read configuration snapshot {snapshot}: {e}") from e
    logger.debug("Loaded configuration snapshot %s: %d rules, %d interfaces, %d NAT rules",
                 snapshot, len(config.rules), len(config.interfaces), len(config.nat))
    return config
