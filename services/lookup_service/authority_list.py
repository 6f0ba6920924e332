"""
Authority list — names of the authorities the dashboard rolls up.

Two sources, merged: the comma-separated `authorities` setting and the
<AUTHORITY>.json files in `authority_config_dir` (the same config files
the lookup service loads authorities from). Names are returned exactly as
configured: samples are stored under the name the lookup was recorded
with, and the per-authority rollup matches on it verbatim.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from configs.settings import Settings, get_settings
from utils.logger import get_logger

_log = get_logger(__name__)


class AuthorityLister:
    def __init__(self, settings: Optional[Settings] = None) -> None:
        cfg = settings or get_settings()
        self._configured = cfg.authority_names
        self._config_dir = Path(cfg.authority_config_dir) if cfg.authority_config_dir else None

    def authorities_list(self) -> List[str]:
        names = set(self._configured)
        if self._config_dir is not None:
            if self._config_dir.is_dir():
                names.update(path.stem for path in self._config_dir.glob("*.json"))
            else:
                _log.warning("authority_config_dir_missing", path=str(self._config_dir))
        return sorted(names)
