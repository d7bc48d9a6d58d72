import json
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from xray_drafts.models.schemas import XrayConfig
from xray_drafts.repositories.interfaces.credentials_repository import ICredentialsRepository

logger = structlog.get_logger()


class FileCredentialsRepository(ICredentialsRepository):
    """Xray credentials stored in ``config/xray-config.json``"""

    def __init__(self, config_path: Path):
        self.config_path = Path(config_path)

    async def exists(self) -> bool:
        return self.config_path.exists()

    async def read(self) -> Optional[XrayConfig]:
        if not self.config_path.exists():
            return None
        try:
            return XrayConfig.model_validate(json.loads(self.config_path.read_text(encoding="utf-8")))
        except (OSError, ValueError, ValidationError) as e:
            logger.error("Error reading Xray config", path=str(self.config_path), error=str(e))
            return None

    async def write(self, config: XrayConfig) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(json.dumps(config.to_document(), indent=2), encoding="utf-8")
        logger.info("Xray config saved", path=str(self.config_path))

    async def delete(self) -> None:
        self.config_path.unlink(missing_ok=True)
