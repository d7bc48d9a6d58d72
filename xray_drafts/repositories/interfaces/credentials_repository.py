from abc import ABC, abstractmethod
from typing import Optional
from xray_drafts.models.schemas import XrayConfig


class ICredentialsRepository(ABC):
    """Interface for the stored Xray credentials"""

    @abstractmethod
    async def exists(self) -> bool:
        pass

    @abstractmethod
    async def read(self) -> Optional[XrayConfig]:
        pass

    @abstractmethod
    async def write(self, config: XrayConfig) -> None:
        pass

    @abstractmethod
    async def delete(self) -> None:
        pass
