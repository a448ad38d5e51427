from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")
ID = TypeVar("ID")


class Repository(ABC, Generic[T, ID]):
    def __init__(self, session: AsyncSession):
        self._session = session

    @abstractmethod
    async def get(self, id: ID) -> T | None:
        ...

    def _dialect_name(self) -> str:
        return self._session.get_bind().dialect.name
