from sqlalchemy.exc import SQLAlchemyError


class BaseRepo:
    def __init__(self, db):
        self.db = db

    async def save(self, obj):
        self.db.add(obj)
        return await self._commit_and_refresh(obj)

    async def commit(self):
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def rollback(self):
        await self.db.rollback()

    async def reload(self, obj):
        await self.db.refresh(obj)
        return obj

    async def _commit_and_refresh(self, obj):
        try:
            await self.db.commit()
            await self.db.refresh(obj)
            return obj
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def load(self, obj, *relations: str):
        # relationships are never lazy loaded under asyncio; fetch them explicitly
        await self.db.refresh(obj, attribute_names=list(relations))
        return obj
