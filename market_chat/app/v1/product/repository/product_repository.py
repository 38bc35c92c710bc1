import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.future import select

from market_chat.app.common.exceptions import NotFoundError
from market_chat.app.v1.product.entity.product import Product
from market_chat.config.database.postgresql import PostgreSQL

logger = logging.getLogger(__name__)


class ProductRepository:

    def __init__(self, postgresql: PostgreSQL):
        self.postgresql = postgresql

    async def product_exists(self, product_id: str) -> bool:
        # 삭제된(deleted_at 기록) 상품은 없는 상품으로 취급
        async with self.postgresql.session() as session:
            try:
                query = select(Product.id).where(Product.id == product_id, Product.deleted_at.is_(None))
                result = await session.execute(query)
                return result.scalar_one_or_none() is not None
            except SQLAlchemyError as e:
                logger.error(f"Database error occurred while fetching product: {e}")
                raise

    async def ensure_product_exists(self, product_id: str) -> None:
        if not await self.product_exists(product_id):
            logger.warning(f"Product ID: {product_id}가 존재하지 않습니다.")
            raise NotFoundError("상품을 찾을 수 없습니다")
