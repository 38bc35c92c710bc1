from typing import Protocol


class UserDirectory(Protocol):
    async def ensure_user_exists(self, user_id: str) -> None:
        """없는 사용자면 NotFoundError"""


class ProductCatalog(Protocol):
    async def ensure_product_exists(self, product_id: str) -> None:
        """없는 상품이면 NotFoundError"""
