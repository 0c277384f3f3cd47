# storefront/repos/promo_code_repo.py
from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from storefront.data.models.promo_code import PromotionalCodeModel, PromotionalCodeUsageModel


class PromoCodeRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_code(self, code: str) -> PromotionalCodeModel | None:
        return self.db.execute(
            select(PromotionalCodeModel)
            .where(PromotionalCodeModel.code == code)
            # used_count zmieniany przez UPDATE poza sesja
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def count_user_usages(self, code_id: int, user_id: int) -> int:
        return self.db.execute(
            select(func.count(PromotionalCodeUsageModel.id)).where(
                PromotionalCodeUsageModel.promotional_code_id == code_id,
                PromotionalCodeUsageModel.user_id == user_id,
            )
        ).scalar_one()

    def add_usage(self, usage: PromotionalCodeUsageModel) -> PromotionalCodeUsageModel:
        self.db.add(usage)
        self.db.flush()
        return usage

    def increment_used_count(self, code_id: int) -> int:
        """
        Jedno warunkowe UPDATE, bez read-then-write.
        np. update set used_count = used_count + 1 where id 1 and used_count < usage_limit
        """
        result = self.db.execute(
            update(PromotionalCodeModel)
            .where(
                PromotionalCodeModel.id == code_id,
                or_(
                    PromotionalCodeModel.usage_limit.is_(None),
                    PromotionalCodeModel.used_count < PromotionalCodeModel.usage_limit,
                ),
            )
            .values(used_count=PromotionalCodeModel.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def get_user_usage_limit(self, code_id: int) -> int | None:
        return self.db.execute(
            select(PromotionalCodeModel.user_usage_limit).where(PromotionalCodeModel.id == code_id)
        ).scalar_one_or_none()
