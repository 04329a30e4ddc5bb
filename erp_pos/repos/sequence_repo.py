# erp_pos/repos/sequence_repo.py
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from erp_pos.data.models.sale_sequence import SaleSequenceModel
from erp_pos.domain.exceptions import SequenceAllocationError
from erp_pos.utils.retry import db_retry
from erp_pos.utils.settings import SALE_NUMBER_PREFIX
from erp_pos.utils.logging import get_logger

logger = get_logger(__name__)


class SequenceRepo:
    """
    Per-tenant sale number counter.

    The increment runs as UPDATE ... SET last_value = last_value + 1 in its
    own transaction, so the row lock serialises concurrent callers. A number
    handed out is never reused, even when the sale that took it fails later.
    """

    def __init__(self, db: Session, prefix: str = SALE_NUMBER_PREFIX):
        self.db = db
        self.prefix = prefix

    def allocate_sale_number(self, company_id: UUID) -> str:
        try:
            value = self._next_value(company_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Sale number allocation failed for company {company_id}: {e}")
            raise SequenceAllocationError(company_id, reason=e.__class__.__name__) from e

        return f"{self.prefix}-{value:06d}"

    @db_retry()
    def _next_value(self, company_id: UUID) -> int:
        #2 attempts: first use of the counter can race with another caller inserting the row
        for _ in range(2):
            try:
                result = self.db.execute(
                    update(SaleSequenceModel)
                    .where(SaleSequenceModel.company_id == company_id)
                    .values(last_value=SaleSequenceModel.last_value + 1)
                    .execution_options(synchronize_session=False)
                )

                if result.rowcount == 0:
                    self.db.add(SaleSequenceModel(company_id=company_id, last_value=1))
                    self.db.flush()

                value = self.db.execute(
                    select(SaleSequenceModel.last_value).where(SaleSequenceModel.company_id == company_id)
                ).scalar_one()
                self.db.commit()
                return value
            except IntegrityError:
                self.db.rollback()
                logger.info(f"Sequence row for company {company_id} created concurrently, retrying")
            except SQLAlchemyError:
                self.db.rollback()
                raise

        raise IntegrityError("sale_sequences insert race", params=None, orig=Exception("retry exhausted"))
