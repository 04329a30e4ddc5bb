from sqlalchemy import Column, Integer, Uuid

from erp_pos.data.database import Base


class SaleSequenceModel(Base):
    __tablename__ = "sale_sequences"

    company_id = Column(Uuid, primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)
