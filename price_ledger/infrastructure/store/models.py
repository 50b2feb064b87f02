from sqlalchemy import Boolean, Column, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ServiceModel(Base):
    __tablename__ = "services"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=True)
    # Decimal text, exact across backends
    price = Column(String, nullable=False)
    category_id = Column(String, nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)


class CategoryModel(Base):
    __tablename__ = "service_categories"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)


class PriceJournalModel(Base):
    __tablename__ = "price_journal"

    id = Column(String, primary_key=True)
    sequence = Column(Integer, nullable=False, unique=True, index=True)
    record_kind = Column(String, nullable=False)
    kind = Column(String, nullable=False)
    amount = Column(String, nullable=False)
    is_percentage = Column(Boolean, nullable=False)
    category_id = Column(String, nullable=True)
    category_name = Column(String, nullable=True)
    affected_count = Column(Integer, nullable=False)
    # ISO-8601 with offset; keeps tz info on backends without timestamptz
    created_at = Column(String, nullable=False)
    old_prices = Column(Text, nullable=False, default="{}")
    is_reverted = Column(Boolean, nullable=False, default=False)
    reverted_at = Column(String, nullable=True)
    performed_by = Column(String, nullable=True)
    reverts_entry_id = Column(String, nullable=True)
