from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from liquipay.core.database import Base
from liquipay.models.customer import Customer  # noqa: F401  (relationship target)
from liquipay.models.enums import LiquidationStatus


class Liquidation(Base):
    __tablename__ = "liquidations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    tax_type = Column(String(128), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(String(16), default=LiquidationStatus.PENDING.value, nullable=False)  # PENDING | OVERDUE | PAID

    # QR artifact sub-state, written in one commit by the QR service
    qr_code_data = Column(Text, nullable=True)
    qr_image_base64 = Column(Text, nullable=True)
    merchant_channel = Column(String(64), nullable=True)
    transaction_id = Column(String(128), unique=True, index=True, nullable=True)
    qr_type = Column(String(16), nullable=True)
    qr_generated_at = Column(DateTime, nullable=True)
    penalty_amount = Column(Numeric(18, 2), nullable=True)
    total_amount = Column(Numeric(18, 2), nullable=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    customer = relationship("Customer", back_populates="liquidations", lazy="joined")

    def has_qr_code(self) -> bool:
        return bool(self.qr_code_data and self.qr_code_data.strip())

    def clear_qr_data(self) -> None:
        self.qr_code_data = None
        self.qr_image_base64 = None
        self.qr_type = None
        self.qr_generated_at = None
        self.merchant_channel = None
        self.transaction_id = None
        self.penalty_amount = None
        self.total_amount = None

    def is_paid(self) -> bool:
        return self.status == LiquidationStatus.PAID.value
