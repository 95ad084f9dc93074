# siakad/models/audit_log.py
from sqlalchemy import Column, String, Text, JSON
from .base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    audit_type = Column(String(30), nullable=False, index=True)
    user_id = Column(String(100), nullable=False)
    action = Column(String(255), nullable=False)
    target = Column(String(255))
    status = Column(String(20), nullable=False)
    # "metadata" is reserved on declarative classes
    request_metadata = Column("metadata", JSON)
    ip_address = Column(String(64))
    user_agent = Column(Text)
