"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from sandbox_bank.infrastructure.database.session import get_db
from sandbox_bank.services.provisioning import AccountProvisioner
from sandbox_bank.services.scheduled_transfers import ScheduledTransferEngine


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_provisioner(db: Session = Depends(get_db)) -> AccountProvisioner:
    """Provide account provisioning workflow bound to the request session"""
    return AccountProvisioner(db)


def get_transfer_engine(db: Session = Depends(get_db)) -> ScheduledTransferEngine:
    """Provide scheduled transfer engine bound to the request session"""
    return ScheduledTransferEngine(db)
