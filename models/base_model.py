#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins.

- created_at / updated_at timestamps
- to_dict() that formats timestamps, removes SA internals, adds __class__

Notes:
- We use server-side defaults (func.now()) so timestamps are set consistently by the DB.
- For SQLite, func.now() maps to CURRENT_TIMESTAMP.
- Persistence goes through DBStorage; models never commit on their own.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

TIME_FMT = "%Y-%m-%dT%H:%M:%S.%f"

# Declarative base for all models
Base = declarative_base()


class BaseModel:
    """
    Base mixin for all persistent models.
    Subclasses declare their own primary key.
    """

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        DB defaults handle created_at/updated_at on insert.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)

    def to_dict(self) -> dict:
        """
        Return a dictionary of fields suitable for logs and CLI output:
        - Adds __class__
        - Formats created_at / updated_at to TIME_FMT if they are datetime objects
        - Removes SQLAlchemy internal state and any field listed in __secret_fields__
        """
        hidden = set(getattr(self, "__secret_fields__", ()))
        d = {
            k: v for k, v in self.__dict__.items()
            if k != "_sa_instance_state" and k not in hidden
        }
        if isinstance(d.get("created_at"), datetime):
            d["created_at"] = d["created_at"].strftime(TIME_FMT)
        if isinstance(d.get("updated_at"), datetime):
            d["updated_at"] = d["updated_at"].strftime(TIME_FMT)
        d["__class__"] = self.__class__.__name__
        return d
