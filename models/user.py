from sqlalchemy import Column, Integer, String, Text

from models.base_model import Base, BaseModel


class User(BaseModel, Base):
    """
    An identity that may log in. refresh_token holds the single refresh token
    currently valid for this identity (NULL when none has been issued or the
    last one was revoked).
    """
    __tablename__ = "users"
    __secret_fields__ = ("refresh_token",)

    id = Column(Integer, primary_key=True, autoincrement=False)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    refresh_token = Column(Text, nullable=True, index=True)
