from sqlalchemy import Column, String
from .base import Base

class Prediction(Base):
    __tablename__ = "predictions"

    # uuid4 assigned by the pipeline, never by the database
    id = Column(String, primary_key=True)

    result = Column(String, nullable=False)
    suggestion = Column(String, nullable=False)

    # ISO-8601 string exactly as returned to the caller
    created_at = Column(String, nullable=False)
