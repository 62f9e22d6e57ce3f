from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.database.config import DATABASE_PATH, DATABASE_URL

DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)

engine = create_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
