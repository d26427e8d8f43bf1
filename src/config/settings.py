import os
from dotenv import load_dotenv
load_dotenv()

ENV = os.getenv("ENV", "dev")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///predictions.db")
MODEL_PATH = os.getenv("MODEL_PATH", "models/model.joblib")
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
# caps both the raw request body and the uploaded image
MAX_IMAGE_BYTES = int(os.getenv("MAX_IMAGE_BYTES", "1000000"))
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
