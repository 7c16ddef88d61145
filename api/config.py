import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///solar_pr_dev.db")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    DEFAULT_DATASET_CODE: str = os.getenv("DEFAULT_DATASET_CODE", "INPE_2017_SUNDATA")
    DEFAULT_LOOKUP_METHOD: str = os.getenv("DEFAULT_LOOKUP_METHOD", "nearest")
    PR_JOB_ENABLED: bool = os.getenv("PR_JOB_ENABLED", "true").lower() == "true"
    PR_JOB_INTERVAL_MINUTES: int = int(os.getenv("PR_JOB_INTERVAL_MINUTES", "60"))
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))


settings = Settings()
