import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load the appropriate .env file on module import
env = os.environ.get("BANANA_ENV", "development").lower()
env_file = f".env.{env}"
if os.path.exists(env_file):
    load_dotenv(env_file)
else:
    # Fall back to the default .env file
    load_dotenv()


@dataclass
class Config:
    environment: str
    database_url: str
    log_level: str
    page_size: int

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            environment=env,
            database_url=os.environ.get("DATABASE_URL", "sqlite:///banana.db"),
            log_level=os.environ.get("BANANA_LOG_LEVEL", "WARNING").upper(),
            page_size=int(os.environ.get("BANANA_PAGE_SIZE", "20")),
        )


config = Config.from_env()
