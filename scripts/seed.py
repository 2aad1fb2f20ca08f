import sys

from sqlmodel import Session

from blazehub.core.config import Settings
from blazehub.db.session import build_engine, init_db
from blazehub.db.seed import seed_all

DEFAULT_SEED_PATH = "blazehub/db/seed_data.yaml"


def run_seed(seed_path: str = DEFAULT_SEED_PATH) -> None:
    settings = Settings()
    engine = build_engine(settings.DATABASE_URL)
    init_db(engine)
    with Session(engine) as session:
        seed_all(session, seed_path)


if __name__ == "__main__":
    run_seed(sys.argv[1] if len(sys.argv) > 1 else DEFAULT_SEED_PATH)
