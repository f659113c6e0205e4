import logging

from billing.config import database_url, log_level
from billing.db.engine import get_engine
from billing.db.schema import metadata

logging.basicConfig(
    level=log_level(),
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    engine = get_engine()
    metadata.drop_all(engine)
    metadata.create_all(engine)
    logger.info("DB schema created at %s", database_url())

if __name__ == "__main__":
    main()
